from django.db import models
from django.db.models import Q

from ledger.models import Account


class SettlementRecord(models.Model):
    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_FAILED, "Failed"),
    ]

    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="settlements")
    amount = models.PositiveBigIntegerField()
    request_id = models.CharField(max_length=64, unique=True, null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)

    # null until the external call comes back
    transaction_id = models.CharField(max_length=128, null=True, blank=True)
    error = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-id"]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gte=1), name="settlement_amount_positive"),
        ]
        indexes = [
            models.Index(fields=["account", "created_at"]),
        ]

    def __str__(self):
        return f"Settlement {self.id} {self.amount} for {self.account_id} ({self.status})"
