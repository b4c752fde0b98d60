# mines/models.py
import uuid
from decimal import Decimal

from django.db import models

from ledger.models import Account


class WagerSession(models.Model):
    STATUS_ACTIVE = "active"
    STATUS_LOST = "lost"
    STATUS_CASHED = "cashed_out"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_LOST, "Lost"),
        (STATUS_CASHED, "Cashed Out"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="wager_sessions")

    stake = models.PositiveBigIntegerField()
    board_size = models.PositiveSmallIntegerField(default=25)  # 5x5 grid
    hazard_count = models.PositiveSmallIntegerField(default=5)
    hazard_cells = models.JSONField(default=list)
    revealed_cells = models.JSONField(default=list)

    multiplier = models.DecimalField(max_digits=20, decimal_places=4, default=Decimal("1"))
    payout = models.PositiveBigIntegerField(default=0)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    finished_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["account", "status"]),
            models.Index(fields=["created_at"]),
        ]

    @property
    def is_terminal(self):
        return self.status != self.STATUS_ACTIVE

    def __str__(self):
        return f"Mines {self.id} ({self.status})"
