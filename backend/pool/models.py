from django.db import models
from django.db.models import Q

from ledger.models import Account


class Contribution(models.Model):
    KIND_BURN = "burn"
    KIND_SUBMIT = "submit"

    KIND_CHOICES = [
        (KIND_BURN, "Wager burn"),
        (KIND_SUBMIT, "Pool submit"),
    ]

    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="contributions")
    amount = models.PositiveBigIntegerField()
    day = models.DateField(db_index=True)  # UTC calendar day
    kind = models.CharField(max_length=8, choices=KIND_CHOICES, default=KIND_SUBMIT)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.CheckConstraint(condition=Q(amount__gte=1), name="contribution_amount_positive"),
        ]
        indexes = [
            models.Index(fields=["day", "account"]),
        ]

    def __str__(self):
        return f"{self.kind} {self.amount} by {self.account_id} on {self.day}"


class RewardAward(models.Model):
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name="reward_awards")
    day = models.DateField()
    contribution = models.PositiveBigIntegerField()
    day_total = models.PositiveBigIntegerField()
    pool_size = models.PositiveBigIntegerField()
    share = models.PositiveBigIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["account", "day"], name="reward_award_once_per_day"),
        ]
        indexes = [
            models.Index(fields=["day"]),
        ]

    def __str__(self):
        return f"Award {self.share} to {self.account_id} for {self.day}"
