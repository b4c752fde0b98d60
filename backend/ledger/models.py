from django.db import models
from django.db.models import Q


class Account(models.Model):
    key = models.CharField(max_length=64, unique=True, db_index=True)

    spendable_balance = models.BigIntegerField(default=0)
    reward_balance = models.BigIntegerField(default=0)
    external_currency_balance = models.BigIntegerField(default=0)

    accrual_rate = models.PositiveIntegerField(default=1)  # units per second
    upgrade_level = models.PositiveIntegerField(default=0)
    owned_assets = models.PositiveIntegerField(default=0)

    last_tick_time = models.DateTimeField(null=True, blank=True)
    session_active = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    BALANCE_FIELDS = ("spendable_balance", "reward_balance", "external_currency_balance")
    COUNTER_FIELDS = ("upgrade_level", "owned_assets")

    class Meta:
        constraints = [
            models.CheckConstraint(condition=Q(spendable_balance__gte=0), name="account_spendable_non_negative"),
            models.CheckConstraint(condition=Q(reward_balance__gte=0), name="account_reward_non_negative"),
            models.CheckConstraint(
                condition=Q(external_currency_balance__gte=0),
                name="account_external_non_negative",
            ),
            models.CheckConstraint(condition=Q(accrual_rate__gte=1), name="account_accrual_rate_positive"),
        ]

    def __str__(self):
        return f"Account({self.key})"
