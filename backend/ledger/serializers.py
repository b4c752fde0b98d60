from rest_framework import serializers

from .models import Account
from .store import ACCOUNT_KEY_RE


class AccountKeyField(serializers.RegexField):
    def __init__(self, **kwargs):
        kwargs.setdefault("max_length", 64)
        super().__init__(ACCOUNT_KEY_RE, **kwargs)


class AccountOut(serializers.ModelSerializer):
    class Meta:
        model = Account
        fields = [
            "key",
            "spendable_balance",
            "reward_balance",
            "external_currency_balance",
            "accrual_rate",
            "upgrade_level",
            "owned_assets",
            "last_tick_time",
            "session_active",
            "updated_at",
        ]
