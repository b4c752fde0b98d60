from rest_framework import serializers

from ledger.serializers import AccountKeyField


class AccountIn(serializers.Serializer):
    account = AccountKeyField()


class AccrualOut(serializers.Serializer):
    account = serializers.CharField(source="key")
    spendable_balance = serializers.IntegerField()
    accrual_rate = serializers.IntegerField()
    upgrade_level = serializers.IntegerField()
    owned_assets = serializers.IntegerField()
    session_active = serializers.BooleanField()
    last_tick_time = serializers.DateTimeField(allow_null=True)
