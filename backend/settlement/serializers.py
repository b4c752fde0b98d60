from rest_framework import serializers

from ledger.serializers import AccountKeyField
from .models import SettlementRecord


class CashOutExternalIn(serializers.Serializer):
    account = AccountKeyField()
    amount = serializers.IntegerField(min_value=1)
    request_id = serializers.RegexField(r"^[A-Za-z0-9_-]{8,64}$", required=False)


class SettlementRecordSerializer(serializers.ModelSerializer):
    account = serializers.CharField(source="account.key")

    class Meta:
        model = SettlementRecord
        fields = ["id", "account", "amount", "request_id", "status", "transaction_id", "created_at", "resolved_at"]
