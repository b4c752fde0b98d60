from rest_framework import serializers

from ledger.serializers import AccountKeyField


class ContributionIn(serializers.Serializer):
    account = AccountKeyField()
    amount = serializers.IntegerField(min_value=1)


class PoolStatusIn(serializers.Serializer):
    day = serializers.DateField(required=False)
    account = AccountKeyField(required=False)


class DistributeIn(serializers.Serializer):
    day = serializers.DateField()


class ClaimIn(serializers.Serializer):
    account = AccountKeyField()
    day = serializers.DateField()


class AwardOut(serializers.Serializer):
    account = serializers.CharField(source="account.key")
    day = serializers.DateField()
    contribution = serializers.IntegerField()
    day_total = serializers.IntegerField()
    pool_size = serializers.IntegerField()
    share = serializers.IntegerField()


class RedeemIn(serializers.Serializer):
    account = AccountKeyField()
    amount = serializers.IntegerField(min_value=1)


class ContributionOut(serializers.Serializer):
    id = serializers.IntegerField()
    account = serializers.CharField(source="account.key")
    amount = serializers.IntegerField()
    day = serializers.DateField()
    kind = serializers.CharField()
    created_at = serializers.DateTimeField()


class PoolStatusOut(serializers.Serializer):
    day = serializers.DateField()
    pool_size = serializers.IntegerField()
    day_total = serializers.IntegerField()
    contributors = serializers.IntegerField()
    distributed = serializers.BooleanField()
    is_open = serializers.BooleanField()
    account = serializers.CharField(required=False)
    contribution = serializers.IntegerField(required=False)
    share = serializers.IntegerField(required=False)
    awarded = serializers.BooleanField(required=False)
