# mines/serializers.py
from rest_framework import serializers

from ledger.serializers import AccountKeyField


class StartSessionIn(serializers.Serializer):
    account = AccountKeyField()
    stake = serializers.IntegerField(min_value=1)
    hazard_count = serializers.IntegerField(min_value=1)
    board_size = serializers.IntegerField(min_value=2, required=False)


class RevealIn(serializers.Serializer):
    account = AccountKeyField()
    session_id = serializers.UUIDField()
    cell = serializers.IntegerField(min_value=0)


class SessionIn(serializers.Serializer):
    account = AccountKeyField()
    session_id = serializers.UUIDField()


class SessionStateOut(serializers.Serializer):
    session_id = serializers.UUIDField()
    account = serializers.CharField()
    status = serializers.CharField()
    stake = serializers.IntegerField()
    board_size = serializers.IntegerField()
    hazard_count = serializers.IntegerField()
    revealed_cells = serializers.ListField(child=serializers.IntegerField())
    multiplier = serializers.DecimalField(max_digits=20, decimal_places=4)
    payout = serializers.IntegerField()
    hazard_cells = serializers.ListField(child=serializers.IntegerField(), required=False)
    hit_hazard = serializers.BooleanField(required=False)
