# settlement/views.py
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from .bridge import SettlementBridge, recent_settlements
from .permissions import HasOperatorToken
from .serializers import CashOutExternalIn, SettlementRecordSerializer
from .service import SettlementService


@api_view(["POST"])
def cash_out_external(request):
    serializer = CashOutExternalIn(data=request.data)
    serializer.is_valid(raise_exception=True)

    account = serializer.validated_data["account"]
    amount = serializer.validated_data["amount"]

    bridge = SettlementBridge(SettlementService())
    outcome = bridge.cash_out_external(
        account,
        amount,
        request_id=serializer.validated_data.get("request_id"),
    )

    return Response({
        "success": True,
        "txid": outcome.transaction_id,
        "redeemed": amount,
        "daily_total_after": outcome.daily_total_after,
        "replayed": outcome.replayed,
    })


@api_view(["GET"])
@permission_classes([HasOperatorToken])
def recent(request):
    serializer = SettlementRecordSerializer(recent_settlements(), many=True)
    return Response(serializer.data)
