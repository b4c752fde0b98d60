# mines/views.py
from rest_framework.decorators import api_view
from rest_framework.response import Response

from ledger.serializers import AccountKeyField
from . import services
from .serializers import StartSessionIn, RevealIn, SessionIn, SessionStateOut


@api_view(["POST"])
def start_session(request):
    serializer = StartSessionIn(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    session = services.start(
        data["account"],
        data["stake"],
        data["hazard_count"],
        board_size=data.get("board_size"),
    )
    return Response({
        **SessionStateOut(services.session_view(session)).data,
        "new_balance": session.account.spendable_balance,
    }, status=201)


@api_view(["POST"])
def reveal_cell(request):
    serializer = RevealIn(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    state = services.reveal(data["session_id"], data["cell"], data["account"])
    return Response(SessionStateOut(state).data)


@api_view(["POST"])
def cash_out(request):
    serializer = SessionIn(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    session = services.cash_out(data["session_id"], data["account"])
    return Response(SessionStateOut(services.session_view(session)).data)


@api_view(["GET"])
def session_state(request, session_id):
    field = AccountKeyField()
    account_key = field.run_validation(request.query_params.get("account"))

    return Response(SessionStateOut(services.session_state(session_id, account_key)).data)
