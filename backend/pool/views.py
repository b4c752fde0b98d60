# pool/views.py
from rest_framework.decorators import api_view
from rest_framework.response import Response

from . import services
from .serializers import (
    AwardOut,
    ClaimIn,
    ContributionIn,
    ContributionOut,
    PoolStatusIn,
    PoolStatusOut,
    DistributeIn,
    RedeemIn,
)


@api_view(["POST"])
def contribute(request):
    serializer = ContributionIn(data=request.data)
    serializer.is_valid(raise_exception=True)

    contribution = services.record_contribution(
        serializer.validated_data["account"],
        serializer.validated_data["amount"],
    )
    return Response(ContributionOut(contribution).data, status=201)


@api_view(["GET"])
def pool_status(request):
    serializer = PoolStatusIn(data=request.query_params)
    serializer.is_valid(raise_exception=True)

    day = serializer.validated_data.get("day") or services.utc_today()
    status = services.query_pool_status(day, serializer.validated_data.get("account"))
    return Response(PoolStatusOut(status).data)


@api_view(["POST"])
def distribute(request):
    serializer = DistributeIn(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = services.distribute(serializer.validated_data["day"])
    return Response({
        "day": result.day,
        "pool_size": result.pool_size,
        "day_total": result.day_total,
        "awarded": result.awarded,
        "skipped": result.skipped,
        "total_credited": result.total_credited,
    })


@api_view(["POST"])
def claim(request):
    serializer = ClaimIn(data=request.data)
    serializer.is_valid(raise_exception=True)

    award = services.claim_reward(
        serializer.validated_data["account"],
        serializer.validated_data["day"],
    )
    return Response(AwardOut(award).data)


@api_view(["POST"])
def redeem(request):
    serializer = RedeemIn(data=request.data)
    serializer.is_valid(raise_exception=True)

    account = services.redeem_rewards(
        serializer.validated_data["account"],
        serializer.validated_data["amount"],
    )
    return Response({
        "account": account.key,
        "reward_balance": account.reward_balance,
        "external_currency_balance": account.external_currency_balance,
    })
