# accrual/views.py
from rest_framework.decorators import api_view
from rest_framework.response import Response

from . import services
from .assets import AssetProvider
from .serializers import AccountIn, AccrualOut


def _account_key(request):
    serializer = AccountIn(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data["account"]


@api_view(["POST"])
def start_session(request):
    account = services.start_session(_account_key(request))
    return Response(AccrualOut(account).data)


@api_view(["POST"])
def stop_session(request):
    account = services.stop_session(_account_key(request))
    return Response(AccrualOut(account).data)


@api_view(["POST"])
def tick(request):
    account = services.tick(_account_key(request))
    return Response(AccrualOut(account).data)


@api_view(["POST"])
def purchase_upgrade(request):
    account = services.purchase_upgrade(_account_key(request))
    return Response({
        **AccrualOut(account).data,
        "next_upgrade_cost": services.upgrade_cost(account.upgrade_level),
    })


@api_view(["POST"])
def sync_assets(request):
    account_key = _account_key(request)
    # the count always comes from the provider, never from the caller
    owned = AssetProvider().count_owned(account_key)

    account = services.sync_asset_rate(account_key, owned)
    return Response(AccrualOut(account).data)
