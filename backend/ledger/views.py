from rest_framework.decorators import api_view
from rest_framework.response import Response

from . import store
from .serializers import AccountOut


@api_view(["GET"])
def account_balance(request, account_key):
    account = store.get(account_key)
    return Response(AccountOut(account).data)
