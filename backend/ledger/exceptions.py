import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from .errors import LedgerError, ReconciliationRequired

logger = logging.getLogger(__name__)


def ledger_exception_handler(exc, context):
    if isinstance(exc, ReconciliationRequired):
        logger.error("Reconciliation required: %s %s", exc.message, exc.context)
        return Response(
            {"error": "settlement_unavailable", "detail": "Settlement is being processed, try again later"},
            status=exc.status_code,
        )

    if isinstance(exc, LedgerError):
        return Response({"error": exc.code, "detail": exc.message}, status=exc.status_code)

    return exception_handler(exc, context)
