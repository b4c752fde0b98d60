import secrets

from django.conf import settings
from rest_framework.permissions import BasePermission


class HasOperatorToken(BasePermission):
    """Operator-only endpoints. Denied for everyone while no token is configured."""

    message = "Operator token required"

    def has_permission(self, request, view):
        expected = settings.OPERATOR_API_TOKEN
        supplied = request.headers.get("X-Operator-Token", "")
        if not expected or not supplied:
            return False
        return secrets.compare_digest(supplied, expected)
