class LedgerError(Exception):
    code = "ledger_error"
    status_code = 400
    default_message = "Ledger operation failed"

    def __init__(self, message=None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class InvalidInput(LedgerError):
    code = "invalid_input"
    default_message = "Invalid parameters"


class InvalidConfiguration(LedgerError):
    code = "invalid_configuration"
    default_message = "Invalid game configuration"


class InsufficientFunds(LedgerError):
    code = "insufficient_funds"
    default_message = "Insufficient balance"


class NotFound(LedgerError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class InvalidTransition(LedgerError):
    code = "invalid_transition"
    status_code = 409
    default_message = "Session not active"


class AlreadyRevealed(LedgerError):
    code = "already_revealed"
    status_code = 409
    default_message = "Cell already revealed"


class AlreadyClaimed(LedgerError):
    code = "already_claimed"
    status_code = 409
    default_message = "Reward already claimed"


class RateLimited(LedgerError):
    code = "rate_limited"
    status_code = 429
    default_message = "Rate limit exceeded"


class SettlementFailed(LedgerError):
    code = "settlement_failed"
    status_code = 502
    default_message = "Settlement was rejected"


class SettlementUnavailable(LedgerError):
    code = "settlement_unavailable"
    status_code = 503
    default_message = "Settlement service unavailable"


class ReconciliationRequired(LedgerError):
    """
    Debit applied but the external outcome is unknown.
    Operator-only: never shown to players in detail.
    """
    code = "reconciliation_required"
    status_code = 503
    default_message = "Settlement outcome pending reconciliation"
