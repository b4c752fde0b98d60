"""
Off-chain → on-chain settlement.

Two-phase compensating transaction:

1. debit ``external_currency_balance`` and write a ``pending`` record, commit;
2. call the Settlement Service outside any transaction;
3. on success mark the record ``confirmed`` with the external transaction id,
   on failure re-credit the amount and mark it ``failed``.

A process crash between 1 and 3 leaves a ``pending`` record with no
transaction id. Those are never resolved automatically; see the
``reconcile_settlements`` management command.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timezone as dt_timezone
from typing import Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from ledger import store
from ledger.errors import (
    InvalidInput,
    InvalidTransition,
    NotFound,
    RateLimited,
    ReconciliationRequired,
    SettlementFailed,
    SettlementUnavailable,
)
from .models import SettlementRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettlementOutcome:
    record: SettlementRecord
    transaction_id: str
    daily_total_after: int
    replayed: bool = False


def start_of_utc_day(now: Optional[datetime] = None) -> datetime:
    now = (now or timezone.now()).astimezone(dt_timezone.utc)
    return datetime.combine(now.date(), time.min, tzinfo=dt_timezone.utc)


def settled_today(account_id: int, now: Optional[datetime] = None) -> int:
    """Pending and confirmed amounts count against the window."""
    total = (
        SettlementRecord.objects.filter(
            account_id=account_id,
            created_at__gte=start_of_utc_day(now),
        )
        .exclude(status=SettlementRecord.STATUS_FAILED)
        .aggregate(total=Sum("amount"))["total"]
    )
    return total or 0


# ======================================================
# RESOLUTION (shared with reconcile_settlements)
# ======================================================
@transaction.atomic
def confirm(record_id: int, transaction_id: str) -> SettlementRecord:
    resolved = SettlementRecord.objects.filter(
        id=record_id,
        status=SettlementRecord.STATUS_PENDING,
    ).update(
        status=SettlementRecord.STATUS_CONFIRMED,
        transaction_id=transaction_id,
        resolved_at=timezone.now(),
    )
    if not resolved:
        raise InvalidTransition(f"Settlement {record_id} is not pending")
    return SettlementRecord.objects.select_related("account").get(id=record_id)


@transaction.atomic
def compensate(record_id: int, reason: str) -> SettlementRecord:
    """Re-credit a pending settlement and mark it failed."""
    try:
        record = SettlementRecord.objects.select_related("account").get(id=record_id)
    except SettlementRecord.DoesNotExist:
        raise NotFound(f"Settlement {record_id} not found")

    resolved = SettlementRecord.objects.filter(
        id=record_id,
        status=SettlementRecord.STATUS_PENDING,
    ).update(
        status=SettlementRecord.STATUS_FAILED,
        error=reason[:255],
        resolved_at=timezone.now(),
    )
    if not resolved:
        raise InvalidTransition(f"Settlement {record_id} is not pending")

    store.apply(record.account.key, store.credit("external_currency_balance", record.amount))

    logger.warning(
        "Compensated settlement %s: re-credited %s to %s (%s)",
        record_id, record.amount, record.account.key, reason,
    )
    record.refresh_from_db()
    return record


def recent_settlements(limit: int = 50):
    return SettlementRecord.objects.select_related("account").order_by("-id")[:limit]


# ======================================================
# BRIDGE
# ======================================================
class SettlementBridge:
    def __init__(self, service, memo: Optional[str] = None):
        self.service = service
        self.memo = memo or settings.SETTLEMENT_MEMO

    def _validate(self, amount):
        if not isinstance(amount, int) or amount < 1:
            raise InvalidInput("amount must be positive integer")
        if amount < settings.SETTLEMENT_MIN_AMOUNT:
            raise InvalidInput(f"min {settings.SETTLEMENT_MIN_AMOUNT} per request")
        if amount > settings.SETTLEMENT_MAX_PER_REQUEST:
            raise InvalidInput(f"max {settings.SETTLEMENT_MAX_PER_REQUEST} per request")

    def _replay(self, account_key: str, amount: int, request_id: str) -> Optional[SettlementOutcome]:
        record = (
            SettlementRecord.objects.select_related("account")
            .filter(request_id=request_id)
            .first()
        )
        if record is None:
            return None

        if record.account.key != account_key or record.amount != amount:
            raise InvalidInput("request_id already used for a different settlement")

        if record.status == SettlementRecord.STATUS_CONFIRMED:
            return SettlementOutcome(
                record=record,
                transaction_id=record.transaction_id,
                daily_total_after=settled_today(record.account_id),
                replayed=True,
            )
        if record.status == SettlementRecord.STATUS_PENDING:
            raise ReconciliationRequired(record_id=record.id, request_id=request_id)
        raise SettlementFailed(f"Request {request_id} already failed: {record.error}")

    def _debit(self, account_key: str, amount: int, request_id: Optional[str]) -> SettlementRecord:
        def mutation(account):
            already = settled_today(account.id)
            if already + amount > settings.SETTLEMENT_DAILY_LIMIT:
                raise RateLimited(
                    f"Daily limit exceeded. Already redeemed {already}, limit {settings.SETTLEMENT_DAILY_LIMIT}"
                )
            return store.debit("external_currency_balance", amount)(account)

        with transaction.atomic():
            account = store.apply(account_key, mutation)
            return SettlementRecord.objects.create(
                account=account,
                amount=amount,
                request_id=request_id,
                status=SettlementRecord.STATUS_PENDING,
            )

    def cash_out_external(self, account_key: str, amount: int, request_id: Optional[str] = None) -> SettlementOutcome:
        store.validate_key(account_key)
        self._validate(amount)

        if request_id:
            replay = self._replay(account_key, amount, request_id)
            if replay is not None:
                return replay

        try:
            record = self._debit(account_key, amount, request_id)
        except IntegrityError:
            # same request_id raced in from another worker
            replay = self._replay(account_key, amount, request_id) if request_id else None
            if replay is None:
                raise
            return replay

        logger.info("Settlement %s: debited %s from %s, calling service", record.id, amount, account_key)

        try:
            result = self.service.transfer(account_key, amount, self.memo)
        except (SettlementFailed, SettlementUnavailable) as e:
            compensate(record.id, e.message)
            raise
        except Exception as e:
            # the call returned, so no transfer id means no transfer
            logger.exception("Settlement %s: transfer raised, compensating", record.id)
            compensate(record.id, str(e) or type(e).__name__)
            raise SettlementUnavailable(f"Settlement service error: {type(e).__name__}")

        record = confirm(record.id, result.transaction_id)
        logger.info("Settlement %s confirmed: %s", record.id, result.transaction_id)

        return SettlementOutcome(
            record=record,
            transaction_id=result.transaction_id,
            daily_total_after=settled_today(record.account_id),
        )
