"""
Daily pooled rewards.

Contributions land in the current UTC day. Once a day is over its fixed
reward budget is split among contributors in proportion to what they put in.
The ``(account, day)`` unique constraint on ``RewardAward`` is what makes
distribution at-most-once: the credit and the award row are written in one
savepoint and the insert is the commit point, so a caller that loses the race
rolls its credit back.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone as dt_timezone
from typing import Dict, List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from ledger import store
from ledger.errors import AlreadyClaimed, InvalidInput, NotFound
from ledger.models import Account
from .models import Contribution, RewardAward

logger = logging.getLogger(__name__)


def utc_today(now: Optional[datetime] = None) -> date:
    now = now or timezone.now()
    return now.astimezone(dt_timezone.utc).date()


@dataclass
class DistributionResult:
    day: date
    pool_size: int
    day_total: int = 0
    awarded: Dict[str, int] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)

    @property
    def total_credited(self) -> int:
        return sum(self.awarded.values())


# ======================================================
# CONTRIBUTIONS
# ======================================================
def append_contribution(account: Account, amount: int, kind: str, day: Optional[date] = None) -> Contribution:
    """Append a row for an already-debited amount. Caller owns the transaction."""
    return Contribution.objects.create(
        account=account,
        amount=amount,
        kind=kind,
        day=day or utc_today(),
    )


def record_contribution(account_key: str, amount: int) -> Contribution:
    if not isinstance(amount, int) or amount < 1:
        raise InvalidInput("Contribution must be a positive integer")

    with transaction.atomic():
        account = store.apply(account_key, store.debit("spendable_balance", amount))
        contribution = append_contribution(account, amount, Contribution.KIND_SUBMIT)

    logger.info("Contribution of %s by %s for %s", amount, account_key, contribution.day)
    return contribution


def day_contributions(day: date) -> Dict[str, int]:
    rows = (
        Contribution.objects.filter(day=day)
        .values("account__key")
        .annotate(total=Sum("amount"))
        .order_by("account__key")
    )
    return {row["account__key"]: row["total"] for row in rows}


# ======================================================
# SHARES
# ======================================================
def compute_shares(contributions: Dict[str, int], pool_size: int) -> Dict[str, int]:
    """
    share = round_half_up(amount / total * pool_size), capped at pool_size.

    Rounding up several shares can push the sum past the pool; the excess is
    taken back one unit at a time from the shares that were rounded up the
    most (ties broken by account key), so the total never exceeds the pool.
    """
    total = sum(contributions.values())
    if total <= 0 or pool_size <= 0:
        return {key: 0 for key in contributions}

    shares = {}
    rounding_up = {}
    for key, amount in contributions.items():
        scaled = amount * pool_size
        # integer round-half-up of scaled / total
        share = (2 * scaled + total) // (2 * total)
        shares[key] = min(share, pool_size)
        rounding_up[key] = shares[key] * total - scaled

    excess = sum(shares.values()) - pool_size
    if excess > 0:
        order = sorted(shares, key=lambda k: (-rounding_up[k], k))
        for key in order:
            if excess <= 0:
                break
            if shares[key] > 0:
                shares[key] -= 1
                excess -= 1

    return shares


# ======================================================
# DISTRIBUTION
# ======================================================
def _award(account_key: str, day: date, contribution: int, day_total: int, pool_size: int, share: int) -> bool:
    try:
        with transaction.atomic():
            account = store.apply(account_key, store.credit("reward_balance", share))
            RewardAward.objects.create(
                account=account,
                day=day,
                contribution=contribution,
                day_total=day_total,
                pool_size=pool_size,
                share=share,
            )
    except IntegrityError:
        logger.warning("Award for %s on %s already recorded by another caller", account_key, day)
        return False
    return True


def unawarded_shares(day: date, contributions: Dict[str, int], pool_size: int):
    """
    Shares for contributors of ``day`` that have no award yet.

    They split only what earlier awards left of the pool, so a contribution
    that lands in a day after part of it was paid out cannot push the day's
    total credit past ``pool_size``. Returns ``(awarded, shares)`` where
    ``awarded`` maps already-awarded keys to their recorded share.
    """
    awarded = dict(
        RewardAward.objects.filter(day=day).values_list("account__key", "share")
    )
    remaining = max(pool_size - sum(awarded.values()), 0)
    pending = {key: amount for key, amount in contributions.items() if key not in awarded}
    return awarded, compute_shares(pending, remaining)


def distribute(day: date, today: Optional[date] = None, pool_size: Optional[int] = None) -> DistributionResult:
    today = today or utc_today()
    pool_size = settings.POOL_DAILY_REWARD if pool_size is None else pool_size

    if day >= today:
        raise InvalidInput("Only past days can be distributed")

    result = DistributionResult(day=day, pool_size=pool_size)

    # one writer per sweep: awards already made and the remainder are read
    # and spent without another distributor interleaving
    with transaction.atomic():
        contributions = day_contributions(day)
        result.day_total = sum(contributions.values())
        if not contributions or result.day_total == 0:
            return result

        awarded, shares = unawarded_shares(day, contributions, pool_size)

        for account_key, amount in contributions.items():
            if account_key in awarded:
                result.skipped.append(account_key)
                continue

            share = shares[account_key]
            if _award(account_key, day, amount, result.day_total, pool_size, share):
                result.awarded[account_key] = share
            else:
                result.skipped.append(account_key)

    if result.awarded:
        logger.info(
            "Distributed pool for %s: %s accounts, %s of %s credited",
            day, len(result.awarded), result.total_credited, pool_size,
        )
    return result


def outstanding_days(today: Optional[date] = None) -> List[date]:
    """Past days with at least one contributor that has no award row yet."""
    today = today or utc_today()

    contributed = set(
        Contribution.objects.filter(day__lt=today)
        .values_list("day", "account_id")
        .distinct()
    )
    awarded = set(
        RewardAward.objects.filter(day__lt=today).values_list("day", "account_id")
    )
    return sorted({day for day, account_id in contributed - awarded})


def distribute_outstanding(today: Optional[date] = None) -> List[DistributionResult]:
    today = today or utc_today()
    return [distribute(day, today=today) for day in outstanding_days(today)]


# ======================================================
# STATUS / REDEEM
# ======================================================
def query_pool_status(day: date, account_key: Optional[str] = None, today: Optional[date] = None) -> dict:
    today = today or utc_today()
    if account_key is not None:
        store.validate_key(account_key)

    # lazy path: settle every finished day before answering
    distribute_outstanding(today)

    pool_size = settings.POOL_DAILY_REWARD
    contributions = day_contributions(day)
    day_total = sum(contributions.values())

    status = {
        "day": day,
        "pool_size": pool_size,
        "day_total": day_total,
        "contributors": len(contributions),
        "distributed": day < today and day_total > 0,
        "is_open": day == today,
    }

    if account_key is not None:
        award = RewardAward.objects.filter(day=day, account__key=account_key).first()
        if award is not None:
            share = award.share
        else:
            share = unawarded_shares(day, contributions, pool_size)[1].get(account_key, 0)

        status.update({
            "account": account_key,
            "contribution": contributions.get(account_key, 0),
            "share": share,
            "awarded": award is not None,
        })

    return status


def claim_reward(account_key: str, day: date, today: Optional[date] = None) -> RewardAward:
    today = today or utc_today()
    store.validate_key(account_key)

    if day >= today:
        raise InvalidInput("Only past days can be claimed")

    contributions = day_contributions(day)
    if account_key not in contributions:
        raise NotFound(f"No contribution from {account_key} on {day}")

    pool_size = settings.POOL_DAILY_REWARD
    day_total = sum(contributions.values())

    with transaction.atomic():
        awarded, shares = unawarded_shares(day, contributions, pool_size)
        if account_key in awarded:
            raise AlreadyClaimed(day=day)

        share = shares[account_key]
        if not _award(account_key, day, contributions[account_key], day_total, pool_size, share):
            raise AlreadyClaimed(day=day)

    logger.info("Reward for %s on %s claimed: %s", account_key, day, share)
    return RewardAward.objects.select_related("account").get(day=day, account__key=account_key)


def redeem_rewards(account_key: str, amount: int) -> Account:
    """Move pool rewards into the externally settleable balance, 1:1."""
    if not isinstance(amount, int) or amount < 1:
        raise InvalidInput("Amount must be a positive integer")

    def mutation(account):
        store.debit("reward_balance", amount)(account)
        account.external_currency_balance += amount
        return account

    account = store.apply(account_key, mutation)
    logger.info("Redeemed %s rewards for %s", amount, account_key)
    return account
