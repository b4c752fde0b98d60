# accrual/services.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from django.conf import settings
from django.utils import timezone

from ledger import store
from ledger.errors import InsufficientFunds, InvalidInput
from ledger.models import Account

logger = logging.getLogger(__name__)

ONE_SECOND = timedelta(seconds=1)


def accrue(account: Account, now: datetime) -> Account:
    """
    Credit whole elapsed seconds since the last tick.

    Sub-second remainders are carried: ``last_tick_time`` moves forward by
    exactly the seconds credited, never to ``now``.
    """
    if not account.session_active:
        return account

    if account.last_tick_time is None:
        account.last_tick_time = now
        return account

    elapsed_seconds = (now - account.last_tick_time) // ONE_SECOND
    if elapsed_seconds < 1:
        return account

    account.spendable_balance += elapsed_seconds * account.accrual_rate
    account.last_tick_time += elapsed_seconds * ONE_SECOND
    return account


def compute_rate(upgrade_level: int, owned_assets: int) -> int:
    return (
        settings.BASE_ACCRUAL_RATE
        + upgrade_level * settings.UPGRADE_RATE_STEP
        + owned_assets * settings.ASSET_RATE_BONUS
    )


def upgrade_cost(upgrade_level: int) -> int:
    return settings.UPGRADE_BASE_COST * (upgrade_level + 1)


# ======================================================
# OPERATIONS
# ======================================================
def tick(account_key: str, now: datetime | None = None) -> Account:
    now = now or timezone.now()
    return store.apply(account_key, lambda account: accrue(account, now))


def start_session(account_key: str, now: datetime | None = None) -> Account:
    now = now or timezone.now()

    def mutation(account):
        if account.session_active:
            # already running: settle instead of restarting the clock
            return accrue(account, now)
        account.session_active = True
        account.last_tick_time = now
        return account

    account = store.apply(account_key, mutation, create=True)
    logger.info("Accrual session started for %s (rate=%s)", account_key, account.accrual_rate)
    return account


def stop_session(account_key: str, now: datetime | None = None) -> Account:
    now = now or timezone.now()

    def mutation(account):
        accrue(account, now)
        account.session_active = False
        return account

    account = store.apply(account_key, mutation)
    logger.info("Accrual session stopped for %s (balance=%s)", account_key, account.spendable_balance)
    return account


def purchase_upgrade(account_key: str, now: datetime | None = None) -> Account:
    now = now or timezone.now()

    def mutation(account):
        # settle time already earned at the old rate
        accrue(account, now)

        cost = upgrade_cost(account.upgrade_level)
        if account.spendable_balance < cost:
            raise InsufficientFunds(f"Upgrade costs {cost}", account=account.key)

        account.spendable_balance -= cost
        account.upgrade_level += 1
        account.accrual_rate = compute_rate(account.upgrade_level, account.owned_assets)
        return account

    account = store.apply(account_key, mutation)
    logger.info("Account %s upgraded to level %s", account_key, account.upgrade_level)
    return account


def sync_asset_rate(account_key: str, owned_assets: int, now: datetime | None = None) -> Account:
    if not isinstance(owned_assets, int) or owned_assets < 0:
        raise InvalidInput("owned_assets must be a non-negative integer")
    now = now or timezone.now()

    def mutation(account):
        accrue(account, now)
        account.owned_assets = owned_assets
        account.accrual_rate = compute_rate(account.upgrade_level, owned_assets)
        return account

    return store.apply(account_key, mutation, create=True)
