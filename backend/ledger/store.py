"""
Account ledger store.

Every balance change goes through ``apply``: the row is locked with
``select_for_update`` inside ``transaction.atomic`` and the mutation runs
against the locked copy, so mutations on one account never interleave.
A mutation that leaves any numeric field negative is rejected and the
transaction rolls back with nothing written.
"""
import logging
import re

from django.db import IntegrityError, transaction

from .errors import InsufficientFunds, InvalidInput, NotFound
from .models import Account

logger = logging.getLogger(__name__)

ACCOUNT_KEY_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

MUTABLE_FIELDS = [
    "spendable_balance",
    "reward_balance",
    "external_currency_balance",
    "accrual_rate",
    "upgrade_level",
    "owned_assets",
    "last_tick_time",
    "session_active",
    "updated_at",
]


def validate_key(account_key):
    if not isinstance(account_key, str) or not ACCOUNT_KEY_RE.match(account_key):
        raise InvalidInput("Invalid account key")
    return account_key


def get(account_key) -> Account:
    validate_key(account_key)
    try:
        return Account.objects.get(key=account_key)
    except Account.DoesNotExist:
        raise NotFound(f"Account {account_key} not found")


def upsert_default(account_key) -> Account:
    validate_key(account_key)
    try:
        with transaction.atomic():
            account, created = Account.objects.get_or_create(key=account_key)
    except IntegrityError:
        # lost the create race; the winner's row is there now
        return Account.objects.get(key=account_key)

    if created:
        logger.info("Created ledger account %s", account_key)
    return account


def check_invariants(account: Account):
    for field in Account.BALANCE_FIELDS:
        value = getattr(account, field)
        if not isinstance(value, int) or value < 0:
            raise InsufficientFunds(
                f"{field} would become {value}",
                account=account.key,
                field=field,
            )

    for field in Account.COUNTER_FIELDS:
        value = getattr(account, field)
        if not isinstance(value, int) or value < 0:
            raise InvalidInput(f"{field} must be a non-negative integer")

    if not isinstance(account.accrual_rate, int) or account.accrual_rate < 1:
        raise InvalidInput("accrual_rate must be at least 1")


@transaction.atomic
def apply(account_key, mutation_fn, create=False) -> Account:
    """
    Atomic read-modify-write of one account.

    ``mutation_fn`` receives the locked account and returns the next state
    (it may mutate and return the same instance). Errors raised by the
    mutation propagate and roll the transaction back.
    """
    validate_key(account_key)

    if create:
        upsert_default(account_key)

    try:
        account = Account.objects.select_for_update().get(key=account_key)
    except Account.DoesNotExist:
        raise NotFound(f"Account {account_key} not found")

    updated = mutation_fn(account)
    if updated is None:
        updated = account

    check_invariants(updated)
    updated.save(update_fields=MUTABLE_FIELDS)
    return updated


# ======================================================
# COMMON MUTATIONS
# ======================================================
def debit(field, amount):
    def mutation(account):
        current = getattr(account, field)
        if current < amount:
            raise InsufficientFunds(account=account.key, field=field)
        setattr(account, field, current - amount)
        return account

    return mutation


def credit(field, amount):
    def mutation(account):
        setattr(account, field, getattr(account, field) + amount)
        return account

    return mutation
