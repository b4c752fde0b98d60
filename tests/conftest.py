from datetime import date, datetime, timezone

import pytest

from ledger.models import Account


@pytest.fixture
def make_account(db):
    def _make(key="alice", **fields):
        return Account.objects.create(key=key, **fields)
    return _make


@pytest.fixture
def fixed_now():
    return datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def today():
    return date(2024, 5, 2)
