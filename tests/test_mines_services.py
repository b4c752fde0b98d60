import uuid
from decimal import Decimal

import pytest

from ledger import store
from ledger.errors import (
    AlreadyRevealed,
    InsufficientFunds,
    InvalidConfiguration,
    InvalidInput,
    InvalidTransition,
    NotFound,
)
from mines import services
from mines.models import WagerSession
from pool.models import Contribution

pytestmark = pytest.mark.django_db

HAZARDS = [0, 1, 2, 3, 4]


@pytest.fixture
def fixed_board(monkeypatch):
    monkeypatch.setattr(services, "place_hazards", lambda board_size, hazard_count: list(HAZARDS))


@pytest.fixture
def player(make_account):
    return make_account("alice", spendable_balance=1000)


def test_start_debits_stake(player, fixed_board):
    session = services.start("alice", 100, 5)

    assert session.status == WagerSession.STATUS_ACTIVE
    assert session.board_size == 25
    assert store.get("alice").spendable_balance == 900


def test_start_without_funds_creates_nothing(make_account):
    make_account("alice", spendable_balance=50)

    with pytest.raises(InsufficientFunds):
        services.start("alice", 100, 5)

    assert WagerSession.objects.count() == 0
    assert store.get("alice").spendable_balance == 50


@pytest.mark.parametrize("hazard_count", [0, 25, 30])
def test_start_rejects_bad_configuration_before_debit(player, hazard_count):
    with pytest.raises(InvalidConfiguration):
        services.start("alice", 100, hazard_count)

    assert store.get("alice").spendable_balance == 1000


@pytest.mark.parametrize("stake", [0, -5, 1.5, "10"])
def test_start_rejects_bad_stake(player, stake):
    with pytest.raises(InvalidInput):
        services.start("alice", stake, 5)


def test_view_hides_hazards_while_active(player, fixed_board):
    session = services.start("alice", 100, 5)

    state = services.session_state(session.id, "alice")

    assert "hazard_cells" not in state
    assert state["revealed_cells"] == []


def test_safe_reveal_raises_multiplier(player, fixed_board):
    session = services.start("alice", 100, 5)

    state = services.reveal(session.id, 10, "alice")

    assert state["hit_hazard"] is False
    assert state["revealed_cells"] == [10]
    assert state["multiplier"] == Decimal("1.2062")


def test_revealing_same_cell_twice_fails(player, fixed_board):
    session = services.start("alice", 100, 5)
    services.reveal(session.id, 10, "alice")

    with pytest.raises(AlreadyRevealed):
        services.reveal(session.id, 10, "alice")


def test_reveal_outside_board_fails(player, fixed_board):
    session = services.start("alice", 100, 5)

    with pytest.raises(InvalidInput):
        services.reveal(session.id, 25, "alice")


def test_hazard_reveal_loses_stake_and_burns_it_into_pool(player, fixed_board):
    session = services.start("alice", 100, 5)
    services.reveal(session.id, 10, "alice")

    state = services.reveal(session.id, 3, "alice")

    assert state["hit_hazard"] is True
    assert state["status"] == WagerSession.STATUS_LOST
    assert state["payout"] == 0
    assert state["hazard_cells"] == HAZARDS
    assert store.get("alice").spendable_balance == 900

    burn = Contribution.objects.get()
    assert burn.kind == Contribution.KIND_BURN
    assert burn.amount == 100

    with pytest.raises(InvalidTransition):
        services.reveal(session.id, 11, "alice")
    with pytest.raises(InvalidTransition):
        services.cash_out(session.id, "alice")


def test_cash_out_credits_truncated_payout(player, fixed_board):
    session = services.start("alice", 100, 5)
    services.reveal(session.id, 10, "alice")

    session = services.cash_out(session.id, "alice")

    assert session.status == WagerSession.STATUS_CASHED
    assert session.payout == 120
    assert store.get("alice").spendable_balance == 1000 - 100 + 120


def test_cash_out_without_reveals_returns_stake(player, fixed_board):
    session = services.start("alice", 100, 5)

    session = services.cash_out(session.id, "alice")

    assert session.payout == 100
    assert store.get("alice").spendable_balance == 1000


def test_second_cash_out_is_rejected_and_pays_nothing(player, fixed_board):
    session = services.start("alice", 100, 5)
    services.reveal(session.id, 10, "alice")
    services.cash_out(session.id, "alice")

    with pytest.raises(InvalidTransition):
        services.cash_out(session.id, "alice")

    assert store.get("alice").spendable_balance == 1020


def test_sessions_are_scoped_to_their_account(player, make_account, fixed_board):
    make_account("bob", spendable_balance=1000)
    session = services.start("alice", 100, 5)

    with pytest.raises(NotFound):
        services.reveal(session.id, 10, "bob")
    with pytest.raises(NotFound):
        services.cash_out(session.id, "bob")


def test_unknown_session_is_not_found(player):
    with pytest.raises(NotFound):
        services.session_state(uuid.uuid4(), "alice")
    with pytest.raises(NotFound):
        services.session_state("not-a-uuid", "alice")
