from datetime import date, timedelta

import pytest

from ledger import store
from ledger.errors import AlreadyClaimed, InsufficientFunds, InvalidInput, NotFound
from pool import services
from pool.models import Contribution, RewardAward

pytestmark = pytest.mark.django_db

DAY = date(2024, 5, 1)


@pytest.fixture
def contribute(make_account):
    def _contribute(key, amount, day=DAY):
        account = store.upsert_default(key)
        return services.append_contribution(account, amount, Contribution.KIND_SUBMIT, day=day)
    return _contribute


# ======================================================
# SHARES
# ======================================================
def test_shares_split_pool_proportionally():
    assert services.compute_shares({"a": 1, "b": 2}, 1000) == {"a": 333, "b": 667}


def test_single_contributor_takes_whole_pool():
    assert services.compute_shares({"a": 7}, 1000) == {"a": 1000}


def test_rounding_never_exceeds_pool():
    shares = services.compute_shares({"a": 1, "b": 1}, 1)
    assert sum(shares.values()) == 1
    assert shares == {"a": 0, "b": 1}

    shares = services.compute_shares({"a": 1, "b": 1, "c": 1}, 1)
    assert shares == {"a": 0, "b": 0, "c": 0}


@pytest.mark.parametrize("amounts, pool_size", [
    ({"a": 5, "b": 5, "c": 5, "d": 5}, 10),
    ({"a": 1, "b": 3, "c": 5, "d": 7}, 999),
    ({"a": 2, "b": 2, "c": 2}, 5),
])
def test_share_total_is_bounded_by_pool(amounts, pool_size):
    shares = services.compute_shares(amounts, pool_size)
    assert 0 <= sum(shares.values()) <= pool_size
    assert all(0 <= share <= pool_size for share in shares.values())


def test_empty_or_zero_pool_yields_no_shares():
    assert services.compute_shares({}, 1000) == {}
    assert services.compute_shares({"a": 5}, 0) == {"a": 0}


# ======================================================
# CONTRIBUTIONS
# ======================================================
def test_record_contribution_debits_spendable(make_account):
    make_account("alice", spendable_balance=50)

    contribution = services.record_contribution("alice", 20)

    assert contribution.amount == 20
    assert contribution.day == services.utc_today()
    assert store.get("alice").spendable_balance == 30


def test_record_contribution_without_funds_writes_nothing(make_account):
    make_account("alice", spendable_balance=5)

    with pytest.raises(InsufficientFunds):
        services.record_contribution("alice", 20)

    assert Contribution.objects.count() == 0


def test_record_contribution_rejects_non_positive_amount(make_account):
    make_account("alice", spendable_balance=5)

    with pytest.raises(InvalidInput):
        services.record_contribution("alice", 0)


def test_contributions_are_summed_per_account(contribute):
    contribute("alice", 3)
    contribute("alice", 4)
    contribute("bob", 1)
    contribute("carol", 9, day=DAY + timedelta(days=1))

    assert services.day_contributions(DAY) == {"alice": 7, "bob": 1}


# ======================================================
# DISTRIBUTION
# ======================================================
def test_distribute_credits_reward_balances(contribute, today):
    contribute("alice", 1)
    contribute("bob", 2)

    result = services.distribute(DAY, today=today)

    assert result.awarded == {"alice": 333, "bob": 667}
    assert result.total_credited == 1000
    assert store.get("alice").reward_balance == 333
    assert store.get("bob").reward_balance == 667
    assert RewardAward.objects.filter(day=DAY).count() == 2


def test_distribute_twice_credits_once(contribute, today):
    contribute("alice", 1)
    contribute("bob", 2)

    services.distribute(DAY, today=today)
    again = services.distribute(DAY, today=today)

    assert again.awarded == {}
    assert sorted(again.skipped) == ["alice", "bob"]
    assert store.get("alice").reward_balance == 333
    assert store.get("bob").reward_balance == 667


def test_zero_share_contributors_still_get_an_award_row(contribute, today):
    contribute("alice", 1)
    contribute("bob", 1)
    contribute("carol", 1)

    result = services.distribute(DAY, today=today, pool_size=1)

    assert result.awarded == {"alice": 0, "bob": 0, "carol": 0}
    assert RewardAward.objects.filter(day=DAY).count() == 3
    assert services.outstanding_days(today) == []


def test_losing_award_race_rolls_back_credit(contribute):
    contribute("alice", 5)
    account = store.get("alice")
    RewardAward.objects.create(
        account=account, day=DAY, contribution=5, day_total=5, pool_size=1000, share=1000,
    )

    assert services._award("alice", DAY, 5, 5, 1000, 1000) is False
    assert store.get("alice").reward_balance == 0
    assert RewardAward.objects.filter(account=account, day=DAY).count() == 1


@pytest.mark.parametrize("offset", [0, 1])
def test_current_and_future_days_cannot_be_distributed(contribute, today, offset):
    day = today + timedelta(days=offset)
    contribute("alice", 5, day=day)

    with pytest.raises(InvalidInput):
        services.distribute(day, today=today)

    assert store.get("alice").reward_balance == 0


def test_day_without_contributions_distributes_nothing(today):
    result = services.distribute(DAY, today=today)

    assert result.day_total == 0
    assert result.awarded == {}


def test_outstanding_days_cover_the_whole_backlog(contribute, today):
    older = DAY - timedelta(days=3)
    contribute("alice", 2, day=older)
    contribute("bob", 2, day=DAY)
    contribute("carol", 2, day=today)

    assert services.outstanding_days(today) == [older, DAY]

    results = services.distribute_outstanding(today)

    assert [r.day for r in results] == [older, DAY]
    assert services.outstanding_days(today) == []
    assert store.get("alice").reward_balance == 1000
    assert store.get("bob").reward_balance == 1000
    assert store.get("carol").reward_balance == 0


def test_late_contribution_cannot_overpay_a_distributed_day(contribute, today):
    contribute("alice", 100)
    services.distribute(DAY, today=today)

    # committed into the bucket after the sweep already paid it out
    contribute("bob", 100)
    result = services.distribute(DAY, today=today)

    assert result.awarded == {"bob": 0}
    assert sum(RewardAward.objects.filter(day=DAY).values_list("share", flat=True)) == 1000
    assert store.get("alice").reward_balance == 1000
    assert store.get("bob").reward_balance == 0


def test_late_contributors_split_only_the_remainder(contribute, today):
    contribute("alice", 1)
    contribute("bob", 1)
    contribute("carol", 1)
    services.distribute(DAY, today=today)

    contribute("dave", 3)
    contribute("erin", 1)
    result = services.distribute(DAY, today=today)

    # 333 * 3 already paid; one unit left
    assert result.total_credited == 1
    assert sum(RewardAward.objects.filter(day=DAY).values_list("share", flat=True)) == 1000


# ======================================================
# STATUS / REDEEM
# ======================================================
def test_status_distributes_finished_days_lazily(contribute, today):
    contribute("alice", 1)
    contribute("bob", 2)

    status = services.query_pool_status(DAY, "alice", today=today)

    assert status["distributed"] is True
    assert status["is_open"] is False
    assert status["day_total"] == 3
    assert status["contributors"] == 2
    assert status["contribution"] == 1
    assert status["share"] == 333
    assert status["awarded"] is True
    assert store.get("alice").reward_balance == 333


def test_status_for_open_day_projects_share(contribute, today):
    contribute("alice", 1, day=today)
    contribute("bob", 3, day=today)

    status = services.query_pool_status(today, "bob", today=today)

    assert status["is_open"] is True
    assert status["distributed"] is False
    assert status["share"] == 750
    assert status["awarded"] is False
    assert store.get("bob").reward_balance == 0


def test_status_for_non_contributor(contribute, today):
    contribute("alice", 1)

    status = services.query_pool_status(DAY, "dave", today=today)

    assert status["contribution"] == 0
    assert status["share"] == 0
    assert status["awarded"] is False


def test_status_rejects_malformed_account_key(today):
    with pytest.raises(InvalidInput):
        services.query_pool_status(DAY, "bad key!", today=today)


def test_redeem_moves_rewards_to_external_balance(make_account):
    make_account("alice", reward_balance=10)

    account = services.redeem_rewards("alice", 4)

    assert account.reward_balance == 6
    assert account.external_currency_balance == 4


def test_redeem_more_than_earned_fails(make_account):
    make_account("alice", reward_balance=3)

    with pytest.raises(InsufficientFunds):
        services.redeem_rewards("alice", 4)

    account = store.get("alice")
    assert account.reward_balance == 3
    assert account.external_currency_balance == 0


# ======================================================
# CLAIM
# ======================================================
def test_claim_credits_own_share_only(contribute, today):
    contribute("alice", 1)
    contribute("bob", 2)

    award = services.claim_reward("alice", DAY, today=today)

    assert award.share == 333
    assert award.day_total == 3
    assert store.get("alice").reward_balance == 333
    assert store.get("bob").reward_balance == 0
    assert services.outstanding_days(today) == [DAY]


def test_second_claim_is_rejected(contribute, today):
    contribute("alice", 1)
    services.claim_reward("alice", DAY, today=today)

    with pytest.raises(AlreadyClaimed):
        services.claim_reward("alice", DAY, today=today)

    assert store.get("alice").reward_balance == 1000


def test_claim_after_sweep_is_rejected(contribute, today):
    contribute("alice", 1)
    contribute("bob", 2)
    services.distribute(DAY, today=today)

    with pytest.raises(AlreadyClaimed):
        services.claim_reward("bob", DAY, today=today)

    assert store.get("bob").reward_balance == 667


def test_sweep_after_claim_skips_claimed_account(contribute, today):
    contribute("alice", 1)
    contribute("bob", 2)
    services.claim_reward("bob", DAY, today=today)

    result = services.distribute(DAY, today=today)

    assert result.awarded == {"alice": 333}
    assert result.skipped == ["bob"]
    assert store.get("bob").reward_balance == 667


def test_claim_requires_contribution_and_finished_day(contribute, today):
    contribute("alice", 1, day=today)

    with pytest.raises(NotFound):
        services.claim_reward("bob", DAY, today=today)
    with pytest.raises(InvalidInput):
        services.claim_reward("alice", today, today=today)
