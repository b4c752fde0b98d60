"""
Threaded checks against a file-backed test database. Every thread opens its
own connection, so the SQLite write lock is what serializes them.
"""
import random
import threading
from datetime import date

import pytest
from django.db import connection

from ledger import store
from ledger.errors import AlreadyClaimed, InsufficientFunds
from ledger.models import Account
from pool import services as pool_services
from pool.models import Contribution, RewardAward

pytestmark = pytest.mark.django_db(transaction=True)

DAY = date(2024, 5, 1)
TODAY = date(2024, 5, 2)


def run_threads(target, count):
    barrier = threading.Barrier(count)
    errors = []

    def worker(index):
        try:
            barrier.wait()
            target(index)
        except Exception as e:
            errors.append(e)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return errors


def test_parallel_distribution_awards_each_account_once():
    for key, amount in (("alice", 1), ("bob", 2), ("carol", 3)):
        account = store.upsert_default(key)
        pool_services.append_contribution(account, amount, Contribution.KIND_SUBMIT, day=DAY)

    results = []
    errors = run_threads(lambda i: results.append(pool_services.distribute(DAY, today=TODAY)), 6)

    assert errors == []
    assert sum(r.total_credited for r in results) == 1000
    assert RewardAward.objects.filter(day=DAY).count() == 3
    assert sum(a.reward_balance for a in Account.objects.all()) == 1000


def test_parallel_claims_and_sweeps_stay_within_pool():
    for key, amount in (("alice", 1), ("bob", 1), ("carol", 1)):
        account = store.upsert_default(key)
        pool_services.append_contribution(account, amount, Contribution.KIND_SUBMIT, day=DAY)

    def claim_or_sweep(index):
        if index % 2:
            pool_services.distribute(DAY, today=TODAY)
            return
        try:
            pool_services.claim_reward(["alice", "bob", "carol"][index % 3], DAY, today=TODAY)
        except AlreadyClaimed:
            pass

    errors = run_threads(claim_or_sweep, 6)

    assert errors == []
    assert RewardAward.objects.filter(day=DAY).count() == 3
    assert sum(a.reward_balance for a in Account.objects.all()) <= 1000


def test_parallel_random_mutations_never_overdraw():
    store.upsert_default("alice")
    store.apply("alice", store.credit("spendable_balance", 100))

    applied = []
    lock = threading.Lock()

    def mutate(index):
        rng = random.Random(index)
        for _ in range(25):
            amount = rng.randint(1, 30)
            if rng.random() < 0.4:
                store.apply("alice", store.credit("spendable_balance", amount))
                delta = amount
            else:
                try:
                    store.apply("alice", store.debit("spendable_balance", amount))
                except InsufficientFunds:
                    continue
                delta = -amount
            with lock:
                applied.append(delta)

    errors = run_threads(mutate, 8)

    assert errors == []
    balance = store.get("alice").spendable_balance
    assert balance >= 0
    assert balance == 100 + sum(applied)
