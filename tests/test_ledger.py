"""Tests for the in-memory ledger store."""

import datetime as dt
import gc
from decimal import Decimal

import pytest

from ledger import LedgerStore, OutOfRange


@pytest.fixture
def store():
    return LedgerStore()


class TestLedgerStore:
    """Ledger mutation and queries."""

    def test_fresh_user_is_empty(self, store):
        assert store.list_expenses(1) == []
        assert store.total_expenses(1) == Decimal(0)
        assert store.get_money(1) == Decimal(0)
        assert not store.has_money(1)

    def test_reads_do_not_create_ledger(self, store):
        store.list_expenses(1)
        store.get_money(1)
        assert store._ledgers == {}

    def test_add_keeps_insertion_order(self, store):
        store.add_expense(1, Decimal("10"), "Tea")
        store.add_expense(1, Decimal("20"), "Bus ticket")
        assert [e.description for e in store.list_expenses(1)] == ["Tea", "Bus ticket"]

    def test_add_stamps_current_time(self, store):
        before = dt.datetime.now(dt.timezone.utc)
        exp = store.add_expense(1, Decimal("10"), "Tea")
        assert before <= exp.created_at <= dt.datetime.now(dt.timezone.utc)

    def test_users_are_isolated(self, store):
        store.add_expense(1, Decimal("10"), "Tea")
        store.set_money(2, Decimal("100"))
        assert store.list_expenses(2) == []
        assert store.get_money(1) == Decimal(0)

    def test_list_returns_copy(self, store):
        store.add_expense(1, Decimal("10"), "Tea")
        store.list_expenses(1).clear()
        assert len(store.list_expenses(1)) == 1

    def test_total_tracks_adds_and_deletes(self, store):
        for amount in ("10.10", "20.20", "-5", "0.3"):
            store.add_expense(1, Decimal(amount), "x")
        store.delete_expense(1, 2)
        assert store.total_expenses(1) == Decimal("5.40")

    def test_delete_removes_exact_record_and_shifts(self, store):
        for name in ("a", "b", "c", "d"):
            store.add_expense(1, Decimal("1"), name)
        deleted = store.delete_expense(1, 2)
        assert deleted.description == "b"
        assert [e.description for e in store.list_expenses(1)] == ["a", "c", "d"]

    @pytest.mark.parametrize("index", [0, -1, 4, 100])
    def test_delete_out_of_range(self, store, index):
        for name in ("a", "b", "c"):
            store.add_expense(1, Decimal("1"), name)
        with pytest.raises(OutOfRange):
            store.delete_expense(1, index)
        assert len(store.list_expenses(1)) == 3

    def test_delete_on_unknown_user(self, store):
        with pytest.raises(OutOfRange) as excinfo:
            store.delete_expense(99, 1)
        assert excinfo.value.count == 0

    def test_set_money_overwrites(self, store):
        store.set_money(1, Decimal("500"))
        store.set_money(1, Decimal("300"))
        assert store.get_money(1) == Decimal("300")
        assert store.has_money(1)

    def test_money_set_to_zero_counts_as_set(self, store):
        store.set_money(1, Decimal("0"))
        assert store.has_money(1)

    def test_lock_is_per_user(self, store):
        lock = store.lock(1)
        assert store.lock(1) is lock
        assert store.lock(2) is not lock

    def test_unused_locks_are_dropped(self, store):
        lock = store.lock(1)
        assert len(store._locks) == 1
        del lock
        gc.collect()
        assert len(store._locks) == 0
