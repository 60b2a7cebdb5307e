from __future__ import annotations

import asyncio
import datetime as dt
import logging
import weakref
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Hashable


logger = logging.getLogger(__name__)


class OutOfRange(Exception):
    """Raised when an expense number does not point at an existing record."""

    def __init__(self, index: int, count: int) -> None:
        super().__init__(f"expense number {index} is outside 1..{count}")
        self.index = index
        self.count = count


@dataclass(frozen=True)
class Expense:
    amount: Decimal
    description: str
    created_at: dt.datetime


@dataclass
class UserLedger:
    expenses: list[Expense] = field(default_factory=list)
    available_money: Decimal | None = None


class LedgerStore:
    """
    In-memory expense ledgers keyed by chat identifier.

    Ledgers are created lazily by the first mutating call for a user; reads
    never create one. Nothing survives a restart.
    """

    def __init__(self) -> None:
        self._ledgers: dict[Hashable, UserLedger] = {}
        # entries vanish once no command holds or waits on the lock
        self._locks: weakref.WeakValueDictionary[Hashable, asyncio.Lock] = weakref.WeakValueDictionary()

    def lock(self, user_id: Hashable) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    def _ledger(self, user_id: Hashable) -> UserLedger:
        ledger = self._ledgers.get(user_id)
        if ledger is None:
            ledger = self._ledgers[user_id] = UserLedger()
        return ledger

    def add_expense(self, user_id: Hashable, amount: Decimal, description: str) -> Expense:
        exp = Expense(
            amount=amount,
            description=description,
            created_at=dt.datetime.now(dt.timezone.utc),
        )
        self._ledger(user_id).expenses.append(exp)
        logger.info("User %s added expense %s (%s)", user_id, amount, description)
        return exp

    def list_expenses(self, user_id: Hashable) -> list[Expense]:
        ledger = self._ledgers.get(user_id)
        return list(ledger.expenses) if ledger else []

    def delete_expense(self, user_id: Hashable, index: int) -> Expense:
        ledger = self._ledgers.get(user_id)
        expenses = ledger.expenses if ledger else []
        if index < 1 or index > len(expenses):
            raise OutOfRange(index, len(expenses))
        exp = expenses.pop(index - 1)
        logger.info("User %s deleted expense #%s (%s)", user_id, index, exp.amount)
        return exp

    def total_expenses(self, user_id: Hashable) -> Decimal:
        return sum((e.amount for e in self.list_expenses(user_id)), Decimal(0))

    def set_money(self, user_id: Hashable, amount: Decimal) -> None:
        self._ledger(user_id).available_money = amount
        logger.info("User %s set available money to %s", user_id, amount)

    def get_money(self, user_id: Hashable) -> Decimal:
        ledger = self._ledgers.get(user_id)
        if ledger is None or ledger.available_money is None:
            return Decimal(0)
        return ledger.available_money

    def has_money(self, user_id: Hashable) -> bool:
        ledger = self._ledgers.get(user_id)
        return ledger is not None and ledger.available_money is not None
