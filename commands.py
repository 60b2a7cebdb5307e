"""
Chat command processing.

A line of text comes in, exactly one reply string goes out. Commands are
looked up in an ordered table by their leading keyword; everything the user
can get wrong is reported back as a reply, never raised to the transport.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Awaitable, Callable, Hashable

from finance_service import DEFAULT_CURRENCY, balance_alert, balance_message, format_currency
from ledger import LedgerStore, OutOfRange


logger = logging.getLogger(__name__)

COMMAND_PREFIX = "/"

# plain ASCII numbers only; underscores and non-ASCII digits are refused
AMOUNT_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?", re.ASCII)
INDEX_RE = re.compile(r"[+-]?\d+", re.ASCII)
MAX_AMOUNT_DIGITS = 15

ADD_FORMAT = "Please use format: /add <amount> <description>"
INVALID_AMOUNT = "Please enter a valid amount"
INVALID_INDEX = "Please provide a valid expense number"
INDEX_OUT_OF_RANGE = "Invalid expense number. Use /list to see your expenses."
MONEY_NOT_SET = "Please set your available money first using /money <amount>"
NO_EXPENSES = "No expenses recorded yet."
UNKNOWN_COMMAND = "Unknown command. Use /help to see available commands."
EXAMPLE = "Example: /add 500 Lunch at restaurant"

BotIdentity = Callable[[], Awaitable[str]]
Handler = Callable[[Hashable, list[str]], Awaitable[str]]


class ValidationError(Exception):
    """Malformed command arguments; the message is the reply for the user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class Command:
    name: str
    handler: Handler
    usage: str
    description: str
    in_help: bool = True


def parse_amount(token: str) -> Decimal:
    if not AMOUNT_RE.fullmatch(token):
        raise ValidationError(INVALID_AMOUNT)
    try:
        amount = Decimal(token)
    except InvalidOperation:
        raise ValidationError(INVALID_AMOUNT) from None
    # keeps every running total printable with cents in the default context
    if amount and amount.adjusted() >= MAX_AMOUNT_DIGITS:
        raise ValidationError(INVALID_AMOUNT)
    return amount


def parse_index(token: str) -> int:
    if not INDEX_RE.fullmatch(token):
        raise ValidationError(INVALID_INDEX)
    return int(token)


class CommandProcessor:
    def __init__(
        self,
        store: LedgerStore,
        bot_identity: BotIdentity,
        *,
        budget_tracking: bool = True,
        currency_symbol: str = DEFAULT_CURRENCY,
        unknown_command_help: bool = False,
    ) -> None:
        self.store = store
        self.bot_identity = bot_identity
        self.budget_tracking = budget_tracking
        self.currency_symbol = currency_symbol
        self.unknown_command_help = unknown_command_help
        self.commands = self._build_table()

    def _build_table(self) -> dict[str, Command]:
        table = [
            Command("start", self.cmd_start, "/start", "Start and show commands", in_help=False),
            Command("add", self.cmd_add, "/add <amount> <description>", "Add an expense"),
            Command("list", self.cmd_list, "/list", "View all your expenses"),
            Command("total", self.cmd_total, "/total", "Get total expenses"),
            Command("delete", self.cmd_delete, "/delete <expense_number>", "Delete an expense"),
        ]
        if self.budget_tracking:
            table += [
                Command("money", self.cmd_money, "/money <amount>", "Set your available money"),
                Command("balance", self.cmd_balance, "/balance", "Check your remaining balance"),
            ]
        table += [
            Command("invite", self.cmd_invite, "/invite", "Get bot invite link"),
            Command("help", self.cmd_help, "/help", "Show this help message"),
        ]
        return {command.name: command for command in table}

    def bot_commands(self) -> list[tuple[str, str]]:
        """(name, description) pairs for the transport's command menu."""
        return [(c.name, c.description) for c in self.commands.values()]

    def _command_list(self) -> str:
        lines = [f"{c.usage} - {c.description}" for c in self.commands.values() if c.in_help]
        return "\n".join(lines) + f"\n\n{EXAMPLE}"

    def welcome_text(self) -> str:
        return (
            "Welcome to Expense Tracker Bot! 💰\n\n"
            "Here are the available commands:\n" + self._command_list()
        )

    def help_text(self) -> str:
        return "Available commands:\n\n" + self._command_list()

    def _money(self, amount: Decimal) -> str:
        return format_currency(amount, self.currency_symbol)

    async def handle(self, user_id: Hashable, text: str | None) -> str:
        tokens = (text or "").split()
        if not tokens or not tokens[0].startswith(COMMAND_PREFIX):
            return self.help_text()

        # "/add@SomeBot" is how group chats address a specific bot
        keyword = tokens[0][len(COMMAND_PREFIX):].split("@", 1)[0]
        command = self.commands.get(keyword)
        if command is None:
            logger.debug("Unknown command %r from %s", tokens[0], user_id)
            return self.help_text() if self.unknown_command_help else UNKNOWN_COMMAND

        async with self.store.lock(user_id):
            try:
                return await command.handler(user_id, tokens[1:])
            except ValidationError as exc:
                logger.debug("Rejected /%s from %s: %s", keyword, user_id, exc.message)
                return exc.message
            except OutOfRange as exc:
                logger.debug("Rejected /%s from %s: %s", keyword, user_id, exc)
                return INDEX_OUT_OF_RANGE

    async def cmd_start(self, user_id: Hashable, args: list[str]) -> str:
        return self.welcome_text()

    async def cmd_help(self, user_id: Hashable, args: list[str]) -> str:
        return self.help_text()

    async def cmd_add(self, user_id: Hashable, args: list[str]) -> str:
        if len(args) < 2:
            raise ValidationError(ADD_FORMAT)
        amount = parse_amount(args[0])
        description = " ".join(args[1:])

        self.store.add_expense(user_id, amount, description)
        text = f"✅ Added expense:\nAmount: {self._money(amount)}\nDescription: {description}"
        if self.budget_tracking:
            text += "\n\n" + self._remaining(user_id)
        return text

    async def cmd_list(self, user_id: Hashable, args: list[str]) -> str:
        expenses = self.store.list_expenses(user_id)
        if not expenses:
            return NO_EXPENSES

        items = [
            f"{i}. {self._money(e.amount)} - {e.description}\n   {e.created_at:%d.%m.%Y}"
            for i, e in enumerate(expenses, start=1)
        ]
        return "📋 Your expenses:\n\n" + "\n\n".join(items)

    async def cmd_total(self, user_id: Hashable, args: list[str]) -> str:
        if not self.store.list_expenses(user_id):
            return NO_EXPENSES

        total = self.store.total_expenses(user_id)
        if not self.budget_tracking:
            return f"💰 Total expenses: {self._money(total)}"
        return balance_message(self.store.get_money(user_id), total, self.currency_symbol)

    async def cmd_delete(self, user_id: Hashable, args: list[str]) -> str:
        if not args:
            raise ValidationError(INVALID_INDEX)
        index = parse_index(args[0])

        exp = self.store.delete_expense(user_id, index)
        text = f"🗑️ Deleted expense:\nAmount: {self._money(exp.amount)}\nDescription: {exp.description}"
        if self.budget_tracking:
            text += "\n\n" + self._remaining(user_id, still=True)
        return text

    async def cmd_money(self, user_id: Hashable, args: list[str]) -> str:
        if not args:
            raise ValidationError(INVALID_AMOUNT)
        amount = parse_amount(args[0])

        self.store.set_money(user_id, amount)
        return balance_message(amount, self.store.total_expenses(user_id), self.currency_symbol)

    async def cmd_balance(self, user_id: Hashable, args: list[str]) -> str:
        if not self.store.has_money(user_id):
            return MONEY_NOT_SET
        return balance_message(
            self.store.get_money(user_id),
            self.store.total_expenses(user_id),
            self.currency_symbol,
        )

    async def cmd_invite(self, user_id: Hashable, args: list[str]) -> str:
        username = await self.bot_identity()
        return f"🤖 Invite others to use this bot!\n\nShare this link:\nhttps://t.me/{username}"

    def _remaining(self, user_id: Hashable, still: bool = False) -> str:
        available = self.store.get_money(user_id)
        total = self.store.total_expenses(user_id)
        alert = balance_alert(available, total, self.currency_symbol, still=still)
        return alert + f"Remaining Balance: {self._money(available - total)}"
