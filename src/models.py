from dataclasses import dataclass
from decimal import Context, Decimal, DivisionByZero, Inexact, InvalidOperation, Overflow, localcontext
from enum import Enum
from typing import Optional

MAX_CLIENT_ID = 0xFFFF
MAX_TRANSACTION_ID = 0xFFFFFFFFFFFFFFFF

# Balances are kept exact to this many significant digits. Any result that
# would need rounding or overflows raises Inexact instead.
LEDGER_PRECISION = 64
LEDGER_CONTEXT = Context(prec=LEDGER_PRECISION, traps=[InvalidOperation, DivisionByZero, Overflow, Inexact])


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class ProcessingResult(Enum):
    SUCCESS = "success"
    IGNORED = "ignored"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class HistoryEntry:
    """A deposit kept around so it can be disputed later."""

    amount: Decimal
    in_dispute: bool = False


@dataclass
class Account:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    locked: bool = False

    # Each helper computes both new values before assigning either, so an
    # Inexact raised by LEDGER_CONTEXT leaves the account untouched.

    def credit(self, amount: Decimal) -> None:
        with localcontext(LEDGER_CONTEXT):
            available = self.available + amount
            total = self.total + amount
        self.available, self.total = available, total

    def debit(self, amount: Decimal) -> None:
        with localcontext(LEDGER_CONTEXT):
            available = self.available - amount
            total = self.total - amount
        self.available, self.total = available, total

    def hold(self, amount: Decimal) -> None:
        with localcontext(LEDGER_CONTEXT):
            available = self.available - amount
            held = self.held + amount
        self.available, self.held = available, held

    def release_hold(self, amount: Decimal) -> None:
        with localcontext(LEDGER_CONTEXT):
            held = self.held - amount
            available = self.available + amount
        self.held, self.available = held, available

    def remove_held(self, amount: Decimal) -> None:
        with localcontext(LEDGER_CONTEXT):
            held = self.held - amount
            total = self.total - amount
        self.held, self.total = held, total


class ProcessingStats:
    """Counters for tracking what happened to each input row."""

    def __init__(self):
        self.applied = 0
        self.ignored = 0
        self.malformed = 0

    def record(self, result: ProcessingResult):
        if result == ProcessingResult.SUCCESS:
            self.applied += 1
        else:
            self.ignored += 1

    def record_malformed(self):
        self.malformed += 1

    def __repr__(self) -> str:
        return f"ProcessingStats(applied={self.applied}, ignored={self.ignored}, malformed={self.malformed})"
