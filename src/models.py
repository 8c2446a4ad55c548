from collections import Counter
from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_HALF_EVEN
from enum import Enum
from typing import Union

DISPLAY_PRECISION = Decimal("0.0001")

# Amounts are at most 29 integer digits and 28 places, so sums of any
# realistic stream stay exact well inside this precision.
LEDGER_CONTEXT = Context(prec=100)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class DisputeStatus(Enum):
    CLEAN = "clean"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


class ProcessingResult(Enum):
    SUCCESS = "success"
    UNKNOWN_REFERENCE = "unknown_reference"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INVALID_STATE_TRANSITION = "invalid_state_transition"
    LOCKED_ACCOUNT = "locked_account"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    INVALID_AMOUNT = "invalid_amount"


@dataclass(frozen=True)
class Deposit:
    client_id: int
    transaction_id: int
    amount: Decimal

    transaction_type = TransactionType.DEPOSIT


@dataclass(frozen=True)
class Withdrawal:
    client_id: int
    transaction_id: int
    amount: Decimal

    transaction_type = TransactionType.WITHDRAWAL


@dataclass(frozen=True)
class Dispute:
    client_id: int
    transaction_id: int

    transaction_type = TransactionType.DISPUTE


@dataclass(frozen=True)
class Resolve:
    client_id: int
    transaction_id: int

    transaction_type = TransactionType.RESOLVE


@dataclass(frozen=True)
class Chargeback:
    client_id: int
    transaction_id: int

    transaction_type = TransactionType.CHARGEBACK


Transaction = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]


def describe(transaction: Transaction) -> str:
    amount = getattr(transaction, "amount", None)
    text = f"{transaction.transaction_type.value}, client={transaction.client_id}, tx={transaction.transaction_id}"
    if amount is not None:
        text += f", amount={amount}"
    return f"Transaction({text})"


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return LEDGER_CONTEXT.add(self.available, self.held)

    def credit(self, amount: Decimal) -> None:
        self.available = LEDGER_CONTEXT.add(self.available, amount)

    def debit(self, amount: Decimal) -> None:
        self.available = LEDGER_CONTEXT.subtract(self.available, amount)

    def hold(self, amount: Decimal) -> None:
        self.debit(amount)
        self.held = LEDGER_CONTEXT.add(self.held, amount)

    def release_hold(self, amount: Decimal) -> None:
        self.held = LEDGER_CONTEXT.subtract(self.held, amount)
        self.credit(amount)

    def remove_held(self, amount: Decimal) -> None:
        self.held = LEDGER_CONTEXT.subtract(self.held, amount)


@dataclass
class DisputableEntry:
    """A deposit that later dispute, resolve and chargeback records can reference."""

    transaction_id: int
    client_id: int
    amount: Decimal
    status: DisputeStatus = DisputeStatus.CLEAN


@dataclass(frozen=True)
class AccountSnapshot:
    """
    Externalized account state, rounded to display precision.
    The total is summed from the rounded parts so the row always adds up.
    """

    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool

    @classmethod
    def from_account(cls, account: ClientAccount) -> "AccountSnapshot":
        available = round_for_display(account.available)
        held = round_for_display(account.held)
        return cls(
            client_id=account.client_id,
            available=available,
            held=held,
            total=round_for_display(LEDGER_CONTEXT.add(available, held)),
            locked=account.locked,
        )


def round_for_display(value: Decimal) -> Decimal:
    rounded = value.quantize(DISPLAY_PRECISION, rounding=ROUND_HALF_EVEN, context=LEDGER_CONTEXT)
    # -0.0000 prints with its sign
    if rounded.is_zero():
        return rounded.copy_abs()
    return rounded


class ProcessingStats:
    """Counters for tracking processing outcomes over one run."""

    def __init__(self):
        self._counts: Counter = Counter()

    def record(self, result: ProcessingResult) -> None:
        self._counts[result] += 1

    def count(self, result: ProcessingResult) -> int:
        return self._counts[result]

    @property
    def processed(self) -> int:
        return self._counts[ProcessingResult.SUCCESS]

    @property
    def ignored(self) -> int:
        return sum(self._counts.values()) - self.processed

    def summary(self) -> str:
        parts = [f"Processed: {self.processed}", f"Ignored: {self.ignored}"]
        for result in ProcessingResult:
            if result is not ProcessingResult.SUCCESS and self._counts[result]:
                parts.append(f"{result.value}: {self._counts[result]}")
        return ", ".join(parts)
