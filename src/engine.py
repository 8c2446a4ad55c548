import logging
from typing import Iterable, List, Optional, Tuple

from ledger import Ledger
from models import (
    AccountSnapshot,
    Chargeback,
    ClientAccount,
    Deposit,
    DisputableEntry,
    Dispute,
    DisputeStatus,
    ProcessingResult,
    ProcessingStats,
    Resolve,
    Transaction,
    Withdrawal,
    describe,
)

logger = logging.getLogger(__name__)


class Engine:
    """
    Applies transactions to a ledger one at a time, in arrival order.

    Every rejected record is skipped and reported through the returned
    ProcessingResult; nothing here raises for bad business input.

    By default a dispute is refused when the deposit's funds are no longer
    fully available (they were withdrawn in the meantime), so available never
    goes negative. Pass allow_negative_available=True to place the hold anyway.
    """

    def __init__(self, ledger: Optional[Ledger] = None, allow_negative_available: bool = False):
        self._ledger = ledger if ledger is not None else Ledger()
        self._allow_negative_available = allow_negative_available
        self._stats = ProcessingStats()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process(self, transactions: Iterable[Transaction]) -> List[AccountSnapshot]:
        """Apply every transaction from a single-pass stream and snapshot the ledger."""
        for transaction in transactions:
            self.apply(transaction)
        return self._ledger.snapshot()

    def apply(self, transaction: Transaction) -> ProcessingResult:
        result = self._apply(transaction)
        self._stats.record(result)
        return result

    def _apply(self, transaction: Transaction) -> ProcessingResult:
        account = self._ledger.get_or_create(transaction.client_id)

        if account.locked:
            logger.info(f"{describe(transaction)}: account {account.client_id} is locked, ignoring")
            return ProcessingResult.LOCKED_ACCOUNT

        match transaction:
            case Deposit():
                return self._handle_deposit(transaction)
            case Withdrawal():
                return self._handle_withdrawal(transaction)
            case Dispute():
                return self._handle_dispute(account, transaction)
            case Resolve():
                return self._handle_resolve(transaction)
            case Chargeback():
                return self._handle_chargeback(transaction)
            case _:
                raise TypeError(f"unsupported transaction record: {transaction!r}")

    def _handle_deposit(self, transaction: Deposit) -> ProcessingResult:
        if transaction.amount < 0:
            logger.warning(f"Deposit tx {transaction.transaction_id}: invalid amount {transaction.amount}")
            return ProcessingResult.INVALID_AMOUNT

        if self._ledger.has_transaction(transaction.transaction_id):
            logger.warning(f"Deposit tx {transaction.transaction_id}: transaction id already used, ignoring")
            return ProcessingResult.DUPLICATE_TRANSACTION

        self._ledger.deposit(transaction.client_id, transaction.amount)
        self._ledger.record_deposit(transaction)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, transaction: Withdrawal) -> ProcessingResult:
        if transaction.amount < 0:
            logger.warning(f"Withdrawal tx {transaction.transaction_id}: invalid amount {transaction.amount}")
            return ProcessingResult.INVALID_AMOUNT

        if self._ledger.has_transaction(transaction.transaction_id):
            logger.warning(f"Withdrawal tx {transaction.transaction_id}: transaction id already used, ignoring")
            return ProcessingResult.DUPLICATE_TRANSACTION

        if not self._ledger.withdraw(transaction.client_id, transaction.amount):
            logger.info(f"Withdrawal tx {transaction.transaction_id}: insufficient funds for {transaction.amount}")
            return ProcessingResult.INSUFFICIENT_FUNDS

        self._ledger.record_withdrawal(transaction)
        return ProcessingResult.SUCCESS

    def _handle_dispute(self, account: ClientAccount, transaction: Dispute) -> ProcessingResult:
        entry, result = self._find_entry(transaction, DisputeStatus.CLEAN)
        if entry is None:
            return result

        if entry.amount > account.available and not self._allow_negative_available:
            logger.info(f"Dispute for tx {transaction.transaction_id}: {entry.amount} exceeds available {account.available}, funds already withdrawn")
            return ProcessingResult.INSUFFICIENT_FUNDS

        self._ledger.hold(entry.client_id, entry.amount)
        entry.status = DisputeStatus.DISPUTED
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, transaction: Resolve) -> ProcessingResult:
        entry, result = self._find_entry(transaction, DisputeStatus.DISPUTED)
        if entry is None:
            return result

        self._ledger.release(entry.client_id, entry.amount)
        entry.status = DisputeStatus.RESOLVED
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, transaction: Chargeback) -> ProcessingResult:
        entry, result = self._find_entry(transaction, DisputeStatus.DISPUTED)
        if entry is None:
            return result

        self._ledger.forfeit(entry.client_id, entry.amount)
        entry.status = DisputeStatus.CHARGED_BACK
        return ProcessingResult.SUCCESS

    def _find_entry(self, transaction: Transaction, expected: DisputeStatus) -> Tuple[Optional[DisputableEntry], ProcessingResult]:
        """Look up the deposit a dispute, resolve or chargeback refers to, if it is in the expected status."""
        label = transaction.transaction_type.value.capitalize()
        entry = self._ledger.get_entry(transaction.transaction_id)

        if entry is None:
            logger.info(f"{label} for tx {transaction.transaction_id}: no disputable deposit with this id")
            return None, ProcessingResult.UNKNOWN_REFERENCE

        if entry.client_id != transaction.client_id:
            logger.warning(f"{label} for tx {transaction.transaction_id}: client mismatch (expected {entry.client_id}, got {transaction.client_id})")
            return None, ProcessingResult.UNKNOWN_REFERENCE

        if entry.status is not expected:
            logger.info(f"{label} for tx {transaction.transaction_id}: transaction is {entry.status.value}, expected {expected.value}")
            return None, ProcessingResult.INVALID_STATE_TRANSITION

        return entry, ProcessingResult.SUCCESS
