from decimal import Decimal
from typing import Dict, List, Optional, Set

from models import AccountSnapshot, ClientAccount, Deposit, DisputableEntry, Withdrawal


class Ledger:
    """
    Per-client account state plus the deposits eligible for dispute.
    Accounts are kept in first-seen order so snapshots are deterministic.
    Mutations on a locked account are ignored.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._entries: Dict[int, DisputableEntry] = {}
        self._withdrawal_ids: Set[int] = set()

    def get_or_create(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def deposit(self, client_id: int, amount: Decimal) -> None:
        account = self.get_or_create(client_id)
        if not account.locked:
            account.credit(amount)

    def withdraw(self, client_id: int, amount: Decimal) -> bool:
        """Debit available funds. Returns False if the account is locked or short."""
        account = self.get_or_create(client_id)
        if account.locked or account.available < amount:
            return False
        account.debit(amount)
        return True

    def hold(self, client_id: int, amount: Decimal) -> None:
        account = self.get_or_create(client_id)
        if not account.locked:
            account.hold(amount)

    def release(self, client_id: int, amount: Decimal) -> None:
        account = self.get_or_create(client_id)
        if not account.locked:
            account.release_hold(amount)

    def forfeit(self, client_id: int, amount: Decimal) -> None:
        """Remove held funds for a chargeback and lock the account."""
        account = self.get_or_create(client_id)
        if not account.locked:
            account.remove_held(amount)
            account.locked = True

    def record_deposit(self, deposit: Deposit) -> DisputableEntry:
        """Store deposit for future dispute lookups."""
        entry = DisputableEntry(
            transaction_id=deposit.transaction_id,
            client_id=deposit.client_id,
            amount=deposit.amount,
        )
        self._entries[deposit.transaction_id] = entry
        return entry

    def record_withdrawal(self, withdrawal: Withdrawal) -> None:
        # Withdrawals are not disputable, only the id is reserved.
        self._withdrawal_ids.add(withdrawal.transaction_id)

    def has_transaction(self, transaction_id: int) -> bool:
        return transaction_id in self._entries or transaction_id in self._withdrawal_ids

    def get_entry(self, transaction_id: int) -> Optional[DisputableEntry]:
        """Retrieve stored deposit entry by ID."""
        return self._entries.get(transaction_id)

    def accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts in first-seen order."""
        return dict(self._accounts)

    def snapshot(self) -> List[AccountSnapshot]:
        return [AccountSnapshot.from_account(account) for account in self._accounts.values()]
