from typing import Dict, List, Optional, Set

from models import ClientAccount, DisputeEntry


class StateManager:
    """
    In-memory account store owned by a single ledger.
    Holds client accounts, dispute bookkeeping for deposits, and the ids
    already consumed by deposits and withdrawals.
    """

    def __init__(self):
        # Insertion order doubles as snapshot order.
        self._accounts: Dict[int, ClientAccount] = {}
        self._dispute_entries: Dict[int, DisputeEntry] = {}
        self._used_transaction_ids: Set[int] = set()

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        """Return the account if it has been created."""
        return self._accounts.get(client_id)

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def is_transaction_id_used(self, transaction_id: int) -> bool:
        return transaction_id in self._used_transaction_ids

    def mark_transaction_id_used(self, transaction_id: int) -> None:
        self._used_transaction_ids.add(transaction_id)

    def store_dispute_entry(self, transaction_id: int, entry: DisputeEntry) -> None:
        """Store deposit bookkeeping for future dispute lookups."""
        self._dispute_entries[transaction_id] = entry

    def get_dispute_entry(self, transaction_id: int) -> Optional[DisputeEntry]:
        return self._dispute_entries.get(transaction_id)

    def get_all_accounts(self) -> List[ClientAccount]:
        """Return all accounts in creation order (for final output)."""
        return list(self._accounts.values())
