import logging
import threading
from decimal import Decimal
from typing import List, Optional

from errors import MalformedRecordError
from models import (
    AccountSnapshot,
    DisputeEntry,
    DisputeState,
    ProcessingResult,
    Transaction,
    TransactionType,
)
from state_manager import StateManager

logger = logging.getLogger(__name__)


class AccountLedger:
    """
    Applies transactions to client accounts, strictly in the order given.

    Business-rule failures (insufficient funds, unknown or foreign transaction
    references, reused ids, locked accounts) are reported as
    ProcessingResult.REJECTED and leave state untouched. Only contract
    violations raise.
    """

    def __init__(self, state: Optional[StateManager] = None):
        self._state = state if state is not None else StateManager()
        # Dispute and withdrawal checks are read-modify-write sequences.
        self._lock = threading.Lock()

    def apply(self, transaction: Transaction) -> ProcessingResult:
        """
        Apply a single transaction.

        Returns:
            APPLIED: state was updated
            REJECTED: transaction ignored, state unchanged

        Raises:
            MalformedRecordError: deposit or withdrawal without a valid amount
        """
        with self._lock:
            match transaction.transaction_type:
                case TransactionType.DEPOSIT:
                    return self._handle_deposit(transaction)
                case TransactionType.WITHDRAWAL:
                    return self._handle_withdrawal(transaction)
                case TransactionType.DISPUTE:
                    return self._handle_dispute(transaction)
                case TransactionType.RESOLVE:
                    return self._handle_resolve(transaction)
                case TransactionType.CHARGEBACK:
                    return self._handle_chargeback(transaction)
                case _:
                    raise MalformedRecordError(f"unsupported transaction type {transaction.transaction_type!r}")

    def snapshot(self) -> List[AccountSnapshot]:
        """Final state of every known account, in order of creation."""
        with self._lock:
            return [account.to_snapshot() for account in self._state.get_all_accounts()]

    def _check_funding(self, transaction: Transaction) -> bool:
        """Shared preconditions for deposits and withdrawals."""
        action = transaction.transaction_type.value.capitalize()
        if transaction.amount is None or transaction.amount < 0:
            raise MalformedRecordError(f"{action} tx {transaction.transaction_id}: invalid amount {transaction.amount}")

        if self._state.is_transaction_id_used(transaction.transaction_id):
            logger.warning(f"{action} tx {transaction.transaction_id}: transaction id already used")
            return False

        account = self._state.get_account(transaction.client_id)
        if account is not None and account.locked:
            logger.info(f"{action} tx {transaction.transaction_id}: account {transaction.client_id} is locked")
            return False

        return True

    def _handle_deposit(self, transaction: Transaction) -> ProcessingResult:
        if not self._check_funding(transaction):
            return ProcessingResult.REJECTED

        if transaction.amount == 0:
            logger.info(f"Deposit tx {transaction.transaction_id}: zero amount, skipping")
            return ProcessingResult.REJECTED

        account = self._state.get_or_create_account(transaction.client_id)
        account.credit(transaction.amount)
        self._state.mark_transaction_id_used(transaction.transaction_id)
        self._state.store_dispute_entry(
            transaction.transaction_id,
            DisputeEntry(client_id=transaction.client_id, amount=transaction.amount),
        )
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, transaction: Transaction) -> ProcessingResult:
        if not self._check_funding(transaction):
            return ProcessingResult.REJECTED

        account = self._state.get_account(transaction.client_id)
        available = account.available if account is not None else Decimal("0")
        if available < transaction.amount:
            logger.info(f"Withdrawal tx {transaction.transaction_id}: insufficient funds (available {available}, requested {transaction.amount})")
            return ProcessingResult.REJECTED

        account = self._state.get_or_create_account(transaction.client_id)
        account.debit(transaction.amount)
        self._state.mark_transaction_id_used(transaction.transaction_id)
        return ProcessingResult.APPLIED

    def _find_entry(self, transaction: Transaction, expected: DisputeState) -> Optional[DisputeEntry]:
        """Look up the referenced deposit and check it is in the expected state."""
        action = transaction.transaction_type.value.capitalize()
        entry = self._state.get_dispute_entry(transaction.transaction_id)

        if entry is None:
            logger.info(f"{action} for tx {transaction.transaction_id}: no disputable deposit with this id")
            return None

        if entry.client_id != transaction.client_id:
            logger.warning(f"{action} for tx {transaction.transaction_id}: client mismatch (expected {entry.client_id}, got {transaction.client_id})")
            return None

        if entry.state != expected:
            logger.info(f"{action} for tx {transaction.transaction_id}: transaction is {entry.state.value}, expected {expected.value}")
            return None

        return entry

    def _handle_dispute(self, transaction: Transaction) -> ProcessingResult:
        entry = self._find_entry(transaction, DisputeState.NORMAL)
        if entry is None:
            return ProcessingResult.REJECTED

        account = self._state.get_or_create_account(entry.client_id)
        account.hold(entry.amount)
        entry.state = DisputeState.DISPUTED
        return ProcessingResult.APPLIED

    def _handle_resolve(self, transaction: Transaction) -> ProcessingResult:
        entry = self._find_entry(transaction, DisputeState.DISPUTED)
        if entry is None:
            return ProcessingResult.REJECTED

        account = self._state.get_or_create_account(entry.client_id)
        account.release_hold(entry.amount)
        entry.state = DisputeState.NORMAL
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, transaction: Transaction) -> ProcessingResult:
        entry = self._find_entry(transaction, DisputeState.DISPUTED)
        if entry is None:
            return ProcessingResult.REJECTED

        account = self._state.get_or_create_account(entry.client_id)
        account.remove_held(entry.amount)
        account.lock()
        entry.state = DisputeState.CHARGED_BACK
        return ProcessingResult.APPLIED
