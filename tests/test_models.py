import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from errors import MalformedRecordError
from models import (
    MAX_AMOUNT,
    AccountSnapshot,
    ClientAccount,
    DisputeEntry,
    DisputeState,
    ProcessingResult,
    ProcessingStats,
    Transaction,
    TransactionType,
)


class TestTransaction:
    def test_create_deposit(self):
        transaction = Transaction(
            transaction_type=TransactionType.DEPOSIT,
            client_id=1,
            transaction_id=1,
            amount=Decimal("100.0"),
        )
        assert transaction.transaction_type == TransactionType.DEPOSIT
        assert transaction.client_id == 1
        assert transaction.transaction_id == 1
        assert transaction.amount == Decimal("100.0")

    def test_create_dispute_no_amount(self):
        transaction = Transaction(
            transaction_type=TransactionType.DISPUTE,
            client_id=1,
            transaction_id=1,
        )
        assert transaction.amount is None

    def test_immutable(self):
        transaction = Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=1, amount=Decimal("1"))
        with pytest.raises(AttributeError):
            transaction.amount = Decimal("2")

    @pytest.mark.parametrize("transaction_type", [TransactionType.DEPOSIT, TransactionType.WITHDRAWAL])
    def test_missing_amount_rejected(self, transaction_type):
        with pytest.raises(MalformedRecordError, match="missing amount"):
            Transaction(transaction_type, client_id=1, transaction_id=1)

    def test_negative_amount_rejected(self):
        with pytest.raises(MalformedRecordError, match="invalid amount"):
            Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=1, amount=Decimal("-1"))

    def test_nan_amount_rejected(self):
        with pytest.raises(MalformedRecordError):
            Transaction(TransactionType.WITHDRAWAL, client_id=1, transaction_id=1, amount=Decimal("NaN"))

    def test_amount_on_chargeback_rejected(self):
        with pytest.raises(MalformedRecordError, match="unexpected amount"):
            Transaction(TransactionType.CHARGEBACK, client_id=1, transaction_id=1, amount=Decimal("5"))

    def test_zero_amount_allowed(self):
        transaction = Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=1, amount=Decimal("0"))
        assert transaction.amount == Decimal("0")

    def test_amount_at_maximum_rejected(self):
        with pytest.raises(MalformedRecordError, match="exceeds maximum"):
            Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=1, amount=MAX_AMOUNT)

    def test_client_id_out_of_range(self):
        with pytest.raises(MalformedRecordError, match="client id"):
            Transaction(TransactionType.DISPUTE, client_id=65536, transaction_id=1)
        with pytest.raises(MalformedRecordError, match="client id"):
            Transaction(TransactionType.DISPUTE, client_id=-1, transaction_id=1)

    def test_transaction_id_out_of_range(self):
        with pytest.raises(MalformedRecordError, match="transaction id"):
            Transaction(TransactionType.DISPUTE, client_id=1, transaction_id=2**32)


class TestClientAccount:
    def test_default_values(self):
        account = ClientAccount(client_id=1)
        assert account.available == Decimal("0")
        assert account.held == Decimal("0")
        assert account.locked is False

    def test_total_property(self):
        account = ClientAccount(
            client_id=1,
            available=Decimal("100"),
            held=Decimal("50"),
        )
        assert account.total == Decimal("150")

    def test_hold_and_release(self):
        account = ClientAccount(client_id=1, available=Decimal("10"))
        account.hold(Decimal("4"))
        assert account.available == Decimal("6")
        assert account.held == Decimal("4")
        assert account.total == Decimal("10")

        account.release_hold(Decimal("4"))
        assert account.available == Decimal("10")
        assert account.held == Decimal("0")

    def test_to_snapshot(self):
        account = ClientAccount(client_id=7, available=Decimal("1.5"), held=Decimal("2"))
        account.lock()
        assert account.to_snapshot() == AccountSnapshot(
            client_id=7,
            available=Decimal("1.5"),
            held=Decimal("2"),
            total=Decimal("3.5"),
            locked=True,
        )


class TestDisputeEntry:
    def test_starts_normal(self):
        entry = DisputeEntry(client_id=1, amount=Decimal("10"))
        assert entry.state == DisputeState.NORMAL


class TestProcessingStats:
    def test_counts(self):
        stats = ProcessingStats()
        stats.record(ProcessingResult.APPLIED)
        stats.record(ProcessingResult.APPLIED)
        stats.record(ProcessingResult.REJECTED)
        assert stats.applied == 2
        assert stats.rejected == 1
        assert stats.processed == 3


class TestProcessingResult:
    def test_enum_values(self):
        assert ProcessingResult.APPLIED.value == "applied"
        assert ProcessingResult.REJECTED.value == "rejected"
