from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from errors import MalformedRecordError

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1
# Amounts stay below 10**15 with 4 fractional digits, so balances keep exact
# under the default 28-digit decimal context.
MAX_AMOUNT = Decimal(10) ** 15
FOUR_PLACES = Decimal("0.0001")


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    APPLIED = "applied"
    REJECTED = "rejected"


class DisputeState(Enum):
    NORMAL = "normal"
    DISPUTED = "disputed"
    CHARGED_BACK = "charged_back"


@dataclass(frozen=True)
class Transaction:
    """
    One decoded input record.

    Deposits and withdrawals carry a non-negative amount; disputes, resolves
    and chargebacks reference an earlier deposit by id and carry none.
    """

    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __post_init__(self):
        if not 0 <= self.client_id <= MAX_CLIENT_ID:
            raise MalformedRecordError(f"client id {self.client_id} out of range")
        if not 0 <= self.transaction_id <= MAX_TRANSACTION_ID:
            raise MalformedRecordError(f"transaction id {self.transaction_id} out of range")

        if self.transaction_type.carries_amount:
            if self.amount is None:
                raise MalformedRecordError(f"{self.transaction_type.value} tx {self.transaction_id}: missing amount")
            if not self.amount.is_finite() or self.amount < 0:
                raise MalformedRecordError(f"{self.transaction_type.value} tx {self.transaction_id}: invalid amount {self.amount}")
            if self.amount >= MAX_AMOUNT:
                raise MalformedRecordError(f"{self.transaction_type.value} tx {self.transaction_id}: amount {self.amount} exceeds maximum {MAX_AMOUNT}")
        elif self.amount is not None:
            raise MalformedRecordError(f"{self.transaction_type.value} tx {self.transaction_id}: unexpected amount {self.amount}")

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount

    def lock(self) -> None:
        self.locked = True

    def to_snapshot(self) -> "AccountSnapshot":
        return AccountSnapshot(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )


@dataclass
class DisputeEntry:
    """Bookkeeping for a deposit that may later be disputed."""

    client_id: int
    amount: Decimal
    state: DisputeState = DisputeState.NORMAL


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


class ProcessingStats:
    """Counters for one run."""

    def __init__(self):
        self.applied = 0
        self.rejected = 0

    def record(self, result: ProcessingResult) -> None:
        if result == ProcessingResult.APPLIED:
            self.applied += 1
        else:
            self.rejected += 1

    @property
    def processed(self) -> int:
        return self.applied + self.rejected
