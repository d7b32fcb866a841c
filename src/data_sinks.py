import csv
from decimal import Decimal, localcontext
from typing import Iterable, List, Protocol, TextIO

from errors import IOFailureError
from models import FOUR_PLACES, AccountSnapshot

OUTPUT_HEADER = ("client", "available", "held", "total", "locked")
OUTPUT_PRECISION = 60


def format_decimal(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    with localcontext() as ctx:
        ctx.prec = OUTPUT_PRECISION
        normalized = value.quantize(FOUR_PLACES).normalize()
    if normalized.is_zero():
        return "0"
    return f"{normalized:f}"


class SnapshotSink(Protocol):
    """Consumes the final account snapshots of a run."""

    def write_accounts(self, accounts: Iterable[AccountSnapshot]) -> None:
        ...


class MemorySnapshotSink:
    def __init__(self):
        self.accounts: List[AccountSnapshot] = []

    def write_accounts(self, accounts: Iterable[AccountSnapshot]) -> None:
        self.accounts.extend(accounts)


class CsvSnapshotSink:
    """Writes `client,available,held,total,locked` rows to a text stream."""

    def __init__(self, stream: TextIO):
        self._writer = csv.writer(stream, lineterminator="\n")
        self._stream = stream

    def write_accounts(self, accounts: Iterable[AccountSnapshot]) -> None:
        try:
            self._writer.writerow(OUTPUT_HEADER)
            for account in accounts:
                self._writer.writerow([
                    account.client_id,
                    format_decimal(account.available),
                    format_decimal(account.held),
                    format_decimal(account.total),
                    str(account.locked).lower(),
                ])
            self._stream.flush()
        except OSError as e:
            raise IOFailureError(f"Failed to write accounts: {e}") from e
