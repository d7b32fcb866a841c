import csv
import re
from decimal import Decimal
from typing import Dict, Iterable, Iterator, List, Optional, Protocol

from errors import IOFailureError, MalformedRecordError
from models import FOUR_PLACES, MAX_AMOUNT, Transaction, TransactionType

REQUIRED_COLUMNS = ("type", "client", "tx")
OPTIONAL_COLUMNS = ("amount",)
MAX_FRACTIONAL_DIGITS = 4
AMOUNT_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


class RecordSource(Protocol):
    """Produces a lazy, finite, non-restartable sequence of transactions."""

    def read_transactions(self) -> Iterator[Transaction]:
        ...


class MemoryRecordSource:
    """Serves transactions from an in-memory sequence."""

    def __init__(self, transactions: Iterable[Transaction]):
        self._transactions = list(transactions)

    def read_transactions(self) -> Iterator[Transaction]:
        return iter(self._transactions)


class CsvRecordSource:
    """
    Decodes transactions from a CSV file with a `type, client, tx, amount` header.

    Whitespace around headers and fields is ignored and the transaction type is
    case-insensitive. Any row that cannot be decoded aborts the read with
    MalformedRecordError; failures to read the file raise IOFailureError.
    """

    def __init__(self, filepath: str):
        self._filepath = filepath

    def read_transactions(self) -> Iterator[Transaction]:
        try:
            with open(self._filepath, "r", newline="", encoding="utf-8-sig") as f:
                yield from self._decode(csv.reader(f))
        except OSError as e:
            raise IOFailureError(f"Failed to read {self._filepath}: {e}") from e

    def _decode(self, reader) -> Iterator[Transaction]:
        columns = None
        try:
            for row in reader:
                fields = [field.strip() for field in row]
                if not any(fields):
                    continue

                if columns is None:
                    columns = self._parse_header(fields, reader.line_num)
                    continue

                yield self._parse_csv_row(columns, fields, reader.line_num)
        except csv.Error as e:
            raise MalformedRecordError(str(e), line=reader.line_num) from e
        except UnicodeDecodeError as e:
            # Text is decoded in chunks, so the failing line is not known.
            raise MalformedRecordError(f"input is not valid UTF-8: {e.reason}") from e

        if columns is None:
            raise MalformedRecordError("missing header row")

    @staticmethod
    def _parse_header(fields: List[str], line: int) -> List[str]:
        columns = [field.lower() for field in fields]

        seen = set()
        for column in columns:
            if column in seen:
                raise MalformedRecordError(f"duplicate header column {column!r}", line=line)
            if column not in REQUIRED_COLUMNS and column not in OPTIONAL_COLUMNS:
                raise MalformedRecordError(f"unknown header column {column!r}", line=line)
            seen.add(column)

        missing = [column for column in REQUIRED_COLUMNS if column not in seen]
        if missing:
            raise MalformedRecordError(f"missing header column(s) {', '.join(missing)}", line=line)
        return columns

    def _parse_csv_row(self, columns: List[str], fields: List[str], line: int) -> Transaction:
        """Parse CSV row into Transaction."""
        if len(fields) > len(columns):
            raise MalformedRecordError(f"expected at most {len(columns)} fields, got {len(fields)}", line=line)

        normalized: Dict[str, str] = dict.fromkeys(columns, "")
        normalized.update(zip(columns, fields))

        transaction_type_str = normalized["type"].lower()
        try:
            transaction_type = TransactionType(transaction_type_str)
        except ValueError:
            raise MalformedRecordError(f"unknown transaction type {normalized['type']!r}", line=line) from None

        client_id = self._parse_int("client", normalized["client"], line)
        transaction_id = self._parse_int("tx", normalized["tx"], line)
        amount = self._parse_amount(normalized.get("amount", ""), line)

        try:
            return Transaction(
                transaction_type=transaction_type,
                client_id=client_id,
                transaction_id=transaction_id,
                amount=amount,
            )
        except MalformedRecordError as e:
            raise MalformedRecordError(str(e), line=line) from e

    @staticmethod
    def _parse_int(name: str, value: str, line: int) -> int:
        if not value:
            raise MalformedRecordError(f"missing {name}", line=line)
        if not (value.isascii() and value.isdigit()):
            raise MalformedRecordError(f"{name} is not an unsigned integer: {value!r}", line=line)
        return int(value)

    @staticmethod
    def _parse_amount(value: str, line: int) -> Optional[Decimal]:
        if not value:
            return None
        if not AMOUNT_PATTERN.fullmatch(value):
            raise MalformedRecordError(f"amount is not a decimal: {value!r}", line=line)

        amount = Decimal(value)
        if abs(amount) >= MAX_AMOUNT:
            raise MalformedRecordError(f"amount out of range: {value!r}", line=line)
        if amount != amount.quantize(FOUR_PLACES):
            raise MalformedRecordError(f"amount has more than {MAX_FRACTIONAL_DIGITS} decimal places: {value!r}", line=line)
        return amount
