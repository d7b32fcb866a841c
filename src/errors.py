from typing import Optional


class LedgerError(Exception):
    """Base class for structural failures that abort a run."""


class MalformedRecordError(LedgerError):
    """Input row or record that can never be handed to the ledger."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class IOFailureError(LedgerError):
    """Reading the input or writing the output failed."""
