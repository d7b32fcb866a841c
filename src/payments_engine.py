import logging
from typing import Dict

from data_sinks import MemorySnapshotSink, SnapshotSink
from data_sources import CsvRecordSource, RecordSource
from ledger import AccountLedger
from models import ClientAccount, ProcessingStats
from state_manager import StateManager

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Drives runs: each run pulls transactions from a source, applies them to a
    fresh ledger in input order, then hands the final snapshot to a sink.
    The state and stats of the most recent run stay readable afterwards.
    """

    def __init__(self):
        self._state = StateManager()
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def run(self, source: RecordSource, sink: SnapshotSink) -> ProcessingStats:
        """
        Apply every transaction from source, then write all accounts to sink.

        Structural errors from the source propagate and nothing is written.
        """
        self._state = StateManager()
        self._stats = ProcessingStats()
        ledger = AccountLedger(self._state)

        logger.info("Starting processing phase")

        for transaction in source.read_transactions():
            result = ledger.apply(transaction)
            self._stats.record(result)
            logger.debug(f"{transaction}: {result.value}")

        logger.info(f"Processing phase complete: {self._stats.applied} applied, {self._stats.rejected} rejected")

        sink.write_accounts(ledger.snapshot())
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        self.run(CsvRecordSource(filepath), MemorySnapshotSink())
        return {account.client_id: account for account in self._state.get_all_accounts()}
