import logging
import threading
from typing import List, Mapping, Optional, Sequence, TextIO

from models import ClientAccount
from account_store import AccountStore
from transaction_ledger import TransactionLedger
from transaction_processor import TransactionProcessor
from source_reader import CsvSourceReader
from summary_exporter import SummaryExporter

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Wires a CSV source, the transaction processor and its stores, and the summary exporter.
    Each engine owns its own stores, so instances never share state.
    """

    def __init__(self, decimal_places: int = 4):
        self._decimal_places = decimal_places
        self._accounts = AccountStore()
        self._ledger = TransactionLedger()
        self._processor = TransactionProcessor(self._accounts, self._ledger)

    @property
    def accounts(self) -> AccountStore:
        return self._accounts

    @property
    def ledger(self) -> TransactionLedger:
        return self._ledger

    def process_file(self, filepath: str) -> Mapping[int, ClientAccount]:
        """Process CSV file in order and return final account states."""
        logger.info(f"Processing transactions from {filepath}")
        self._processor.process_transactions(CsvSourceReader(filepath))
        logger.info(f"Finished {filepath}: {len(self._accounts)} accounts, {len(self._ledger)} stored transactions")
        return self._accounts.snapshot()

    def process_files(self, filepaths: Sequence[str]) -> Mapping[int, ClientAccount]:
        """
        Feed several CSV sources into this engine, one thread per source.
        Order is kept within a source but not across sources.
        Re-raises the first error any source hit after all threads finish.
        """
        errors: List[BaseException] = []
        errors_lock = threading.Lock()

        def consume(filepath: str) -> None:
            try:
                self._processor.process_transactions(CsvSourceReader(filepath))
            except Exception as e:
                logger.error(f"Source {filepath} failed: {e}")
                with errors_lock:
                    errors.append(e)

        source_threads = []
        for filepath in filepaths:
            source_thread = threading.Thread(target=consume, args=(filepath,), name=f"source-{filepath}")
            source_thread.start()
            source_threads.append(source_thread)

        for source_thread in source_threads:
            source_thread.join()

        if errors:
            raise errors[0]

        return self._accounts.snapshot()

    def export(self, stream: Optional[TextIO] = None) -> None:
        """Write the current account summary as CSV (stdout by default)."""
        SummaryExporter(stream, self._decimal_places).export(self._accounts.snapshot())
