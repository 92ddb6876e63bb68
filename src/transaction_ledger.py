import logging
import threading
from dataclasses import replace
from typing import Dict, Optional

from models import Transaction, TransactionType

logger = logging.getLogger(__name__)


class TransactionLedger:
    """
    Thread-safe history of deposits and withdrawals for dispute lookups.
    Each record carries its own dispute flag.
    """

    def __init__(self):
        self._transactions: Dict[int, Transaction] = {}
        self._lock = threading.Lock()

    def commit(self, transaction: Transaction) -> bool:
        """
        Store a deposit or withdrawal. The first record for an id wins.

        Returns True if the record was stored.
        """
        if not transaction.transaction_type.carries_amount:
            logger.debug(f"Not committing control record {transaction}")
            return False

        with self._lock:
            if transaction.transaction_id in self._transactions:
                logger.debug(f"Transaction {transaction.transaction_id} already committed, keeping first record")
                return False
            self._transactions[transaction.transaction_id] = replace(transaction)
            return True

    def try_transition(self, transaction_id: int, target_type: TransactionType) -> Optional[Transaction]:
        """
        Move a stored transaction through its dispute lifecycle.

        Returns a copy of the record after the change, or None when the id is
        unknown or the record is not in a state that allows target_type:
            DISPUTE: record must not be disputed, becomes disputed
            RESOLVE: record must be disputed, becomes undisputed
            CHARGEBACK: record must be disputed, left as is
        """
        with self._lock:
            transaction = self._transactions.get(transaction_id)
            if transaction is None:
                return None

            match target_type:
                case TransactionType.DISPUTE if not transaction.is_disputed:
                    transaction.is_disputed = True
                case TransactionType.RESOLVE if transaction.is_disputed:
                    transaction.is_disputed = False
                case TransactionType.CHARGEBACK if transaction.is_disputed:
                    pass
                case _:
                    return None

            return replace(transaction)

    def get(self, transaction_id: int) -> Optional[Transaction]:
        """Return a copy of a stored transaction."""
        with self._lock:
            transaction = self._transactions.get(transaction_id)
            return replace(transaction) if transaction is not None else None

    def __contains__(self, transaction_id: int) -> bool:
        with self._lock:
            return transaction_id in self._transactions

    def __len__(self) -> int:
        with self._lock:
            return len(self._transactions)
