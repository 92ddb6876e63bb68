import logging
from typing import Iterable

from models import ClientAccount, Transaction, TransactionType
from account_store import AccountStore
from transaction_ledger import TransactionLedger

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions, in the order given, to an account store and a ledger.

    Records that cannot be applied (unknown reference, wrong dispute state,
    insufficient funds, locked account) are dropped without raising so the
    rest of the stream still gets processed.
    """

    def __init__(self, accounts: AccountStore, ledger: TransactionLedger):
        self._accounts = accounts
        self._ledger = ledger

    def process_transactions(self, transactions: Iterable[Transaction]) -> None:
        for transaction in transactions:
            self.process_transaction(transaction)

    def process_transaction(self, transaction: Transaction) -> None:
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                self._handle_chargeback(transaction)

    def _handle_deposit(self, transaction: Transaction) -> None:
        amount = transaction.amount
        if amount is None:
            logger.debug(f"Deposit tx {transaction.transaction_id}: no amount, ignored")
            return

        def credit(account: ClientAccount) -> None:
            account.available += amount

        if not self._accounts.update(transaction.client_id, credit):
            logger.debug(f"Deposit tx {transaction.transaction_id}: account {transaction.client_id} locked")
        self._ledger.commit(transaction)

    def _handle_withdrawal(self, transaction: Transaction) -> None:
        amount = transaction.amount
        if amount is None:
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: no amount, ignored")
            return

        def debit(account: ClientAccount) -> None:
            if amount > account.available:
                logger.debug(
                    f"Withdrawal tx {transaction.transaction_id}: insufficient funds "
                    f"({account.available} available, {amount} requested)"
                )
                return
            account.available -= amount

        if not self._accounts.update(transaction.client_id, debit):
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: account {transaction.client_id} locked")
        # Committed even when the debit did not apply.
        self._ledger.commit(transaction)

    def _handle_dispute(self, transaction: Transaction) -> None:
        original = self._ledger.try_transition(transaction.transaction_id, TransactionType.DISPUTE)
        if original is None or original.amount is None:
            logger.debug(f"Dispute for tx {transaction.transaction_id}: not found or already disputed")
            return

        amount = original.amount

        def hold(account: ClientAccount) -> None:
            # A withdrawal already left available, so only the deposit side moves out of it.
            if original.transaction_type == TransactionType.DEPOSIT:
                account.available -= amount
            account.held += amount

        self._accounts.update(original.client_id, hold)

    def _handle_resolve(self, transaction: Transaction) -> None:
        original = self._ledger.try_transition(transaction.transaction_id, TransactionType.RESOLVE)
        if original is None or original.amount is None:
            logger.debug(f"Resolve for tx {transaction.transaction_id}: not found or not disputed")
            return

        amount = original.amount

        def release(account: ClientAccount) -> None:
            account.available += amount
            account.held -= amount

        self._accounts.update(original.client_id, release)

    def _handle_chargeback(self, transaction: Transaction) -> None:
        original = self._ledger.try_transition(transaction.transaction_id, TransactionType.CHARGEBACK)
        if original is None or original.amount is None:
            logger.debug(f"Chargeback for tx {transaction.transaction_id}: not found or not disputed")
            return

        amount = original.amount

        def reverse(account: ClientAccount) -> None:
            if original.transaction_type == TransactionType.WITHDRAWAL:
                account.available += amount
            account.held -= amount
            account.locked = True

        self._accounts.update(original.client_id, reverse)
