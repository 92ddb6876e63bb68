import logging
import threading
from dataclasses import replace
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from models import ClientAccount

logger = logging.getLogger(__name__)

AccountMutator = Callable[[ClientAccount], None]


class AccountStore:
    """
    Thread-safe client accounts keyed by client id.
    Accounts are created on first reference and only change through update().
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._lock = threading.Lock()

    def update(self, client_id: int, mutator: AccountMutator) -> bool:
        """
        Apply mutator to the client's account inside the store lock.

        Returns False without calling mutator if the account is locked.
        """
        with self._lock:
            account = self._accounts.get(client_id)
            if account is None:
                account = ClientAccount(client_id=client_id)
                self._accounts[client_id] = account

            if account.locked:
                logger.debug(f"Account {client_id} is locked, update skipped")
                return False

            mutator(account)
            return True

    def get(self, client_id: int) -> Optional[ClientAccount]:
        """Return a copy of one account, or None if it was never referenced."""
        with self._lock:
            account = self._accounts.get(client_id)
            return replace(account) if account is not None else None

    def snapshot(self) -> Mapping[int, ClientAccount]:
        """Return a read-only mapping of copies of all accounts (for final output)."""
        with self._lock:
            copies = {client_id: replace(account) for client_id, account in self._accounts.items()}
        return MappingProxyType(copies)

    def __contains__(self, client_id: int) -> bool:
        with self._lock:
            return client_id in self._accounts

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)
