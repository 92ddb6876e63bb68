import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterator, Optional

from models import Transaction, TransactionType

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class CsvSourceReader:
    """
    Reads transactions from a CSV file with a `type, client, tx, amount` header.
    Rows that do not parse are skipped.
    """

    def __init__(self, filepath: str):
        self._filepath = filepath

    def read(self) -> Iterator[Transaction]:
        """Yield transactions in file order. Raises OSError if the file cannot be opened."""
        # Undecodable bytes become U+FFFD, so the affected row fails parse_csv_row.
        with open(self._filepath, "r", newline="", errors="replace") as f:
            reader = csv.DictReader(f)
            while True:
                try:
                    row = next(reader)
                except StopIteration:
                    break
                except csv.Error as e:
                    logger.debug(f"Skipping line {reader.line_num} of {self._filepath}: {e}")
                    continue

                transaction = parse_csv_row(row)
                if transaction is not None:
                    yield transaction

    def __iter__(self) -> Iterator[Transaction]:
        return self.read()


def parse_csv_row(row: Dict[Optional[str], object]) -> Optional[Transaction]:
    """Parse a CSV row into a Transaction, or None if the row is malformed."""
    try:
        # DictReader puts surplus fields under None and fills missing ones with None.
        normalized = {
            key.strip(): value.strip()
            for key, value in row.items()
            if isinstance(key, str) and isinstance(value, str)
        }

        transaction_type = TransactionType(normalized["type"].lower())
        client_id = _parse_bounded_int(normalized["client"], MAX_CLIENT_ID)
        transaction_id = _parse_bounded_int(normalized["tx"], MAX_TRANSACTION_ID)

        amount = None
        if transaction_type.carries_amount:
            amount = _parse_amount(normalized.get("amount", ""))

        return Transaction(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )
    except (KeyError, ValueError, InvalidOperation) as e:
        logger.debug(f"Skipping row {row}: {e!r}")
        return None


def _parse_bounded_int(value: str, maximum: int) -> int:
    number = int(value)
    if not 0 <= number <= maximum:
        raise ValueError(f"{number} outside 0..{maximum}")
    return number


def _parse_amount(value: str) -> Decimal:
    if not value:
        raise ValueError("missing amount")
    amount = Decimal(value)
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"invalid amount {value}")
    return amount
