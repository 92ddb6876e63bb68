import csv
import sys
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Mapping, Optional, TextIO

from models import ClientAccount

HEADER = ["client", "available", "held", "total", "locked"]


def format_decimal(value: Decimal, places: int = 4) -> str:
    """
    Whole values print as integers. Others are rounded to `places` decimal
    places with trailing zeros and a trailing point removed.
    """
    if value == value.to_integral_value():
        return f"{value.to_integral_value():f}" if value != 0 else "0"

    quantum = Decimal(1).scaleb(-places)
    # quantize needs every integer digit plus `places` to fit in the context precision.
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + places + 2)
        rounded = value.quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded == 0:
        return "0"
    return f"{rounded:f}".rstrip("0").rstrip(".")


class SummaryExporter:
    """Writes the final account states as CSV, one row per client."""

    def __init__(self, stream: Optional[TextIO] = None, decimal_places: int = 4):
        self._stream = stream if stream is not None else sys.stdout
        self._decimal_places = decimal_places

    def export(self, accounts: Mapping[int, ClientAccount]) -> None:
        writer = csv.writer(self._stream, lineterminator="\n")
        writer.writerow(HEADER)
        for client_id in sorted(accounts.keys()):
            account = accounts[client_id]
            writer.writerow([
                client_id,
                format_decimal(account.available, self._decimal_places),
                format_decimal(account.held, self._decimal_places),
                format_decimal(account.total, self._decimal_places),
                str(account.locked).lower(),
            ])
        self._stream.flush()
