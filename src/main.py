import sys
import logging

from pydantic import ValidationError

from config import get_settings
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)


def main():
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=settings.log_level,
        format=settings.log_format,
        stream=sys.stderr,
    )

    if len(sys.argv) != 2:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        sys.exit(1)

    filepath = sys.argv[1]
    engine = PaymentsEngine(decimal_places=settings.output_decimal_places)
    try:
        engine.process_file(filepath)
    except OSError as e:
        logger.error(f"Cannot read {filepath}: {e}")
        sys.exit(1)

    engine.export(sys.stdout)


if __name__ == "__main__":
    main()
