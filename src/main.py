import sys
import logging
from typing import List, Optional

from csv_io import read_transactions_from_file, write_accounts
from engine import Engine

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if len(argv) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    filepath = argv[0]
    engine = Engine()
    try:
        snapshots = engine.process(read_transactions_from_file(filepath))
    except OSError as e:
        logger.error(f"Cannot read {filepath}: {e}")
        return 1

    write_accounts(snapshots, sys.stdout)

    # Final processing report goes to stderr, the table owns stdout
    print(engine.stats.summary(), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
