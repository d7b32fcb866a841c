import logging
import os
import sys

from data_sinks import CsvSnapshotSink
from data_sources import CsvRecordSource
from errors import IOFailureError, MalformedRecordError
from payments_engine import PaymentsEngine

LOG_LEVEL_ENV = "TOY_PAYMENTS_LOG_LEVEL"

EXIT_USAGE = 1
EXIT_MALFORMED_INPUT = 2
EXIT_IO_FAILURE = 3

logger = logging.getLogger(__name__)


def resolve_log_level() -> int:
    """Log level from the environment, WARNING when unset or unknown."""
    level = logging.getLevelName(os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper())
    if not isinstance(level, int):
        return logging.WARNING
    return level


def configure_logging() -> None:
    logging.basicConfig(
        level=resolve_log_level(),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main() -> int:
    configure_logging()

    if len(sys.argv) != 2:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return EXIT_USAGE

    engine = PaymentsEngine()
    try:
        stats = engine.run(CsvRecordSource(sys.argv[1]), CsvSnapshotSink(sys.stdout))
    except MalformedRecordError as e:
        logger.error(f"Malformed input: {e}")
        return EXIT_MALFORMED_INPUT
    except IOFailureError as e:
        logger.error(str(e))
        return EXIT_IO_FAILURE

    print(f"Processed: {stats.processed}, Rejected: {stats.rejected}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
