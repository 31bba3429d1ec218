"""Queue an OMOP export run.

Run nightly from cron (or any scheduler) with ``--nightly``; operators
can also queue a manual run from the command line. The queued payload is
the same as the one the API submits.

Usage:
    # Nightly incremental run
    python -m app.scripts.trigger_omop_export --nightly

    # Manual full refresh
    python -m app.scripts.trigger_omop_export --full-refresh
"""

import argparse
import logging
import sys

from app.core.database import get_sync_session
from app.core.queue import RQJobBroker
from app.jobs.omop_export import trigger_omop_export
from app.schemas.base import ExportTrigger

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the script."""
    parser = argparse.ArgumentParser(description="Queue an OMOP CDM export run")
    parser.add_argument(
        "--nightly",
        action="store_true",
        help="Mark the run as triggered by the nightly schedule (default: manual)",
    )
    parser.add_argument(
        "--full-refresh",
        action="store_true",
        help="Ignore the stored high-water marks and extract all data",
    )
    args = parser.parse_args(argv)

    triggered_by = ExportTrigger.NIGHTLY if args.nightly else ExportTrigger.MANUAL
    try:
        with get_sync_session() as session:
            run = trigger_omop_export(session, RQJobBroker(), triggered_by, args.full_refresh)
    except Exception as e:
        logger.error(f"Failed to queue OMOP export: {e}")
        return 1

    print(run.id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
