"""Run the OMOP export worker.

Exactly one of these processes may run per deployment. It consumes the
export queue one job at a time, which is what keeps two runs from
advancing the high-water marks concurrently.

Usage:
    python -m app.scripts.run_export_worker
"""

import logging

from rq import Worker

from app.core.config import settings
from app.core.queue import get_export_queue
from app.core.redis import get_redis

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point for the script."""
    queue = get_export_queue()
    worker = Worker([queue], connection=get_redis(), name=f"{settings.export_queue_name}-worker")
    logger.info(f"Export worker listening on queue '{queue.name}'")
    worker.work(with_scheduler=True)


if __name__ == "__main__":
    main()
