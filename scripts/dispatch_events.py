"""Drain the event outbox: run audit and notification handlers for pending events.

Intended for cron, as a safety net behind the per-request background dispatch:

    python -m scripts.dispatch_events --limit 500
"""

import argparse
import logging

from app.db import SessionLocal
from app.logging import configure_logging
from app.services.events import dispatch_pending

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Dispatch pending outbox events.")
    parser.add_argument("--limit", type=int, default=None, help="Events per batch")
    parser.add_argument(
        "--drain",
        action="store_true",
        help="Keep dispatching batches until nothing is left to process",
    )
    args = parser.parse_args()

    configure_logging()
    db = SessionLocal()
    try:
        total = {"processed": 0, "failed": 0}
        while True:
            result = dispatch_pending(db, limit=args.limit)
            total["processed"] += result["processed"]
            total["failed"] += result["failed"]
            if not args.drain or result["processed"] == 0:
                break
        logger.info("dispatch_events_done processed=%s failed=%s", total["processed"], total["failed"])
        print(f"processed={total['processed']} failed={total['failed']}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
