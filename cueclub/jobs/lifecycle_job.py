"""
Cron entry point: runs one registration lifecycle pass and prints the result.

    cueclub-lifecycle
    cueclub-lifecycle --now 2025-06-01T12:00:00+00:00
"""
import argparse
import json
import logging
import sys
from datetime import datetime

from cueclub import models
from cueclub.core.database import SessionLocal
from cueclub.core.exceptions import CueClubError
from cueclub.core.logging_config import configure_logging
from cueclub.services import lifecycle_service

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Finalize or cancel tournaments whose registration is closing.")
    parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        default=None,
        help="ISO-8601 timestamp to evaluate deadlines against (default: current time)",
    )
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    models.create_all()

    db = SessionLocal()
    try:
        result = lifecycle_service.run_lifecycle_pass(db, now=args.now)
    except CueClubError as exc:
        logger.error("Lifecycle pass aborted at %s: %s", exc.step, exc.message)
        print(json.dumps(exc.to_dict()))
        return 1
    finally:
        db.close()

    print(result.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
