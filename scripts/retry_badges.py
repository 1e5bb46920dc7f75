"""Re-issue badges for validated attendance whose issuance failed or timed out."""
from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.poap_attendance.poap_attendance.container import build_container


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--limit", type=int, default=50, help="max records to retry")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper())

    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)
    try:
        report = container.workflow.retry_pending_badges(limit=args.limit)
    finally:
        if container.badge_client:
            container.badge_client.close()

    print(f"attempted={report.attempted} issued={report.issued} failed={report.failed}")
    return 0 if report.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
