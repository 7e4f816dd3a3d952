"""Close stale in-progress attendance and backfill absences.

    python scripts/reconcile_attendance.py                       # month to date
    python scripts/reconcile_attendance.py --mode rolling-30-days
    python scripts/reconcile_attendance.py --start 2024-05-01 --end 2024-05-31
"""

from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_engine.attendance_engine.common.datetime_utils import now_in, parse_iso_date
from src.attendance_engine.attendance_engine.container import build_container
from src.attendance_engine.attendance_engine.core.constants import DEFAULT_TIMEZONE
from src.attendance_engine.attendance_engine.reconciliation.service import MONTH_TO_DATE, RANGE_MODES, default_range
from src.attendance_engine.attendance_engine.shifts.service import load_shift_config


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--mode", choices=RANGE_MODES, default=MONTH_TO_DATE)
    parser.add_argument("--start", help="first day to backfill (YYYY-MM-DD)")
    parser.add_argument("--end", help="last day to backfill (YYYY-MM-DD); never later than yesterday")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    load_dotenv(override=False)
    args = parse_args(argv)

    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(
        level=getattr(logging, str(getattr(settings, "LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        default_timezone=getattr(settings, "DEFAULT_TIMEZONE", DEFAULT_TIMEZONE),
    )
    today = now_in(load_shift_config(container.shifts_repo).zone).date()

    start, end = default_range(today, args.mode)
    if args.start:
        start = parse_iso_date(args.start)
    if args.end:
        end = parse_iso_date(args.end)

    summary = container.reconciliation_job.run(start, end, today)
    print(json.dumps(summary.to_dict(), indent=2))
    return 1 if summary.errors else 0


if __name__ == "__main__":
    sys.exit(main())
