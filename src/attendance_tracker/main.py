from __future__ import annotations

import argparse
import getpass
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Sequence

PACKAGE_DIR = Path(__file__).resolve().parent
SRC_DIR = PACKAGE_DIR.parent
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from attendance_tracker.app import TrackerApp
from attendance_tracker.config.settings import settings
from attendance_tracker.errors import TrackerError
from attendance_tracker.services import DuplicateUserError
from attendance_tracker.utils import format_relative_time

logger = logging.getLogger("attendance_tracker")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="attendance-tracker",
        description="Scrape portal attendance and maintain daily snapshots and metrics.",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sweep", help="Process every user with portal credentials once")

    process_user = subparsers.add_parser("process-user", help="Process a single user")
    process_user.add_argument("user_id", type=int)

    run = subparsers.add_parser("run", help="Sweep repeatedly until interrupted")
    run.add_argument(
        "--interval",
        type=float,
        default=settings.sweep_interval_seconds,
        help="Seconds between sweeps (default: %(default)s)",
    )

    add_user = subparsers.add_parser("add-user", help="Register a user and their portal credentials")
    add_user.add_argument("username")
    add_user.add_argument("--portal-username", required=True)
    add_user.add_argument("--portal-password", help="Prompted for when omitted")

    set_credentials = subparsers.add_parser("set-credentials", help="Replace a user's portal credentials")
    set_credentials.add_argument("user_id", type=int)
    set_credentials.add_argument("--portal-username", required=True)
    set_credentials.add_argument("--portal-password", help="Prompted for when omitted")

    subparsers.add_parser("status", help="Show users, overall attendance and last scrape time")
    return parser


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2))


def _status(app: TrackerApp) -> None:
    users = app.users.list_users()
    if not users:
        print("No users registered.")
        return
    for user in users:
        snapshot = app.snapshots.latest(user.id)
        last_seen = format_relative_time(snapshot.captured_at) if snapshot else "never"
        marker = "" if user.is_eligible else " (no credentials)"
        print(
            f"[{user.id}] {user.username}{marker}: "
            f"{user.overall_attended_classes}/{user.overall_total_classes} "
            f"({user.overall_percentage:.2f}%) - last scraped {last_seen}"
        )
        for metric in app.metrics.list_for_user(user.id):
            if metric.is_above_75:
                hint = f"can skip {metric.classes_can_skip}"
            else:
                hint = f"needs {metric.classes_needed}"
            print(
                f"    {metric.subject_code:<10} {metric.attended_classes:>3}/{metric.total_classes:<3} "
                f"{metric.attendance_percentage:6.2f}%  {hint}"
            )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    app = TrackerApp()

    try:
        if args.command == "sweep":
            outcomes = app.processor.process_all()
            _print_json([outcome.to_dict() for outcome in outcomes])
        elif args.command == "process-user":
            _print_json(app.processor.process_user(args.user_id).to_dict())
        elif args.command == "run":
            scheduler = app.scheduler(args.interval)
            signal.signal(signal.SIGINT, lambda *_: scheduler.stop())
            signal.signal(signal.SIGTERM, lambda *_: scheduler.stop())
            logger.info("Sweeping every %g seconds; press Ctrl+C to stop.", args.interval)
            scheduler.run_forever()
        elif args.command == "add-user":
            password = args.portal_password or getpass.getpass("Portal password: ")
            user_id = app.users.create_user(args.username, args.portal_username, password)
            print(f"Created user {args.username} with id {user_id}.")
        elif args.command == "set-credentials":
            password = args.portal_password or getpass.getpass("Portal password: ")
            app.users.update_credentials(args.user_id, args.portal_username, password)
            print(f"Updated portal credentials for user {args.user_id}.")
        elif args.command == "status":
            _status(app)
    except (TrackerError, DuplicateUserError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
