#!/usr/bin/env python3
"""
KTV scheduled jobs CLI

Usage:
    ktv-jobs generate-recurring-bookings [--days 7]
    ktv-jobs send-booking-reminders [--lead-minutes 15]
    ktv-jobs update-room-status
    ktv-jobs send-verification-email --email user@example.com [--full-name "Name"]

Meant for cron; prints the job result as JSON and exits non-zero on failure.
"""

from __future__ import annotations

import argparse
import json
import sys

from ktv_shared.config import load_config
from ktv_shared.db import init_db, init_engine
from ktv_shared.logging_config import configure_logging, get_logger
from ktv_shared.models import Base
from ktv_shared.services.email_service import get_email_service
from ktv_shared.services.recurring_booking_service import generate_recurring_bookings
from ktv_shared.services.reminder_service import send_booking_reminders
from ktv_shared.services.room_status_service import update_room_status

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ktv-jobs", description="KTV scheduled jobs")
    sub = parser.add_subparsers(dest="job", required=True)

    recurring = sub.add_parser(
        "generate-recurring-bookings", help="Create bookings from recurring rules"
    )
    recurring.add_argument("--days", type=int, default=None, help="Days ahead to generate")

    reminders = sub.add_parser("send-booking-reminders", help="Email upcoming booking reminders")
    reminders.add_argument("--lead-minutes", type=int, default=None, help="Minutes before start")

    sub.add_parser("update-room-status", help="Expire finished bookings and free rooms")

    verification = sub.add_parser("send-verification-email", help="Send the welcome email")
    verification.add_argument("--email", required=True)
    verification.add_argument("--full-name", default=None)
    return parser


def run_job(args: argparse.Namespace, config) -> dict:
    if args.job == "generate-recurring-bookings":
        return generate_recurring_bookings(window_days=args.days or config.recurring_window_days)
    if args.job == "send-booking-reminders":
        return send_booking_reminders(
            lead_minutes=args.lead_minutes or config.reminder_lead_minutes
        )
    if args.job == "update-room-status":
        return update_room_status()

    result = get_email_service().send_welcome(args.email, args.full_name, config.venue_name)
    if not result.sent:
        raise RuntimeError(result.error or "Email not sent")
    return {"success": True, "email": args.email}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config("ktv-jobs")
    configure_logging(config.app_name, config.log_level)
    init_engine(config)
    init_db(Base.metadata)

    try:
        result = run_job(args, config)
    except Exception as e:
        logger.error(f"Job {args.job} failed: {e}", exc_info=True)
        print(json.dumps({"error": str(e)}))
        return 1

    print(json.dumps(result, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
