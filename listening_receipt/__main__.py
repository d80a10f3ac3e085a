"""Command line entry point for the listening receipt"""
import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from listening_receipt.aggregation import listener_type, variety_percent
from listening_receipt.config import TIME_RANGES, settings
from listening_receipt.db import db
from listening_receipt.errors import ReceiptError
from listening_receipt.pipeline import ReportPipeline
from listening_receipt.services.auth import AuthSession
from listening_receipt.services.spotify import SpotifyAPI
from listening_receipt.services.storage import SqlClientStorage
from listening_receipt.utils.formatting import format_duration, format_receipt_date
from listening_receipt.utils.json_encoder import DateTimeEncoder, report_to_dict

logger = logging.getLogger(__name__)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="listening_receipt", description="Spotify top tracks as a receipt")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("login", help="Print the Spotify authorization URL")

    callback = commands.add_parser("callback", help="Finish login with the redirect parameters")
    callback.add_argument("--code", help="Authorization code from the redirect")
    callback.add_argument("--error", help="Error parameter from the redirect")

    report = commands.add_parser("report", help="Fetch top tracks and write the report")
    report.add_argument("--time-range", default=TIME_RANGES[0], choices=TIME_RANGES)
    report.add_argument("--length", type=int, default=settings.RECEIPT_LENGTH, help="Tracks printed on the receipt")
    report.add_argument("--output", help="Report JSON path (default OUTPUT_DIR/report.json)")

    commands.add_parser("logout", help="Forget the stored token")
    return parser

def log_receipt(report, length: int) -> None:
    logger.info(f"{report.username} - {format_receipt_date(report.generated_at)}")
    for index, track in enumerate(report.receipt_tracks(length), start=1):
        logger.info(f"{index:02d} {track.name} - {track.artist}  {format_duration(track.duration_ms)}")
    summary = report.summary
    logger.info(f"ITEM COUNT: {summary.track_count}")
    logger.info(f"TOTAL: {format_duration(sum(t.duration_ms for t in report.receipt_tracks(length)))}")
    logger.info(f"TOP GENRES: {', '.join(report.top_genres)}")
    logger.info(f"LISTENER TYPE: {listener_type(summary.variety_score)} ({variety_percent(summary.variety_score)}%)")

def run(argv: Optional[List[str]] = None) -> None:
    """Run one CLI command."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL, format='%(message)s')

    try:
        db.init()
        auth = AuthSession(SqlClientStorage(db))

        if args.command == "login":
            print(auth.begin_login())
        elif args.command == "callback":
            auth.complete_login(code=args.code, error=args.error)
            logger.info("Logged in to Spotify.")
        elif args.command == "logout":
            auth.logout()
        elif args.command == "report":
            report = ReportPipeline(auth, api_factory=SpotifyAPI).load(args.time_range)
            output_path = args.output or os.path.join(settings.OUTPUT_DIR, "report.json")
            os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(report_to_dict(report, args.length), f, indent=2, cls=DateTimeEncoder)
            log_receipt(report, args.length)
            logger.info(f"Report written to {output_path}")

    except ReceiptError as e:
        logger.error(f"{e}")
        if args.command == "report":
            logger.error("Session expired or error occurred. Please log in again.")
        sys.exit(1)
    finally:
        db.dispose()

if __name__ == "__main__":
    run()
