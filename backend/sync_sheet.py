#!/usr/bin/env python3
"""
Pull the published schedule sheet into the local store.
Run: python3 sync_sheet.py [SHEET_ID] [WORKSHEET]

Without arguments the saved Google Sheets settings are used.
"""
import argparse
import logging
import sys

from config import get_settings
from context import build_context
from database import create_db_and_tables, engine
from errors import SheetSyncError


def main(argv=None):
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("sheet_id", nargs="?")
    parser.add_argument("worksheet", nargs="?")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    create_db_and_tables()
    ctx = build_context(engine, settings)

    saved = ctx.persistence.load_sheet_config(settings.default_worksheet)
    sheet_id = args.sheet_id or saved.sheet_id
    worksheet = args.worksheet or saved.worksheet
    if not sheet_id or not worksheet:
        print("No sheet configured. Pass SHEET_ID and WORKSHEET.")
        return 2

    try:
        report = ctx.pipeline.sync_from_sheet(sheet_id, worksheet)
    except SheetSyncError as e:
        print(f"Sync failed: {e}")
        return 1

    print(f"Synced {report.imported_count} shifts for {report.schedule_count} employees.")
    if report.skipped_rows:
        print(f"Skipped incomplete rows: {', '.join(map(str, report.skipped_rows))}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
