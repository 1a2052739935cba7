"""
Run one CSV limits import from CLI.
"""

from __future__ import annotations

import argparse
import json
import logging

from app.config import load_loader_settings
from app.services.limits_loader import LimitsLoader


def main() -> int:
    parser = argparse.ArgumentParser(description="Import a CSV limits file into the catalog once.")
    parser.add_argument(
        "--csv-file",
        dest="csv_file",
        default=None,
        help="Optional CSV file path overriding LIMITS_LOADER_CSV_FILE_PATH.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="INFO",
        help="Console log level (default: INFO).",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    loader = LimitsLoader(load_loader_settings(csv_file_path=args.csv_file))
    loader.initialize()
    try:
        result = loader.run_import()
    finally:
        loader.dispose()

    if result is None:
        print(json.dumps({"state": "dropped"}, indent=2))
        return 2

    payload = {
        "state": result.state.value,
        "samples": len(result.samples),
        "rows_processed": result.rows_processed,
        "rows_skipped": result.rows_skipped,
        "cells_failed": result.cells_failed,
        "new_records": result.new_records,
        "deleted": result.deleted,
        "error": result.error_message,
    }
    print(json.dumps(payload, indent=2))
    return 0 if result.succeeded else 1


if __name__ == "__main__":
    raise SystemExit(main())
