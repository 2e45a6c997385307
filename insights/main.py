"""Command-line entry point.

Loads rows exported from the backend (a JSON array, or an object with a
``data`` array as the hosted API returns), builds one dashboard view and
prints its markdown report.  Keeping the runtime bootstrap here ensures the
library modules themselves stay free of side-effects on import.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import date
from pathlib import Path
from typing import Any, List, Optional, Sequence

from dotenv import load_dotenv

# Load .env before the package reads its configuration constants
load_dotenv()

from insights.exceptions import RowSourceError, UnknownViewError  # noqa: E402
from insights.pipeline import VIEWS, DashboardScope, build_dashboard  # noqa: E402
from insights.reporting.export import write_csv  # noqa: E402
from insights.reporting.render import render_report  # noqa: E402

logger = logging.getLogger("insights")


def configure_logging() -> None:
    logging_level = os.environ.get("INSIGHTS_LOG_LEVEL", "INFO")
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging_level,
    )


def load_rows(path: Path) -> List[Any]:
    """Read the row array stored at *path*.

    Raises
    ------
    RowSourceError
        If the file is missing, is not JSON, or holds no row array.
    """
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RowSourceError(f"Cannot read rows from {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise RowSourceError(f"Rows file {path} is not valid JSON: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("data")
    if not isinstance(payload, list):
        raise RowSourceError(f"Rows file {path} does not contain a list of rows.")
    return payload


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date '{value}' (use YYYY-MM-DD)") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="insights",
        description="Aggregate dashboard rows into sessions and print a report.",
    )
    parser.add_argument("rows", type=Path, help="JSON file with the backend rows")
    parser.add_argument(
        "--view",
        default=os.getenv("INSIGHTS_DEFAULT_VIEW", "nps"),
        help=f"dashboard view ({', '.join(sorted(VIEWS))})",
    )
    parser.add_argument("--company", default=None, help="limit to one company")
    parser.add_argument("--start", type=_parse_date, default=None, help="first day (YYYY-MM-DD)")
    parser.add_argument("--end", type=_parse_date, default=None, help="last day (YYYY-MM-DD)")
    parser.add_argument(
        "--export", type=Path, default=None, help="also write the session listing as CSV"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return the process exit code."""
    configure_logging()
    args = build_parser().parse_args(argv)

    try:
        rows = load_rows(args.rows)
        result = build_dashboard(
            rows,
            args.view,
            DashboardScope(company=args.company, start=args.start, end=args.end),
        )
    except (RowSourceError, UnknownViewError) as exc:
        logger.error("%s", exc)
        return 1

    if args.export is not None:
        try:
            write_csv(result, args.export)
        except OSError as exc:
            logger.error("Cannot write export to %s: %s", args.export, exc)
            return 1

    print(render_report(result))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
