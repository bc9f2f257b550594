"""
CLI entrypoint for the broadband hex pipeline.

Usage
-----
    python -m broadband build --dataset maryland
    python -m broadband hexes --score > hexes.json
    python -m broadband hex 882aa84e3bfffff
    python -m broadband export --no_geojson
    python -m broadband validate

or via the installed script:

    broadband build
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from broadband.api import hex_detail_response, list_hexes_response
from broadband.config import DATASETS, DB_PATH, DEFAULT_DATASET, LOCAL_DB_PATH, TECH_NAMES
from broadband.errors import BroadbandError
from broadband.fetch import is_remote
from broadband.io import export_all
from broadband.pipeline import initialize_store, rebuild_database
from broadband.query import HexQueryService
from broadband.score import HexMetrics, score_color, score_hex
from broadband.store import MEMORY, DuckDBStore
from broadband.validate import validate_summary

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="broadband",
        description=(
            "Aggregate FCC fixed-broadband availability records onto H3 "
            "hexagons and score each hex 0-100."
        ),
    )
    parser.add_argument(
        "--dataset",
        default=DEFAULT_DATASET,
        choices=sorted(DATASETS),
        help=f"Dataset to build from (default: {DEFAULT_DATASET})",
    )
    parser.add_argument(
        "--db",
        default=DB_PATH,
        metavar="PATH|URL",
        help=(
            "Database file, ':memory:', or URL of a prebuilt database "
            f"(default: {DB_PATH})"
        ),
    )
    parser.add_argument(
        "--log_level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser(
        "build",
        help=(
            "Rebuild the database file from the raw CSVs "
            f"(written to {LOCAL_DB_PATH} when --db is ':memory:' or a URL)."
        ),
    )

    p_hexes = sub.add_parser("hexes", help="Print every hex summary as JSON.")
    p_hexes.add_argument(
        "--score",
        action="store_true",
        help="Add each hex's composite score and map color.",
    )

    p_hex = sub.add_parser("hex", help="Print the detail for one hex as JSON.")
    p_hex.add_argument("hex_id", help="H3 cell id")

    p_export = sub.add_parser("export", help="Write Parquet/GeoJSON/summary outputs.")
    p_export.add_argument("--out_dir", default=None, help="Output directory.")
    p_export.add_argument("--no_geojson", action="store_true", help="Skip GeoJSON output.")

    sub.add_parser("validate", help="Check the summary table invariants.")

    p_fetch = sub.add_parser("fetch", help="Fetch (if remote) and initialize the database.")
    p_fetch.add_argument("--refresh", action="store_true", help="Re-download even if cached.")
    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _print_json(payload: Any) -> None:
    json.dump(payload, sys.stdout, indent=2)
    sys.stdout.write("\n")


def _cmd_hexes(service: HexQueryService, args: argparse.Namespace) -> int:
    status, payload = list_hexes_response(service)
    if status == 200 and args.score:
        for hex_row in payload:
            hex_row["score"] = score_hex(HexMetrics.from_listing(hex_row))
            hex_row["color"] = score_color(hex_row["score"])
    _print_json(payload)
    return 0 if status == 200 else 1


def _cmd_hex(service: HexQueryService, args: argparse.Namespace) -> int:
    status, payload = hex_detail_response(service, args.hex_id)
    if status == 200:
        s = payload["summary"]
        payload["score"] = score_hex(
            HexMetrics(s["maxDownload"], s["maxUpload"], s["providerCount"], s["techCount"])
        )
        for p in payload["providers"]:
            p["techName"] = TECH_NAMES.get(p["tech"], f"Tech {p['tech']}")
    _print_json(payload)
    return 0 if status == 200 else 1


def _run(args: argparse.Namespace) -> int:
    dataset = DATASETS[args.dataset]

    if args.command == "build":
        # build always writes a local file
        db_path = LOCAL_DB_PATH if args.db == MEMORY or is_remote(args.db) else args.db
        rebuild_database(dataset, db_path)
        with DuckDBStore(db_path) as store:
            validate_summary(store)
        return 0

    if args.command == "fetch":
        store = initialize_store(dataset, args.db, force_download=args.refresh)
        store.close()
        return 0

    store = initialize_store(dataset, args.db)
    try:
        if args.command == "validate":
            validate_summary(store)
            return 0
        if args.command == "export":
            export_all(store, dataset, emit_geojson=not args.no_geojson, out_dir=args.out_dir)
            return 0

        service = HexQueryService(store)
        if args.command == "hexes":
            return _cmd_hexes(service, args)
        return _cmd_hex(service, args)
    finally:
        store.close()


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("pyogrio").setLevel(logging.WARNING)

    try:
        code = _run(args)
    except (BroadbandError, FileNotFoundError) as exc:
        logger.error("%s failed: %s", args.command, exc, exc_info=True)
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
