"""
Startup orchestration.

Ties together artifact fetch → store → raw load → hex aggregation.
Called by the CLI (cli.py) and by whatever process hosts the HTTP layer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple, Union

from broadband.aggregate import build_hex_summary, create_indexes
from broadband.config import (
    DB_PATH,
    LOCAL_DB_PATH,
    RAW_TABLE,
    SUMMARY_TABLE,
    DatasetConfig,
)
from broadband.fetch import ensure_local_database
from broadband.loader import load_records
from broadband.store import MEMORY, DuckDBStore

logger = logging.getLogger(__name__)


def build_store(store: DuckDBStore, dataset: DatasetConfig) -> Tuple[int, int]:
    """
    Load the dataset's raw files and build the summary table in *store*.

    Returns
    -------
    ``(raw_rows, unique_hexes)``
    """
    logger.info("[%s] Building database from CSV files…", dataset.slug)
    n_rows = load_records(store, dataset.source_dir, dataset.files)
    n_hexes = build_hex_summary(store)
    return n_rows, n_hexes


def _log_ready(store: DuckDBStore, label: str) -> None:
    logger.info(
        "DuckDB %s: %s records, %s unique hexes",
        label,
        f"{store.count_rows(RAW_TABLE):,}",
        f"{store.count_rows(SUMMARY_TABLE):,}",
    )


def initialize_store(
    dataset: DatasetConfig,
    db_location: str = DB_PATH,
    local_path: Union[str, Path] = LOCAL_DB_PATH,
    force_download: bool = False,
) -> DuckDBStore:
    """
    Open (fetching if remote) the database and make sure it is built.

    A database that already holds the raw table is reused as-is; only a
    missing summary table is rebuilt.  Otherwise the raw files are loaded
    and aggregated.  Any failure closes the store and propagates: there is
    no partially initialised service.

    Parameters
    ----------
    dataset:
        Which raw files to build from when no prebuilt data is present.
    db_location:
        File path, ``":memory:"``, or http(s) URL of a prebuilt database.
    local_path:
        Where a downloaded database is cached.
    force_download:
        Re-download even if *local_path* exists.
    """
    logger.info("Initializing DuckDB…")
    path = ensure_local_database(db_location, local_path, force=force_download)

    store = DuckDBStore(path).connect()
    try:
        if store.table_exists(RAW_TABLE):
            logger.info("Using pre-built database")
            if not store.table_exists(SUMMARY_TABLE):
                build_hex_summary(store)
            else:
                create_indexes(store)
            _log_ready(store, "ready")
            return store

        build_store(store, dataset)
        _log_ready(store, "initialized")
        return store
    except Exception:
        store.close()
        raise


def rebuild_database(
    dataset: DatasetConfig,
    db_path: Union[str, Path] = LOCAL_DB_PATH,
) -> Path:
    """
    Build a fresh database file from the raw CSVs, replacing any existing one.

    Returns
    -------
    Path of the written database file.

    Raises
    ------
    ValueError
        If *db_path* is ``":memory:"``; there would be no file to write.
    """
    if str(db_path) == MEMORY:
        raise ValueError("rebuild_database needs a file path, not ':memory:'")
    db_path = Path(db_path)
    for stale in (db_path, db_path.with_name(db_path.name + ".wal")):
        if stale.exists():
            logger.info("Removing existing database file %s…", stale)
            stale.unlink()

    with DuckDBStore(db_path) as store:
        build_store(store, dataset)
        _log_ready(store, "initialized")
        store.execute("CHECKPOINT")

    if not db_path.exists():
        raise FileNotFoundError(f"Database file was not created: {db_path}")
    size_mb = db_path.stat().st_size / 1024 / 1024
    logger.info("Database built successfully: %.2f MB", size_mb)
    return db_path
