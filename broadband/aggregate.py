"""
Hex aggregation: ``broadband`` → ``hex_summary``.

One grouped pass over the raw table produces one row per H3 cell.  Every
count and maximum is cast to a 32-bit INTEGER so consumers see bounded
values rather than DuckDB's default BIGINT/HUGEINT.  The technology list
is sorted and rows are ordered by cell id, so rebuilding from the same raw
table yields identical rows.
"""

from __future__ import annotations

import logging

from broadband.config import (
    COL_BRAND,
    COL_DOWN,
    COL_HEX,
    COL_LOW_LATENCY,
    COL_PROVIDER,
    COL_TECH,
    COL_UP,
    RAW_TABLE,
    SUMMARY_TABLE,
)
from broadband.store import DuckDBStore

logger = logging.getLogger(__name__)

SUMMARY_INDEX: str = "idx_hex"
RAW_INDEX: str = "idx_broadband_hex"

_SUMMARY_SQL = f"""
    CREATE TABLE {SUMMARY_TABLE} AS
    SELECT
      {COL_HEX},
      CAST(COUNT(DISTINCT {COL_PROVIDER}) AS INTEGER) AS provider_count,
      CAST(COUNT(DISTINCT {COL_BRAND}) AS INTEGER) AS brand_count,
      CAST(MAX({COL_DOWN}) AS INTEGER) AS max_download,
      CAST(MAX({COL_UP}) AS INTEGER) AS max_upload,
      CAST(COUNT(DISTINCT {COL_TECH}) AS INTEGER) AS tech_count,
      list_sort(LIST(DISTINCT CAST({COL_TECH} AS INTEGER))) AS technologies,
      CAST(COUNT(*) AS INTEGER) AS location_count,
      COALESCE(BOOL_OR({COL_LOW_LATENCY} = 1), false) AS has_low_latency
    FROM {RAW_TABLE}
    GROUP BY {COL_HEX}
    ORDER BY {COL_HEX}
"""


def build_hex_summary(store: DuckDBStore) -> int:
    """
    (Re)build the hex summary table and the hex-id lookup indexes.

    An empty raw table yields an empty summary table.

    Returns
    -------
    Number of summary rows (distinct hex ids).
    """
    logger.info("Creating %s aggregation table…", SUMMARY_TABLE)

    store.execute(f"DROP INDEX IF EXISTS {SUMMARY_INDEX}")
    store.execute(f"DROP TABLE IF EXISTS {SUMMARY_TABLE}")
    store.execute(_SUMMARY_SQL)

    create_indexes(store)

    n_hexes = store.count_rows(SUMMARY_TABLE)
    logger.info("%s built: %d unique hexes", SUMMARY_TABLE, n_hexes)
    return n_hexes


def create_indexes(store: DuckDBStore) -> None:
    """Index the hex id on both tables for the query service's point lookups."""
    store.execute(
        f"CREATE INDEX IF NOT EXISTS {SUMMARY_INDEX} ON {SUMMARY_TABLE}({COL_HEX})"
    )
    store.execute(
        f"CREATE INDEX IF NOT EXISTS {RAW_INDEX} ON {RAW_TABLE}({COL_HEX})"
    )
    logger.debug("Indexes %s, %s ready", SUMMARY_INDEX, RAW_INDEX)
