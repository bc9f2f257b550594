"""
Acceptance validation for a built hex summary table.

Call ``validate_summary`` after the build.  Raises
``SummaryValidationError`` listing all failed checks if any fail.
"""

from __future__ import annotations

import logging
from typing import List

from broadband.config import COL_HEX, RAW_TABLE, SUMMARY_TABLE
from broadband.errors import SummaryValidationError
from broadband.store import DuckDBStore

logger = logging.getLogger(__name__)


def _count(store: DuckDBStore, sql: str) -> int:
    return int(store.query(sql)[0][0])


def validate_summary(store: DuckDBStore) -> None:
    """
    Check the aggregation invariants of ``hex_summary`` against ``broadband``.

    Checks
    ------
    V1  One summary row per distinct raw hex id.
    V2  provider_count <= location_count.
    V3  location_count equals the raw row count for that hex id.
    V4  max_download and max_upload are present and non-negative.
    V5  technologies is non-empty and has tech_count entries.

    Raises
    ------
    SummaryValidationError
        If any check fails.  All failures are collected and reported together.
    """
    failures: List[str] = []

    # V1: one row per hex
    n_summary = store.count_rows(SUMMARY_TABLE)
    n_distinct = _count(store, f"SELECT COUNT(DISTINCT {COL_HEX}) FROM {RAW_TABLE}")
    if n_summary != n_distinct:
        failures.append(
            f"V1: {n_summary} summary rows for {n_distinct} distinct raw hex ids."
        )

    # V2: providers bounded by locations
    n_bad = _count(
        store,
        f"SELECT COUNT(*) FROM {SUMMARY_TABLE} WHERE provider_count > location_count",
    )
    if n_bad:
        failures.append(f"V2: {n_bad} hex(es) with provider_count > location_count.")

    # V3: location_count matches raw rows
    n_bad = _count(
        store,
        f"""
        SELECT COUNT(*)
        FROM {SUMMARY_TABLE} s
        JOIN (
            SELECT {COL_HEX}, COUNT(*) AS n FROM {RAW_TABLE} GROUP BY {COL_HEX}
        ) r USING ({COL_HEX})
        WHERE s.location_count <> r.n
        """,
    )
    if n_bad:
        failures.append(f"V3: {n_bad} hex(es) whose location_count != raw row count.")

    # V4: speeds present and non-negative
    n_bad = _count(
        store,
        f"""
        SELECT COUNT(*) FROM {SUMMARY_TABLE}
        WHERE max_download IS NULL OR max_upload IS NULL
           OR max_download < 0 OR max_upload < 0
        """,
    )
    if n_bad:
        failures.append(f"V4: {n_bad} hex(es) with missing or negative max speeds.")

    # V5: technology set consistent
    n_bad = _count(
        store,
        f"""
        SELECT COUNT(*) FROM {SUMMARY_TABLE}
        WHERE location_count > 0
          AND (len(technologies) = 0 OR len(technologies) <> tech_count)
        """,
    )
    if n_bad:
        failures.append(f"V5: {n_bad} hex(es) with an empty or inconsistent technology set.")

    if failures:
        msg = f"{SUMMARY_TABLE} validation failed ({len(failures)} issue(s)):\n" + "\n".join(
            f"  {f}" for f in failures
        )
        logger.error(msg)
        raise SummaryValidationError(msg)

    logger.info("All validation checks passed (%d hexes).", n_summary)
