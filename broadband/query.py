"""
Hex query service: bulk listing and single-hex detail.

Both operations read the immutable tables through an injected store.
User-supplied hex ids pass a strict allow-list check before any query is
issued, and are then bound as query parameters.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List

from broadband.config import (
    COL_BRAND,
    COL_DOWN,
    COL_HEX,
    COL_LOW_LATENCY,
    COL_TECH,
    COL_UP,
    HEX_ID_PATTERN,
    RAW_TABLE,
    SUMMARY_TABLE,
)
from broadband.errors import InvalidInput, NotFound, StorageUnavailable
from broadband.store import DuckDBStore

logger = logging.getLogger(__name__)

_HEX_ID_RE = re.compile(HEX_ID_PATTERN)

_LIST_SQL = f"""
    SELECT {COL_HEX}, provider_count, max_download, max_upload, tech_count
    FROM {SUMMARY_TABLE}
    ORDER BY {COL_HEX}
"""

_SUMMARY_SQL = f"SELECT * FROM {SUMMARY_TABLE} WHERE {COL_HEX} = ?"

_PROVIDERS_SQL = f"""
    SELECT
      {COL_BRAND} AS brand_name,
      CAST({COL_TECH} AS INTEGER) AS technology,
      CAST({COL_DOWN} AS INTEGER) AS download,
      CAST({COL_UP} AS INTEGER) AS upload,
      CAST({COL_LOW_LATENCY} AS INTEGER) AS low_latency,
      CAST(COUNT(*) AS INTEGER) AS locations
    FROM {RAW_TABLE}
    WHERE {COL_HEX} = ?
    GROUP BY {COL_BRAND}, {COL_TECH}, {COL_DOWN}, {COL_UP}, {COL_LOW_LATENCY}
    ORDER BY download DESC, brand_name, technology, upload DESC, low_latency
"""


def validate_hex_id(hex_id: Any) -> str:
    """
    Return the canonical (lower-case) form of *hex_id*.

    Raises
    ------
    InvalidInput
        If *hex_id* is not a string of 1-16 hexadecimal digits.
    """
    if not isinstance(hex_id, str) or not _HEX_ID_RE.fullmatch(hex_id):
        raise InvalidInput(f"Invalid hex ID format: {hex_id!r}")
    return hex_id.lower()


class HexQueryService:
    """
    Read-only queries over ``hex_summary`` and ``broadband``.

    The service refuses to start until the summary table has been built.
    """

    def __init__(self, store: DuckDBStore) -> None:
        for table in (RAW_TABLE, SUMMARY_TABLE):
            if not store.table_exists(table):
                raise StorageUnavailable(
                    f"Table {table!r} has not been built; run the build first"
                )
        self.store = store

    def list_hexes(self) -> List[Dict[str, Any]]:
        """Every hex with the four metrics the client scores from."""
        rows = self.store.query(_LIST_SQL)
        return [
            {
                "id": hex_id,
                "providers": providers,
                "maxDownload": max_download,
                "maxUpload": max_upload,
                "techCount": tech_count,
            }
            for hex_id, providers, max_download, max_upload, tech_count in rows
        ]

    def get_hex_detail(self, hex_id: Any) -> Dict[str, Any]:
        """
        Summary plus per-provider breakdown for one hex.

        *hex_id* is matched case-insensitively.  The returned ``hexId`` is
        the canonical lower-case id that was looked up, not the caller's
        spelling of it.

        Raises
        ------
        InvalidInput
            Malformed *hex_id* (storage is never queried).
        NotFound
            No summary row for *hex_id*.
        """
        hex_id = validate_hex_id(hex_id)

        summary = self.store.query_dicts(_SUMMARY_SQL, [hex_id])
        if not summary:
            raise NotFound(f"Hex not found: {hex_id}")
        row = summary[0]

        providers = self.store.query_dicts(_PROVIDERS_SQL, [hex_id])
        logger.debug("Hex %s: %d provider group(s)", hex_id, len(providers))

        return {
            "hexId": hex_id,
            "summary": {
                "providerCount": row["provider_count"],
                "brandCount": row["brand_count"],
                "maxDownload": row["max_download"],
                "maxUpload": row["max_upload"],
                "techCount": row["tech_count"],
                "technologies": list(row["technologies"]),
                "locationCount": row["location_count"],
                "hasLowLatency": bool(row["has_low_latency"]),
            },
            "providers": [
                {
                    "provider": p["brand_name"],
                    "tech": p["technology"],
                    "download": p["download"],
                    "upload": p["upload"],
                    "lowLatency": p["low_latency"],
                    "locations": p["locations"],
                }
                for p in providers
            ],
        }
