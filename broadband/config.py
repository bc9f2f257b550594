"""
Configuration: constants, dataset definitions, score breakpoints, paths.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
DATA_DIR: Path = Path(os.environ.get("BROADBAND_DATA_DIR", ROOT_DIR / "data"))
OUTPUT_DIR: Path = ROOT_DIR / "outputs"

# Local file the database lives in (and where a remote artifact is cached).
LOCAL_DB_PATH: Path = DATA_DIR / "broadband.duckdb"

# Either a filesystem path or an http(s) URL of a prebuilt database.
DB_PATH: str = os.environ.get("BROADBAND_DB_PATH", str(LOCAL_DB_PATH))

DOWNLOAD_TIMEOUT_SEC: float = 60.0
DOWNLOAD_CHUNK_BYTES: int = 1 << 20

# ---------------------------------------------------------------------------
# H3 settings
# ---------------------------------------------------------------------------

H3_RES: int = 8

# Strict allow-list for user-supplied hex ids (H3 ids are at most 16 hex digits).
HEX_ID_PATTERN: str = r"^[0-9a-fA-F]{1,16}\Z"

# ---------------------------------------------------------------------------
# Tables and raw columns
# ---------------------------------------------------------------------------

RAW_TABLE: str = "broadband"
SUMMARY_TABLE: str = "hex_summary"

COL_HEX: str = "h3_res8_id"
COL_PROVIDER: str = "provider_id"
COL_BRAND: str = "brand_name"
COL_TECH: str = "technology"
COL_DOWN: str = "max_advertised_download_speed"
COL_UP: str = "max_advertised_upload_speed"
COL_LOW_LATENCY: str = "low_latency"

REQUIRED_COLUMNS: List[str] = [
    COL_HEX,
    COL_PROVIDER,
    COL_BRAND,
    COL_TECH,
    COL_DOWN,
    COL_UP,
    COL_LOW_LATENCY,
]

SUMMARY_COLUMNS: List[str] = [
    COL_HEX,
    "provider_count",
    "brand_count",
    "max_download",
    "max_upload",
    "tech_count",
    "technologies",
    "location_count",
    "has_low_latency",
]

# ---------------------------------------------------------------------------
# Dataset definitions
# ---------------------------------------------------------------------------

MARYLAND_FILES: List[str] = [
    "bdc_24_Cable_fixed_broadband_J25_22nov2025.csv",
    "bdc_24_Copper_fixed_broadband_J25_22nov2025.csv",
    "bdc_24_FibertothePremises_fixed_broadband_J25_22nov2025.csv",
    "bdc_24_GSOSatellite_fixed_broadband_J25_22nov2025.csv",
    "bdc_24_NGSOSatellite_fixed_broadband_J25_22nov2025.csv",
    "bdc_24_LBRFixedWireless_fixed_broadband_J25_22nov2025.csv",
    "bdc_24_LicensedFixedWireless_fixed_broadband_J25_22nov2025.csv",
    "bdc_24_UnlicensedFixedWireless_fixed_broadband_J25_22nov2025.csv",
]


@dataclass
class DatasetConfig:
    name: str          # human-readable display name
    slug: str          # filesystem-safe identifier
    source_dir: Path   # directory holding the raw CSV exports
    files: List[str] = field(default_factory=list)  # first file sets the schema


DATASETS: Dict[str, DatasetConfig] = {
    "maryland": DatasetConfig(
        name="Maryland",
        slug="maryland",
        source_dir=DATA_DIR / "maryland",
        files=MARYLAND_FILES,
    ),
}

DEFAULT_DATASET: str = "maryland"

# ---------------------------------------------------------------------------
# Technology codes (BDC)
# ---------------------------------------------------------------------------

TECH_NAMES: Dict[int, str] = {
    10: "Copper/DSL",
    40: "Cable",
    50: "Fiber",
    60: "GSO Satellite",
    61: "NGSO Satellite",
    70: "Unlicensed FW",
    71: "Licensed FW",
    72: "LBR FW",
}

# ---------------------------------------------------------------------------
# Score breakpoints: (metric value, score)
# ---------------------------------------------------------------------------

# Calibrated on the Maryland distribution.
# Download: p10=280, p50=2000, p90=10000
DOWNLOAD_BREAKPOINTS: List[Tuple[float, float]] = [
    (150, 0),
    (280, 10),
    (1000, 25),
    (2000, 50),
    (2048, 75),
    (10000, 90),
    (100000, 100),
]

# Upload: p10=30, p50=880, p90=10000
UPLOAD_BREAKPOINTS: List[Tuple[float, float]] = [
    (5, 0),
    (30, 10),
    (100, 25),
    (880, 50),
    (2000, 75),
    (10000, 90),
    (100000, 100),
]

# Providers: p10=5, p50=7, p90=8
PROVIDER_BREAKPOINTS: List[Tuple[float, float]] = [
    (2, 0),
    (4, 20),
    (5, 35),
    (6, 50),
    (7, 70),
    (8, 85),
    (10, 100),
]

# Technology variety: min=1, max=7
TECH_BREAKPOINTS: List[Tuple[float, float]] = [
    (1, 0),
    (2, 20),
    (3, 40),
    (4, 55),
    (5, 75),
    (6, 90),
    (7, 100),
]

# ---------------------------------------------------------------------------
# Composite score weights
# ---------------------------------------------------------------------------

W_DOWNLOAD: float = 0.45
W_UPLOAD: float = 0.20
W_PROVIDERS: float = 0.25
W_TECHNOLOGY: float = 0.10

# ---------------------------------------------------------------------------
# Map palette: 10 steps from red (poor) to green (excellent)
# ---------------------------------------------------------------------------

SCORE_COLORS: List[str] = [
    "#dc2626",  # 0-10
    "#ea580c",  # 10-20
    "#f97316",  # 20-30
    "#fb923c",  # 30-40
    "#facc15",  # 40-50
    "#a3e635",  # 50-60
    "#4ade80",  # 60-70
    "#22c55e",  # 70-80
    "#16a34a",  # 80-90
    "#15803d",  # 90-100
]

# ---------------------------------------------------------------------------
# Export column schema (ordered)
# ---------------------------------------------------------------------------

OUTPUT_COLUMNS: List[str] = [
    COL_HEX,
    "provider_count",
    "brand_count",
    "max_download",
    "max_upload",
    "tech_count",
    "location_count",
    "has_low_latency",
    "download_score",
    "upload_score",
    "provider_score",
    "tech_score",
    "score",
    "color",
]
