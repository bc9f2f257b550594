"""
Output writers: scored hex table to Parquet, GeoJSON and summary statistics.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import geopandas as gpd
import h3
import pandas as pd
from shapely.geometry import Polygon

from broadband.config import COL_HEX, OUTPUT_COLUMNS, OUTPUT_DIR, SUMMARY_TABLE, DatasetConfig
from broadband.score import score_band, score_frame
from broadband.store import DuckDBStore

logger = logging.getLogger(__name__)

_SCORE_COL = "score"

_METRIC_COLS = [
    "provider_count",
    "max_download",
    "max_upload",
    "tech_count",
    "location_count",
    _SCORE_COL,
]


class _SafeEncoder(json.JSONEncoder):
    """Convert numpy scalars to plain JSON-serialisable types."""
    def default(self, obj):
        if hasattr(obj, "item"):   # numpy scalar (int64, float64, bool_, …)
            return obj.item()
        return super().default(obj)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _dataset_output_dir(dataset: DatasetConfig, out_dir: Optional[Path]) -> Path:
    d = (out_dir or OUTPUT_DIR) / dataset.slug
    d.mkdir(parents=True, exist_ok=True)
    return d


def _select_output_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Return the canonical output columns (in order)."""
    available = [c for c in OUTPUT_COLUMNS if c in df.columns]
    missing = set(OUTPUT_COLUMNS) - set(available)
    if missing:
        logger.warning("Output is missing columns: %s", sorted(missing))
    return df[available].copy()


def _cell_polygon(hex_id: str) -> Optional[Polygon]:
    if not h3.is_valid_cell(hex_id):
        return None
    # cell_to_boundary returns (lat, lng); shapely wants (x=lng, y=lat)
    return Polygon([(lng, lat) for lat, lng in h3.cell_to_boundary(hex_id)])


# ---------------------------------------------------------------------------
# Scored table
# ---------------------------------------------------------------------------

def scored_hexes(store: DuckDBStore) -> pd.DataFrame:
    """Every ``hex_summary`` row with component scores, score and color."""
    df = store.query_df(f"SELECT * FROM {SUMMARY_TABLE} ORDER BY {COL_HEX}")
    return score_frame(df)


# ---------------------------------------------------------------------------
# Parquet
# ---------------------------------------------------------------------------

def write_parquet(
    df: pd.DataFrame,
    dataset: DatasetConfig,
    filename: str = "hex_scores.parquet",
    out_dir: Optional[Path] = None,
) -> Path:
    """Write scored hexes to Parquet (no geometry column)."""
    path = _dataset_output_dir(dataset, out_dir) / filename
    out = _select_output_columns(df)
    out.to_parquet(path, index=False, engine="pyarrow")
    logger.info("[%s] Parquet written: %s (%d rows)", dataset.slug, path, len(out))
    return path


# ---------------------------------------------------------------------------
# GeoJSON
# ---------------------------------------------------------------------------

def write_geojson(
    df: pd.DataFrame,
    dataset: DatasetConfig,
    filename: str = "hex_scores.geojson",
    out_dir: Optional[Path] = None,
) -> Path:
    """
    Write scored hexes to GeoJSON using WGS-84 hex polygons.

    Cells that are not valid H3 indexes are skipped with a warning.
    """
    path = _dataset_output_dir(dataset, out_dir) / filename

    out = _select_output_columns(df)
    polygons = out[COL_HEX].map(_cell_polygon)
    invalid = polygons.isna()
    if invalid.any():
        logger.warning(
            "[%s] Skipping %d invalid hex ID(s), e.g. %s",
            dataset.slug,
            int(invalid.sum()),
            out.loc[invalid, COL_HEX].iloc[0],
        )
    out = out[~invalid]
    if out.empty:
        logger.warning("[%s] No valid hexes; skipping GeoJSON.", dataset.slug)
        return path

    geo = gpd.GeoDataFrame(out, geometry=list(polygons[~invalid]), crs="EPSG:4326")
    geo.to_file(path, driver="GeoJSON")
    logger.info("[%s] GeoJSON written: %s (%d features)", dataset.slug, path, len(geo))
    return path


# ---------------------------------------------------------------------------
# Summary statistics
# ---------------------------------------------------------------------------

def write_summary(
    df: pd.DataFrame,
    dataset: DatasetConfig,
    filename: str = "summary.json",
    out_dir: Optional[Path] = None,
) -> Path:
    """
    Write a JSON summary: score band distribution, metric stats, top/bottom hexes.
    """
    path = _dataset_output_dir(dataset, out_dir) / filename

    bands = df[_SCORE_COL].map(score_band) if len(df) else pd.Series(dtype="int64")
    band_counts = bands.value_counts().sort_index()

    desc: Dict[str, Any] = {}
    for col in _METRIC_COLS:
        if col in df.columns and len(df):
            s = df[col].astype(float).describe()
            desc[col] = {k: round(float(v), 6) for k, v in s.items()}

    cols = [COL_HEX, _SCORE_COL]
    top10 = df.nlargest(10, _SCORE_COL)[cols].to_dict(orient="records")
    bottom10 = df.nsmallest(10, _SCORE_COL)[cols].to_dict(orient="records")

    summary: Dict[str, Any] = {
        "dataset": dataset.name,
        "slug": dataset.slug,
        "total_hexes": int(len(df)),
        "band_distribution": {
            f"{k * 10}-{k * 10 + 10}": int(v) for k, v in band_counts.items()
        },
        "metric_stats": desc,
        "top10_by_score": top10,
        "bottom10_by_score": bottom10,
    }

    with open(path, "w") as f:
        json.dump(summary, f, indent=2, cls=_SafeEncoder)

    logger.info("[%s] Summary written: %s", dataset.slug, path)
    return path


def export_all(
    store: DuckDBStore,
    dataset: DatasetConfig,
    emit_geojson: bool = True,
    out_dir: Optional[Union[str, Path]] = None,
) -> pd.DataFrame:
    """Score every hex and write all outputs for *dataset*."""
    out_dir = Path(out_dir) if out_dir is not None else None
    df = scored_hexes(store)
    write_parquet(df, dataset, out_dir=out_dir)
    write_summary(df, dataset, out_dir=out_dir)
    if emit_geojson:
        write_geojson(df, dataset, out_dir=out_dir)
    return df
