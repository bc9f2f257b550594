"""
Pytest configuration and shared fixtures.
"""
from pathlib import Path

import pandas as pd
import pytest

from broadband.aggregate import build_hex_summary
from broadband.config import DatasetConfig
from broadband.loader import load_records
from broadband.store import DuckDBStore

HEX_A = "8844d6abffffff"
HEX_B = "882aa84e3bfffff"

RAW_COLUMNS = [
    "frn",
    "provider_id",
    "brand_name",
    "location_id",
    "technology",
    "max_advertised_download_speed",
    "max_advertised_upload_speed",
    "low_latency",
    "h3_res8_id",
]


def raw_row(hex_id, provider_id, brand, tech, down, up, low_latency, location_id=1000):
    return {
        "frn": 12345,
        "provider_id": provider_id,
        "brand_name": brand,
        "location_id": location_id,
        "technology": tech,
        "max_advertised_download_speed": down,
        "max_advertised_upload_speed": up,
        "low_latency": low_latency,
        "h3_res8_id": hex_id,
    }


EXAMPLE_ROWS = [
    raw_row(HEX_A, 130001, "ProviderA", 40, 1200, 100, 0, location_id=1),
    raw_row(HEX_A, 130001, "ProviderA", 50, 5000, 5000, 1, location_id=1),
    raw_row(HEX_A, 130002, "ProviderB", 40, 1200, 100, 0, location_id=1),
]

OTHER_ROWS = [
    raw_row(HEX_B, 130003, "ProviderC", 10, 100, 10, 0, location_id=2),
    raw_row(HEX_B, 130003, "ProviderC", 10, 100, 10, 0, location_id=3),
    raw_row(HEX_B, 130004, "ProviderD", 61, 250, 25, 1, location_id=2),
]


def write_csv(path: Path, rows, columns=RAW_COLUMNS) -> Path:
    pd.DataFrame(rows, columns=columns).to_csv(path, index=False)
    return path


@pytest.fixture
def store():
    """Connected in-memory store, closed after the test."""
    with DuckDBStore() as s:
        yield s


@pytest.fixture
def source_dir(tmp_path):
    """Two CSV files with the same schema: the worked example and a second hex."""
    d = tmp_path / "raw"
    d.mkdir()
    write_csv(d / "cable.csv", EXAMPLE_ROWS)
    write_csv(d / "other.csv", OTHER_ROWS)
    return d


@pytest.fixture
def dataset(source_dir):
    return DatasetConfig(
        name="Test",
        slug="test",
        source_dir=source_dir,
        files=["cable.csv", "other.csv"],
    )


@pytest.fixture
def built_store(store, source_dir):
    """Store with both raw files loaded and the summary built."""
    load_records(store, source_dir, ["cable.csv", "other.csv"])
    build_hex_summary(store)
    return store
