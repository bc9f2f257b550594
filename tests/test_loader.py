"""
Tests for raw record loading.
"""
import pytest

from broadband.errors import SchemaMismatch
from broadband.loader import load_records
from conftest import EXAMPLE_ROWS, OTHER_ROWS, RAW_COLUMNS, raw_row, write_csv


class TestLoadRecords:

    def test_first_file_creates_table_and_rest_append(self, store, source_dir):
        n = load_records(store, source_dir, ["cable.csv", "other.csv"])

        assert n == len(EXAMPLE_ROWS) + len(OTHER_ROWS)
        assert store.table_exists("broadband")
        assert store.columns("broadband") == RAW_COLUMNS

    def test_single_file(self, store, source_dir):
        assert load_records(store, source_dir, ["cable.csv"]) == 3

    def test_missing_file_fails_before_loading(self, store, source_dir):
        with pytest.raises(FileNotFoundError):
            load_records(store, source_dir, ["cable.csv", "nope.csv"])
        assert not store.table_exists("broadband")

    def test_empty_file_list(self, store, source_dir):
        with pytest.raises(ValueError):
            load_records(store, source_dir, [])

    def test_later_file_with_different_columns(self, store, source_dir):
        cols = [c for c in RAW_COLUMNS if c != "low_latency"]
        rows = [{k: v for k, v in r.items() if k in cols} for r in OTHER_ROWS]
        write_csv(source_dir / "short.csv", rows, columns=cols)

        with pytest.raises(SchemaMismatch):
            load_records(store, source_dir, ["cable.csv", "short.csv"])

    def test_later_file_with_reordered_columns(self, store, source_dir):
        cols = list(reversed(RAW_COLUMNS))
        write_csv(source_dir / "reordered.csv", OTHER_ROWS, columns=cols)

        with pytest.raises(SchemaMismatch):
            load_records(store, source_dir, ["cable.csv", "reordered.csv"])

    def test_later_file_with_unconvertible_values(self, store, source_dir):
        rows = [raw_row("882aa84e3bfffff", 1, "X", 40, "fast", "slow", 0)]
        write_csv(source_dir / "text_speeds.csv", rows)

        with pytest.raises(SchemaMismatch):
            load_records(store, source_dir, ["cable.csv", "text_speeds.csv"])

    def test_first_file_missing_required_column(self, store, source_dir):
        cols = [c for c in RAW_COLUMNS if c != "h3_res8_id"]
        rows = [{k: v for k, v in r.items() if k in cols} for r in EXAMPLE_ROWS]
        write_csv(source_dir / "no_hex.csv", rows, columns=cols)

        with pytest.raises(SchemaMismatch):
            load_records(store, source_dir, ["no_hex.csv"])
