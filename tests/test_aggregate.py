"""
Tests for the hex summary aggregation.
"""
from broadband.aggregate import build_hex_summary
from broadband.loader import load_records
from conftest import HEX_A, HEX_B, raw_row, write_csv


def _summary(store, hex_id):
    return store.query_dicts("SELECT * FROM hex_summary WHERE h3_res8_id = ?", [hex_id])[0]


class TestBuildHexSummary:

    def test_worked_example(self, built_store):
        row = _summary(built_store, HEX_A)

        assert row["provider_count"] == 2
        assert row["brand_count"] == 2
        assert row["max_download"] == 5000
        assert row["max_upload"] == 5000
        assert row["tech_count"] == 2
        assert row["technologies"] == [40, 50]
        assert row["location_count"] == 3
        assert row["has_low_latency"] is True

    def test_one_row_per_hex(self, built_store):
        ids = [r[0] for r in built_store.query("SELECT h3_res8_id FROM hex_summary")]
        assert ids == sorted([HEX_A, HEX_B])

    def test_second_hex(self, built_store):
        row = _summary(built_store, HEX_B)

        assert row["provider_count"] == 2
        assert row["location_count"] == 3
        assert row["technologies"] == [10, 61]
        assert row["has_low_latency"] is True

    def test_numeric_fields_are_32_bit(self, built_store):
        types = dict(
            built_store.query(
                "SELECT column_name, data_type FROM duckdb_columns() "
                "WHERE table_name = 'hex_summary'"
            )
        )
        for col in (
            "provider_count",
            "brand_count",
            "max_download",
            "max_upload",
            "tech_count",
            "location_count",
        ):
            assert types[col] == "INTEGER", col
        assert types["technologies"] == "INTEGER[]"
        assert types["has_low_latency"] == "BOOLEAN"

    def test_invariants_hold(self, built_store):
        rows = built_store.query_dicts(
            """
            SELECT s.provider_count, s.location_count, r.n
            FROM hex_summary s
            JOIN (SELECT h3_res8_id, COUNT(*) AS n FROM broadband GROUP BY 1) r
              USING (h3_res8_id)
            """
        )
        assert len(rows) == 2
        for row in rows:
            assert row["provider_count"] <= row["location_count"]
            assert row["location_count"] == row["n"]

    def test_rebuild_is_identical(self, built_store):
        first = built_store.query("SELECT * FROM hex_summary")
        n = build_hex_summary(built_store)
        second = built_store.query("SELECT * FROM hex_summary")

        assert n == 2
        assert first == second

    def test_indexes_created(self, built_store):
        names = {
            r[0] for r in built_store.query("SELECT index_name FROM duckdb_indexes()")
        }
        assert {"idx_hex", "idx_broadband_hex"} <= names

    def test_empty_raw_table_gives_empty_summary(self, store):
        store.execute(
            """
            CREATE TABLE broadband (
                h3_res8_id VARCHAR, provider_id BIGINT, brand_name VARCHAR,
                technology INTEGER, max_advertised_download_speed BIGINT,
                max_advertised_upload_speed BIGINT, low_latency INTEGER
            )
            """
        )

        assert build_hex_summary(store) == 0
        assert store.table_exists("hex_summary")
        assert store.count_rows("hex_summary") == 0

    def test_low_latency_false_when_no_row_is(self, store, tmp_path):
        write_csv(
            tmp_path / "one.csv",
            [raw_row(HEX_B, 1, "Solo", 50, 1000, 1000, 0)],
        )
        load_records(store, tmp_path, ["one.csv"])
        build_hex_summary(store)

        assert _summary(store, HEX_B)["has_low_latency"] is False
