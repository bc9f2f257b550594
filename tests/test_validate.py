"""
Tests for summary acceptance validation.
"""
import pytest

from broadband.errors import SummaryValidationError
from broadband.validate import validate_summary
from conftest import HEX_A


def test_built_summary_passes(built_store):
    validate_summary(built_store)


def test_provider_count_above_location_count(built_store):
    built_store.execute(
        "UPDATE hex_summary SET provider_count = 99 WHERE h3_res8_id = ?", [HEX_A]
    )
    with pytest.raises(SummaryValidationError, match="V2"):
        validate_summary(built_store)


def test_all_failures_reported_together(built_store):
    built_store.execute(
        "UPDATE hex_summary SET location_count = 1, max_upload = -1, "
        "technologies = []::INTEGER[] WHERE h3_res8_id = ?",
        [HEX_A],
    )
    with pytest.raises(SummaryValidationError) as exc_info:
        validate_summary(built_store)

    msg = str(exc_info.value)
    for check in ("V2", "V3", "V4", "V5"):
        assert check in msg


def test_missing_hex_row(built_store):
    built_store.execute("DELETE FROM hex_summary WHERE h3_res8_id = ?", [HEX_A])
    with pytest.raises(SummaryValidationError, match="V1"):
        validate_summary(built_store)
