"""
Tests for the command-line entrypoint.
"""
import json

import pytest

from broadband import config
from broadband.cli import main
from conftest import HEX_A


@pytest.fixture
def cli_dataset(monkeypatch, dataset):
    monkeypatch.setitem(config.DATASETS, "test", dataset)
    return dataset


def _run(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


def test_hexes_with_score(cli_dataset, capsys):
    code = _run(["--dataset", "test", "--db", ":memory:", "hexes", "--score"])

    assert code == 0
    hexes = json.loads(capsys.readouterr().out)
    assert len(hexes) == 2
    for h in hexes:
        assert 0 <= h["score"] <= 100
        assert h["color"].startswith("#")


def test_hex_detail(cli_dataset, capsys):
    code = _run(["--dataset", "test", "--db", ":memory:", "hex", HEX_A])

    assert code == 0
    detail = json.loads(capsys.readouterr().out)
    assert detail["hexId"] == HEX_A
    assert detail["summary"]["providerCount"] == 2
    assert {p["techName"] for p in detail["providers"]} == {"Cable", "Fiber"}
    assert isinstance(detail["score"], int)


def test_hex_invalid_id(cli_dataset, capsys):
    code = _run(["--dataset", "test", "--db", ":memory:", "hex", "abc';"])

    assert code == 1
    assert json.loads(capsys.readouterr().out)["kind"] == "invalid_input"


def test_build_and_validate(cli_dataset, tmp_path):
    db = str(tmp_path / "broadband.duckdb")

    assert _run(["--dataset", "test", "--db", db, "build"]) == 0
    assert _run(["--dataset", "test", "--db", db, "validate"]) == 0


def test_startup_failure_exits_nonzero(cli_dataset):
    cli_dataset.files.append("missing.csv")

    assert _run(["--dataset", "test", "--db", ":memory:", "hexes"]) == 1


@pytest.mark.parametrize("db", [":memory:", "https://example.org/broadband.duckdb"])
def test_build_without_local_path_writes_default_file(cli_dataset, tmp_path, monkeypatch, db):
    local = tmp_path / "local" / "broadband.duckdb"
    monkeypatch.setattr("broadband.cli.LOCAL_DB_PATH", local)

    assert _run(["--dataset", "test", "--db", db, "build"]) == 0
    assert local.exists()
    assert _run(["--dataset", "test", "--db", str(local), "validate"]) == 0
