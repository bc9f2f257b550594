"""
Raw record loading: BDC availability CSV exports → ``broadband`` table.

The first file creates the table and fixes its column set; every later file
is appended positionally and must carry exactly the same columns.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence, Union

import duckdb

from broadband.config import RAW_TABLE, REQUIRED_COLUMNS
from broadband.errors import SchemaMismatch
from broadband.store import DuckDBStore

logger = logging.getLogger(__name__)


def _resolve(source_dir: Union[str, Path], files: Sequence[str]) -> List[Path]:
    paths = [Path(source_dir) / f for f in files]
    missing = [str(p) for p in paths if not p.exists()]
    if missing:
        raise FileNotFoundError(f"Source file(s) not found: {missing}")
    return paths


def _check_required(columns: List[str], path: Path) -> None:
    missing = [c for c in REQUIRED_COLUMNS if c not in columns]
    if missing:
        raise SchemaMismatch(
            f"{path.name} lacks required column(s) {missing}; has {columns}"
        )


def load_records(
    store: DuckDBStore,
    source_dir: Union[str, Path],
    files: Sequence[str],
    table: str = RAW_TABLE,
) -> int:
    """
    Build the raw availability table from an ordered list of CSV files.

    Parameters
    ----------
    store:
        Connected store to create the table in.
    source_dir:
        Directory holding the files.
    files:
        File names; the first one establishes the schema.
    table:
        Name of the table to create (default ``broadband``).

    Returns
    -------
    Number of rows in the table after loading.

    Raises
    ------
    FileNotFoundError
        If any listed file does not exist (checked before anything loads).
    SchemaMismatch
        If the first file lacks a required column, or a later file's
        columns differ from the table's or cannot be converted to its types.
    """
    if not files:
        raise ValueError("At least one source file is required")

    paths = _resolve(source_dir, files)
    cur = store.cursor()

    first, rest = paths[0], paths[1:]
    logger.info("Loading %s…", first.name)
    rel = cur.read_csv(str(first))
    _check_required(list(rel.columns), first)
    rel.create(table)
    table_columns = store.columns(table)

    for path in rest:
        logger.info("Loading %s…", path.name)
        rel = cur.read_csv(str(path))
        columns = list(rel.columns)
        if columns != table_columns:
            raise SchemaMismatch(
                f"{path.name} columns {columns} do not match "
                f"{table} columns {table_columns}"
            )
        try:
            rel.insert_into(table)
        except (
            duckdb.ConversionException,
            duckdb.BinderException,
            duckdb.TypeMismatchException,
            duckdb.InvalidInputException,
        ) as exc:
            raise SchemaMismatch(
                f"{path.name} rows are incompatible with {table}: {exc}"
            ) from exc

    n_rows = store.count_rows(table)
    logger.info("Loaded %d file(s) into %s: %d rows", len(paths), table, n_rows)
    return n_rows
