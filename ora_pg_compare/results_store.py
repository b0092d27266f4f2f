from __future__ import annotations

import logging
from typing import Any

from ora_pg_compare.db import execute, execute_many
from ora_pg_compare.models import DbObject, DifferenceRow, ObjectKind, RunContext
from ora_pg_compare.settings import settings

LOGGER = logging.getLogger(__name__)

COLUMNS = ("run_id", "run_timestamp", "object_kind", "object_name", "schema_name", "status", "source_db")


def _quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _quote_table(table_name: str) -> str:
    # schema.table -> "schema"."table"
    return ".".join(_quote_ident(part) for part in table_name.split("."))


def ensure_results_table(conn_info: dict[str, Any], table: str | None = None) -> None:
    table = table or settings.results_table
    execute(
        conn_info,
        f"""
        CREATE TABLE IF NOT EXISTS {_quote_table(table)} (
            id BIGSERIAL PRIMARY KEY,
            run_id UUID NOT NULL,
            run_timestamp TIMESTAMP NOT NULL,
            object_kind TEXT NOT NULL,
            object_name TEXT NOT NULL,
            schema_name TEXT NOT NULL,
            status TEXT NOT NULL,
            source_db TEXT NOT NULL
        )
        """,
    )


def difference_rows(
    run: RunContext,
    kind: ObjectKind,
    objects: list[DbObject],
    status: str,
    source_db: str,
) -> list[DifferenceRow]:
    return [
        DifferenceRow(
            run_id=run.run_id,
            run_timestamp=run.run_timestamp,
            object_kind=kind.value,
            object_name=o.name,
            schema_name=o.schema_name,
            status=status,
            source_db=source_db,
        )
        for o in objects
    ]


def persist_differences(
    conn_info: dict[str, Any],
    run: RunContext,
    kind: ObjectKind,
    objects: list[DbObject],
    status: str,
    source_db: str,
    table: str | None = None,
) -> int:
    """Append one batch of differences to the audit table and return the row count.

    Empty batches are skipped without touching the database. Driver failures
    surface as PersistenceError.
    """
    if not objects:
        return 0

    table = table or settings.results_table
    placeholders = ", ".join(["%s"] * len(COLUMNS))
    sql = f"INSERT INTO {_quote_table(table)} ({', '.join(COLUMNS)}) VALUES ({placeholders})"
    rows = [r.as_params() for r in difference_rows(run, kind, objects, status, source_db)]
    written = execute_many(conn_info, sql, rows)
    LOGGER.info("Persisted %d %s rows for %s (run %s)", written, status, kind.value, run.run_id)
    return written
