from __future__ import annotations

import logging
import time
from typing import Any

import oracledb
import psycopg

from ora_pg_compare.errors import ConnectivityError, PersistenceError, QueryError

LOGGER = logging.getLogger(__name__)

ORACLE = "Oracle"
POSTGRES = "PostgreSQL"

PING_SQL = {
    ORACLE: "SELECT 1 FROM DUAL",
    POSTGRES: "SELECT 1",
}

_DRIVER_ERRORS = (oracledb.Error, psycopg.Error)


def _connect(dialect: str, conn_info: dict[str, Any]):
    if dialect == ORACLE:
        return oracledb.connect(**conn_info)
    if dialect == POSTGRES:
        return psycopg.connect(**conn_info)
    raise ValueError(f"Unknown dialect: {dialect}")


def run_query(
    dialect: str,
    conn_info: dict[str, Any],
    sql: str,
    params: dict[str, Any] | None = None,
) -> tuple[list[str], list[tuple], float]:
    """Run one read query and return (lower-cased column names, rows, seconds)."""
    t0 = time.time()
    try:
        with _connect(dialect, conn_info) as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params or {})
                rows = cur.fetchall()
                cols = [d[0].lower() for d in cur.description]
    except _DRIVER_ERRORS as exc:
        raise QueryError(dialect, str(exc)) from exc
    elapsed = time.time() - t0
    LOGGER.debug("%s query returned %d rows in %.3fs", dialect, len(rows), elapsed)
    return cols, rows, elapsed


def ping(dialect: str, conn_info: dict[str, Any]) -> None:
    try:
        run_query(dialect, conn_info, PING_SQL[dialect])
    except QueryError as exc:
        raise ConnectivityError(dialect, exc.message) from exc


def execute_many(conn_info: dict[str, Any], sql: str, rows: list[tuple]) -> int:
    # Writes only go to PostgreSQL (the audit store)
    try:
        with psycopg.connect(**conn_info) as conn:
            with conn.cursor() as cur:
                cur.executemany(sql, rows)
    except psycopg.Error as exc:
        raise PersistenceError(POSTGRES, str(exc)) from exc
    return len(rows)


def execute(conn_info: dict[str, Any], sql: str) -> None:
    try:
        with psycopg.connect(**conn_info) as conn:
            conn.execute(sql)
    except psycopg.Error as exc:
        raise PersistenceError(POSTGRES, str(exc)) from exc
