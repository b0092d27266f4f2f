"""Catalog queries for Oracle and PostgreSQL.

Every query returns the same column set so rows map onto DbObject directly:
Oracle -> name, type, object_schema, owner, status, created, last_ddl_time
PostgreSQL -> name, type, object_schema, object_type, created_at, updated_at
"""

from __future__ import annotations

from functools import partial
from typing import Any

from ora_pg_compare.db import ORACLE, POSTGRES, run_query
from ora_pg_compare.models import DbObject, Fetcher, ObjectKind

_ORA_TS = "'YYYY-MM-DD HH24:MI:SS'"


def _oracle_all_objects_sql(object_type: str | None) -> str:
    type_expr = f"'{object_type}'" if object_type else "OBJECT_TYPE"
    type_filter = f" AND OBJECT_TYPE = '{object_type}'" if object_type else ""
    order_by = "OBJECT_NAME" if object_type else "OBJECT_TYPE, OBJECT_NAME"
    return (
        f"SELECT OBJECT_NAME AS name, {type_expr} AS type, OWNER AS object_schema, "
        f"OWNER AS owner, STATUS AS status, "
        f"TO_CHAR(CREATED, {_ORA_TS}) AS created, "
        f"TO_CHAR(LAST_DDL_TIME, {_ORA_TS}) AS last_ddl_time "
        f"FROM ALL_OBJECTS "
        f"WHERE OWNER = :owner{type_filter} "
        f"ORDER BY {order_by}"
    )


ORACLE_SQL: dict[ObjectKind, str] = {
    ObjectKind.ALL_OBJECTS: _oracle_all_objects_sql(None),
    ObjectKind.TABLE: _oracle_all_objects_sql("TABLE"),
    ObjectKind.VIEW: _oracle_all_objects_sql("VIEW"),
    ObjectKind.PROCEDURE: _oracle_all_objects_sql("PROCEDURE"),
    ObjectKind.FUNCTION: _oracle_all_objects_sql("FUNCTION"),
    ObjectKind.SEQUENCE: _oracle_all_objects_sql("SEQUENCE"),
    # ALL_INDEXES and ALL_CONSTRAINTS carry no created/last DDL timestamps
    ObjectKind.INDEX: (
        "SELECT INDEX_NAME AS name, 'INDEX' AS type, OWNER AS object_schema, "
        "OWNER AS owner, STATUS AS status, "
        "NULL AS created, NULL AS last_ddl_time "
        "FROM ALL_INDEXES "
        "WHERE OWNER = :owner "
        "ORDER BY INDEX_NAME"
    ),
    ObjectKind.CONSTRAINT: (
        "SELECT CONSTRAINT_NAME AS name, "
        "CASE CONSTRAINT_TYPE "
        "  WHEN 'P' THEN 'PRIMARY KEY' "
        "  WHEN 'U' THEN 'UNIQUE' "
        "  WHEN 'C' THEN 'CHECK' "
        "  WHEN 'R' THEN 'FOREIGN KEY' "
        "  ELSE 'CONSTRAINT' "
        "END AS type, "
        "OWNER AS object_schema, OWNER AS owner, STATUS AS status, "
        "NULL AS created, NULL AS last_ddl_time "
        "FROM ALL_CONSTRAINTS "
        "WHERE OWNER = :owner "
        "ORDER BY CONSTRAINT_NAME"
    ),
}

_PG_RELKIND_TYPE = (
    "CASE c.relkind "
    "  WHEN 'r' THEN 'TABLE' "
    "  WHEN 'v' THEN 'VIEW' "
    "  WHEN 'i' THEN 'INDEX' "
    "  WHEN 'S' THEN 'SEQUENCE' "
    "  WHEN 'f' THEN 'FOREIGN TABLE' "
    "  ELSE c.relkind::text "
    "END"
)

# pg_catalog has no creation time for relations; the fetch time stands in
_PG_STAMPS = (
    "to_char(CURRENT_TIMESTAMP, 'YYYY-MM-DD HH24:MI:SS') AS created_at, "
    "to_char(CURRENT_TIMESTAMP, 'YYYY-MM-DD HH24:MI:SS') AS updated_at "
)


def _pg_relation_sql(relkind: str, object_type: str) -> str:
    return (
        f"SELECT c.relname AS name, '{object_type}' AS type, n.nspname AS object_schema, "
        f"'{object_type}' AS object_type, {_PG_STAMPS}"
        f"FROM pg_class c "
        f"JOIN pg_namespace n ON n.oid = c.relnamespace "
        f"WHERE n.nspname = %(schema)s "
        f"AND c.relkind = '{relkind}' "
        f"ORDER BY c.relname"
    )


POSTGRES_SQL: dict[ObjectKind, str] = {
    ObjectKind.ALL_OBJECTS: (
        f"SELECT c.relname AS name, {_PG_RELKIND_TYPE} AS type, n.nspname AS object_schema, "
        f"{_PG_RELKIND_TYPE} AS object_type, {_PG_STAMPS}"
        f"FROM pg_class c "
        f"JOIN pg_namespace n ON n.oid = c.relnamespace "
        f"WHERE n.nspname = %(schema)s "
        f"AND c.relkind IN ('r', 'v', 'i', 'S', 'f') "
        f"ORDER BY c.relkind, c.relname"
    ),
    ObjectKind.TABLE: _pg_relation_sql("r", "TABLE"),
    ObjectKind.VIEW: _pg_relation_sql("v", "VIEW"),
    ObjectKind.SEQUENCE: _pg_relation_sql("S", "SEQUENCE"),
    ObjectKind.INDEX: _pg_relation_sql("i", "INDEX"),
    ObjectKind.FUNCTION: (
        f"SELECT p.proname AS name, 'FUNCTION' AS type, n.nspname AS object_schema, "
        f"'FUNCTION' AS object_type, {_PG_STAMPS}"
        f"FROM pg_proc p "
        f"JOIN pg_namespace n ON n.oid = p.pronamespace "
        f"WHERE n.nspname = %(schema)s "
        f"AND p.prokind = 'f' "
        f"ORDER BY p.proname"
    ),
    ObjectKind.PROCEDURE: (
        f"SELECT r.routine_name AS name, 'PROCEDURE' AS type, r.routine_schema AS object_schema, "
        f"'PROCEDURE' AS object_type, {_PG_STAMPS}"
        f"FROM information_schema.routines r "
        f"WHERE r.routine_schema = %(schema)s "
        f"AND r.routine_type = 'PROCEDURE' "
        f"ORDER BY r.routine_name"
    ),
    ObjectKind.CONSTRAINT: (
        f"SELECT tc.constraint_name AS name, tc.constraint_type AS type, "
        f"tc.constraint_schema AS object_schema, "
        f"tc.constraint_type AS object_type, {_PG_STAMPS}"
        f"FROM information_schema.table_constraints tc "
        f"WHERE tc.constraint_schema = %(schema)s "
        f"ORDER BY tc.constraint_name"
    ),
}


def _rows_to_objects(cols: list[str], rows: list[tuple]) -> list[DbObject]:
    out: list[DbObject] = []
    for r in rows:
        rec: dict[str, Any] = dict(zip(cols, r))
        rec["schema_name"] = rec.pop("object_schema")
        out.append(DbObject(**rec))
    return out


def fetch_oracle_objects(conn_info: dict[str, Any], owner: str, kind: ObjectKind) -> list[DbObject]:
    cols, rows, _ = run_query(ORACLE, conn_info, ORACLE_SQL[kind], {"owner": owner})
    return _rows_to_objects(cols, rows)


def fetch_postgres_objects(conn_info: dict[str, Any], schema: str, kind: ObjectKind) -> list[DbObject]:
    cols, rows, _ = run_query(POSTGRES, conn_info, POSTGRES_SQL[kind], {"schema": schema})
    return _rows_to_objects(cols, rows)


def oracle_fetcher(kind: ObjectKind) -> Fetcher:
    return partial(fetch_oracle_objects, kind=kind)


def postgres_fetcher(kind: ObjectKind) -> Fetcher:
    return partial(fetch_postgres_objects, kind=kind)
