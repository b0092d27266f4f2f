from __future__ import annotations

import pytest

from ora_pg_compare.models import DbObject

ORACLE_SCHEMA = "TEST_ORA"
POSTGRES_SCHEMA = "test_pg"


def ora(name: str, type_: str = "TABLE") -> DbObject:
    return DbObject(name=name, type=type_, schema_name=ORACLE_SCHEMA, owner=ORACLE_SCHEMA, status="VALID")


def pg(name: str, type_: str = "TABLE") -> DbObject:
    return DbObject(name=name, type=type_, schema_name=POSTGRES_SCHEMA, object_type=type_)


@pytest.fixture()
def oracle_conn() -> dict:
    return {"user": "scott", "password": "tiger", "dsn": "localhost:1521/XEPDB1"}


@pytest.fixture()
def postgres_conn() -> dict:
    return {"host": "localhost", "port": 5432, "user": "pg", "password": "pg", "dbname": "app"}
