from __future__ import annotations

import io

import pytest
from openpyxl import load_workbook

from conftest import ORACLE_SCHEMA, POSTGRES_SCHEMA, ora, pg
from ora_pg_compare import compare_service
from ora_pg_compare.errors import ConnectivityError, PersistenceError, QueryError
from ora_pg_compare.models import ComparisonTask, ObjectKind, RunContext
from ora_pg_compare.tasks import TASKS


def _fixed(objects):
    return lambda conn_info, schema: list(objects)


@pytest.fixture()
def pings(monkeypatch):
    calls: list[str] = []
    monkeypatch.setattr(compare_service, "ping", lambda dialect, conn_info: calls.append(dialect))
    return calls


@pytest.fixture()
def persisted(monkeypatch):
    calls: list[dict] = []

    def fake_persist(conn_info, run, kind, objects, status, source_db):
        calls.append({"run": run, "kind": kind, "names": [o.name for o in objects], "status": status, "source_db": source_db})
        return len(objects)

    monkeypatch.setattr(compare_service, "persist_differences", fake_persist)
    return calls


def _generate(tasks, **kw):
    return compare_service.generate_comparison_report(
        ORACLE_SCHEMA,
        POSTGRES_SCHEMA,
        oracle_conn={"dsn": "ora"},
        postgres_conn={"dbname": "pg"},
        results_conn={"dbname": "audit"},
        tasks=tasks,
        **kw,
    )


def test_catalog_order_and_kinds():
    assert [t.kind for t in TASKS] == [
        ObjectKind.ALL_OBJECTS,
        ObjectKind.TABLE,
        ObjectKind.VIEW,
        ObjectKind.PROCEDURE,
        ObjectKind.FUNCTION,
        ObjectKind.SEQUENCE,
        ObjectKind.CONSTRAINT,
        ObjectKind.INDEX,
    ]
    assert len({t.sheet_name for t in TASKS}) == len(TASKS)


def test_end_to_end_table_differences(pings, persisted):
    tasks = [
        ComparisonTask(
            kind=ObjectKind.TABLE,
            sheet_name="Tables Diff",
            fetch_a=_fixed([ora("A"), ora("ORA_ONLY")]),
            fetch_b=_fixed([pg("A"), pg("PG_ONLY")]),
        ),
        ComparisonTask(kind=ObjectKind.VIEW, sheet_name="Views Diff", fetch_a=_fixed([ora("V", "VIEW")]), fetch_b=_fixed([pg("v", "VIEW")])),
    ]

    data = _generate(tasks)

    ws = load_workbook(io.BytesIO(data))["Tables Diff"]
    assert list(ws.iter_rows(min_row=2, values_only=True)) == [
        ("ORA_ONLY", "TABLE", ORACLE_SCHEMA, "Only in Oracle"),
        ("PG_ONLY", "TABLE", POSTGRES_SCHEMA, "Only in PostgreSQL"),
    ]

    assert pings == ["Oracle", "PostgreSQL"]
    table_rows = [c for c in persisted if c["kind"] == ObjectKind.TABLE]
    assert sum(len(c["names"]) for c in table_rows) == 2
    assert [(c["status"], c["source_db"], c["names"]) for c in table_rows] == [
        ("Only in Oracle", "Oracle", ["ORA_ONLY"]),
        ("Only in PostgreSQL", "PostgreSQL", ["PG_ONLY"]),
    ]
    # matching kinds persist nothing
    assert [c for c in persisted if c["kind"] == ObjectKind.VIEW] == []
    # one run id for the whole run
    assert len({c["run"].run_id for c in persisted}) == 1


def test_schemas_are_passed_to_each_side(pings, persisted):
    seen: list[tuple[str, str]] = []

    def fetch(side):
        def _fetch(conn_info, schema):
            seen.append((side, schema))
            return []
        return _fetch

    _generate([ComparisonTask(kind=ObjectKind.INDEX, sheet_name="Indexes Diff", fetch_a=fetch("a"), fetch_b=fetch("b"))])

    assert seen == [("a", ORACLE_SCHEMA), ("b", POSTGRES_SCHEMA)]
    assert persisted == []


def test_oracle_connectivity_failure_stops_everything(monkeypatch, persisted):
    pinged: list[str] = []

    def fake_ping(dialect, conn_info):
        pinged.append(dialect)
        raise ConnectivityError(dialect, "ORA-12541: TNS:no listener")

    def never(conn_info, schema):
        raise AssertionError("no task may run")

    monkeypatch.setattr(compare_service, "ping", fake_ping)

    with pytest.raises(ConnectivityError, match="Failed to connect to Oracle database"):
        _generate([ComparisonTask(kind=ObjectKind.TABLE, sheet_name="Tables Diff", fetch_a=never, fetch_b=never)])

    assert pinged == ["Oracle"]
    assert persisted == []


def test_postgres_connectivity_failure_after_oracle_ok(monkeypatch):
    pinged: list[str] = []

    def fake_ping(dialect, conn_info):
        pinged.append(dialect)
        if dialect == "PostgreSQL":
            raise ConnectivityError(dialect, "connection refused")

    monkeypatch.setattr(compare_service, "ping", fake_ping)

    with pytest.raises(ConnectivityError, match="Failed to connect to PostgreSQL database"):
        _generate([])

    assert pinged == ["Oracle", "PostgreSQL"]


def test_fetch_failure_aborts_the_run(pings, persisted):
    def broken(conn_info, schema):
        raise QueryError("PostgreSQL", "permission denied for schema")

    tasks = [
        ComparisonTask(kind=ObjectKind.TABLE, sheet_name="Tables Diff", fetch_a=_fixed([ora("T")]), fetch_b=_fixed([])),
        ComparisonTask(kind=ObjectKind.VIEW, sheet_name="Views Diff", fetch_a=_fixed([]), fetch_b=broken),
    ]

    with pytest.raises(QueryError):
        _generate(tasks)


def test_persistence_failure_is_logged_and_run_continues(monkeypatch, pings, caplog):
    attempts: list[ObjectKind] = []

    def failing_persist(conn_info, run, kind, objects, status, source_db):
        attempts.append(kind)
        raise PersistenceError("PostgreSQL", "relation comparison_results does not exist")

    monkeypatch.setattr(compare_service, "persist_differences", failing_persist)
    tasks = [
        ComparisonTask(kind=ObjectKind.TABLE, sheet_name="Tables Diff", fetch_a=_fixed([ora("T")]), fetch_b=_fixed([])),
        ComparisonTask(kind=ObjectKind.VIEW, sheet_name="Views Diff", fetch_a=_fixed([]), fetch_b=_fixed([pg("v", "VIEW")])),
    ]

    with caplog.at_level("ERROR", logger="ora_pg_compare.compare_service"):
        data = _generate(tasks)

    assert attempts == [ObjectKind.TABLE, ObjectKind.VIEW]
    assert load_workbook(io.BytesIO(data)).sheetnames == ["Tables Diff", "Views Diff"]
    assert "kind=TABLE" in caplog.text


def test_match_on_name_only(pings, persisted):
    tasks = [
        ComparisonTask(
            kind=ObjectKind.ALL_OBJECTS,
            sheet_name="All Objects Diff",
            fetch_a=_fixed([ora("EMP", "TABLE")]),
            fetch_b=_fixed([pg("emp", "VIEW")]),
        )
    ]

    _generate(tasks, key=compare_service.name_key)

    assert persisted == []


def test_compare_schemas_does_not_persist(monkeypatch, persisted):
    monkeypatch.setattr(
        compare_service,
        "task_for",
        lambda kind: ComparisonTask(
            kind=kind,
            sheet_name="All Objects Diff",
            fetch_a=_fixed([ora("T1"), ora("ORA_ONLY")]),
            fetch_b=_fixed([pg("t1"), pg("pg_only", "VIEW")]),
        ),
    )

    result = compare_service.compare_schemas(ORACLE_SCHEMA, POSTGRES_SCHEMA, oracle_conn={"dsn": "ora"}, postgres_conn={"dbname": "pg"})

    assert [o.name for o in result["missing_in_postgres"]] == ["ORA_ONLY"]
    assert [o.name for o in result["missing_in_oracle"]] == ["pg_only"]
    assert len(result["oracle_objects"]) == 2
    assert persisted == []


def test_connection_status_checks_both_sides(monkeypatch):
    def fake_ping(dialect, conn_info):
        if dialect == "Oracle":
            raise ConnectivityError(dialect, "ORA-01017: invalid username/password")

    monkeypatch.setattr(compare_service, "ping", fake_ping)

    status = compare_service.connection_status()

    assert status["Oracle"].startswith("Failed to connect to Oracle database")
    assert status["PostgreSQL"] == "ok"


def test_fully_matching_kinds_never_reach_the_persister(pings, persisted):
    tasks = [
        ComparisonTask(kind=ObjectKind.TABLE, sheet_name="Tables Diff", fetch_a=_fixed([ora("T1"), ora("T2")]), fetch_b=_fixed([pg("t2"), pg("t1")])),
        ComparisonTask(kind=ObjectKind.SEQUENCE, sheet_name="Sequences Diff", fetch_a=_fixed([]), fetch_b=_fixed([])),
        ComparisonTask(kind=ObjectKind.INDEX, sheet_name="Indexes Diff", fetch_a=_fixed([ora("IX_ONLY", "INDEX")]), fetch_b=_fixed([])),
    ]

    _generate(tasks)

    # only the one non-empty (kind, side) batch is written
    assert [(c["kind"], c["source_db"], c["names"]) for c in persisted] == [(ObjectKind.INDEX, "Oracle", ["IX_ONLY"])]


def test_run_id_is_assigned_when_tasks_start(pings, persisted):
    assert RunContext(oracle_schema=ORACLE_SCHEMA, postgres_schema=POSTGRES_SCHEMA).run_id is None

    _generate([ComparisonTask(kind=ObjectKind.TABLE, sheet_name="Tables Diff", fetch_a=_fixed([ora("T")]), fetch_b=_fixed([]))])

    run = persisted[0]["run"]
    assert run.run_id is not None
    assert run.run_timestamp is not None


def test_connectivity_failure_has_no_run_id(monkeypatch, caplog):
    def fake_ping(dialect, conn_info):
        raise ConnectivityError(dialect, "ORA-12541: TNS:no listener")

    monkeypatch.setattr(compare_service, "ping", fake_ping)

    with caplog.at_level("ERROR", logger="ora_pg_compare.compare_service"):
        with pytest.raises(ConnectivityError):
            _generate([])

    assert "Comparison run None failed during CHECKING_CONNECTIONS" in caplog.text


def test_unexpected_error_marks_run_failed_and_propagates(pings, persisted, caplog):
    def buggy(conn_info, schema):
        raise TypeError("'NoneType' object is not iterable")

    tasks = [ComparisonTask(kind=ObjectKind.VIEW, sheet_name="Views Diff", fetch_a=_fixed([]), fetch_b=buggy)]

    with caplog.at_level("ERROR", logger="ora_pg_compare.compare_service"):
        with pytest.raises(TypeError, match="not iterable"):
            _generate(tasks)

    assert "failed during RUNNING_TASKS" in caplog.text
    assert persisted == []
