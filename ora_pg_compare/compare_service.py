from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Hashable
from uuid import uuid4

from ora_pg_compare.db import ORACLE, POSTGRES, ping
from ora_pg_compare.errors import CompareError, PersistenceError
from ora_pg_compare.models import ComparisonResult, ComparisonTask, DbObject, ObjectKind, RunContext, RunState
from ora_pg_compare.report import build_report, only_in
from ora_pg_compare.results_store import persist_differences
from ora_pg_compare.settings import settings
from ora_pg_compare.tasks import TASKS, task_for

LOGGER = logging.getLogger(__name__)

KeyFn = Callable[[DbObject], Hashable]


def name_type_key(obj: DbObject) -> tuple[str, str]:
    return obj.name.lower(), obj.type.lower()


def name_key(obj: DbObject) -> tuple[str]:
    return (obj.name.lower(),)


def default_key() -> KeyFn:
    return name_type_key if settings.match_on_type else name_key


def compare_objects(
    list_a: list[DbObject],
    list_b: list[DbObject],
    key: KeyFn = name_type_key,
) -> tuple[list[DbObject], list[DbObject]]:
    """Return (only in A, only in B), keeping each side's order.

    Duplicates on one side are not collapsed; each is kept or dropped on its own key.
    """
    keys_a = {key(o) for o in list_a}
    keys_b = {key(o) for o in list_b}
    only_a = [o for o in list_a if key(o) not in keys_b]
    only_b = [o for o in list_b if key(o) not in keys_a]
    return only_a, only_b


def _conn_oracle() -> dict:
    return settings.oracle.model_dump()


def _conn_postgres() -> dict:
    return settings.postgres.model_dump()


def _conn_results() -> dict:
    return settings.results.model_dump()


def check_connections(oracle_conn: dict[str, Any], postgres_conn: dict[str, Any]) -> None:
    # Stops at the first failure; PostgreSQL is not tried when Oracle is down
    ping(ORACLE, oracle_conn)
    LOGGER.info("%s connection ok", ORACLE)
    ping(POSTGRES, postgres_conn)
    LOGGER.info("%s connection ok", POSTGRES)


def _persist_batch(results_conn: dict[str, Any], run: RunContext, kind: ObjectKind, objects: list[DbObject], source_db: str) -> None:
    if not objects:
        return
    status = only_in(source_db)
    try:
        persist_differences(results_conn, run, kind, objects, status, source_db)
    except PersistenceError as exc:
        LOGGER.error(
            "Could not persist differences kind=%s status=%r count=%d run=%s: %s",
            kind.value,
            status,
            len(objects),
            run.run_id,
            exc,
            extra={"run_id": run.run_id, "kind": kind.value},
        )


def run_task(
    run: RunContext,
    task: ComparisonTask,
    oracle_conn: dict[str, Any],
    postgres_conn: dict[str, Any],
    results_conn: dict[str, Any] | None = None,
    key: KeyFn = name_type_key,
) -> ComparisonResult:
    objects_a = task.fetch_a(oracle_conn, run.oracle_schema)
    objects_b = task.fetch_b(postgres_conn, run.postgres_schema)
    only_a, only_b = compare_objects(objects_a, objects_b, key)

    LOGGER.info(
        "%s: %s=%d %s=%d only_in_%s=%d only_in_%s=%d",
        task.kind.value,
        ORACLE,
        len(objects_a),
        POSTGRES,
        len(objects_b),
        ORACLE,
        len(only_a),
        POSTGRES,
        len(only_b),
        extra={"run_id": run.run_id, "kind": task.kind.value},
    )

    if results_conn is not None:
        _persist_batch(results_conn, run, task.kind, only_a, ORACLE)
        _persist_batch(results_conn, run, task.kind, only_b, POSTGRES)

    return ComparisonResult(
        kind=task.kind,
        sheet_name=task.sheet_name,
        only_in_a=only_a,
        only_in_b=only_b,
        objects_a=objects_a,
        objects_b=objects_b,
    )


def generate_comparison_report(
    oracle_schema: str,
    postgres_schema: str,
    oracle_conn: dict[str, Any] | None = None,
    postgres_conn: dict[str, Any] | None = None,
    results_conn: dict[str, Any] | None = None,
    tasks: list[ComparisonTask] | None = None,
    key: KeyFn | None = None,
    include_listings: bool | None = None,
) -> bytes:
    """Check both databases, compare every catalog task, persist the deltas and return xlsx bytes.

    Any fetch failure aborts the run; persistence failures are logged per batch
    and the run continues.
    """
    oracle_conn = oracle_conn or _conn_oracle()
    postgres_conn = postgres_conn or _conn_postgres()
    results_conn = results_conn or _conn_results()
    tasks = TASKS if tasks is None else tasks
    key = key or default_key()
    include_listings = settings.include_listings if include_listings is None else include_listings

    run = RunContext(oracle_schema=oracle_schema, postgres_schema=postgres_schema)
    LOGGER.info("Starting comparison %s schema %r vs %s schema %r", ORACLE, oracle_schema, POSTGRES, postgres_schema)

    try:
        run.state = RunState.CHECKING_CONNECTIONS
        check_connections(oracle_conn, postgres_conn)

        run.state = RunState.RUNNING_TASKS
        run.run_id = uuid4()
        run.run_timestamp = datetime.now()
        results = [run_task(run, t, oracle_conn, postgres_conn, results_conn, key) for t in tasks]

        run.state = RunState.BUILDING_REPORT
        data = build_report(results, ORACLE, POSTGRES, include_listings=include_listings)
    except Exception as exc:
        LOGGER.error("Comparison run %s failed during %s: %s", run.run_id, run.state.value, exc, extra={"run_id": run.run_id})
        run.state = RunState.FAILED
        raise

    run.state = RunState.DONE
    LOGGER.info("Comparison run %s done", run.run_id, extra={"run_id": run.run_id})
    return data


def compare_schemas(
    oracle_schema: str,
    postgres_schema: str,
    oracle_conn: dict[str, Any] | None = None,
    postgres_conn: dict[str, Any] | None = None,
    key: KeyFn | None = None,
) -> dict[str, list[DbObject]]:
    """Compare the full object listings without persisting anything."""
    run = RunContext(oracle_schema=oracle_schema, postgres_schema=postgres_schema)
    result = run_task(
        run,
        task_for(ObjectKind.ALL_OBJECTS),
        oracle_conn or _conn_oracle(),
        postgres_conn or _conn_postgres(),
        results_conn=None,
        key=key or default_key(),
    )
    return {
        "oracle_objects": result.objects_a,
        "postgres_objects": result.objects_b,
        "missing_in_postgres": result.only_in_a,
        "missing_in_oracle": result.only_in_b,
    }


def connection_status() -> dict[str, str]:
    """Check both databases independently, for diagnostics."""
    out: dict[str, str] = {}
    for label, conn in ((ORACLE, _conn_oracle()), (POSTGRES, _conn_postgres())):
        try:
            ping(label, conn)
            out[label] = "ok"
        except CompareError as exc:
            out[label] = str(exc)
    return out
