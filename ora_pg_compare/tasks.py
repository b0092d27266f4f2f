from __future__ import annotations

from ora_pg_compare.metadata import oracle_fetcher, postgres_fetcher
from ora_pg_compare.models import ComparisonTask, ObjectKind


def _task(kind: ObjectKind, sheet_name: str) -> ComparisonTask:
    return ComparisonTask(
        kind=kind,
        sheet_name=sheet_name,
        fetch_a=oracle_fetcher(kind),
        fetch_b=postgres_fetcher(kind),
    )


# Order drives sheet order in the report
TASKS: list[ComparisonTask] = [
    _task(ObjectKind.ALL_OBJECTS, "All Objects Diff"),
    _task(ObjectKind.TABLE, "Tables Diff"),
    _task(ObjectKind.VIEW, "Views Diff"),
    _task(ObjectKind.PROCEDURE, "Procedures Diff"),
    _task(ObjectKind.FUNCTION, "Functions Diff"),
    _task(ObjectKind.SEQUENCE, "Sequences Diff"),
    _task(ObjectKind.CONSTRAINT, "Constraints Diff"),
    _task(ObjectKind.INDEX, "Indexes Diff"),
]


def task_for(kind: ObjectKind) -> ComparisonTask:
    return next(t for t in TASKS if t.kind == kind)
