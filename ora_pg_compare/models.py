from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Callable
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ObjectKind(str, Enum):
    ALL_OBJECTS = "ALL_OBJECTS"
    TABLE = "TABLE"
    VIEW = "VIEW"
    PROCEDURE = "PROCEDURE"
    FUNCTION = "FUNCTION"
    SEQUENCE = "SEQUENCE"
    CONSTRAINT = "CONSTRAINT"
    INDEX = "INDEX"


class RunState(str, Enum):
    CHECKING_CONNECTIONS = "CHECKING_CONNECTIONS"
    RUNNING_TASKS = "RUNNING_TASKS"
    BUILDING_REPORT = "BUILDING_REPORT"
    DONE = "DONE"
    FAILED = "FAILED"


class DbObject(BaseModel):
    # Shared projection for both dialects; dialect-only fields stay None on the other side.
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    schema_name: str

    # Oracle
    owner: str | None = None
    status: str | None = None
    created: str | None = None
    last_ddl_time: str | None = None

    # PostgreSQL
    object_type: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DbObject):
            return NotImplemented
        return (self.name.lower(), self.type.lower()) == (other.name.lower(), other.type.lower())

    def __hash__(self) -> int:
        return hash((self.name.lower(), self.type.lower()))


Fetcher = Callable[[dict, str], list[DbObject]]


class ComparisonTask(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: ObjectKind
    sheet_name: str
    fetch_a: Fetcher
    fetch_b: Fetcher


class ComparisonResult(BaseModel):
    kind: ObjectKind
    sheet_name: str
    only_in_a: list[DbObject] = []
    only_in_b: list[DbObject] = []
    objects_a: list[DbObject] = []
    objects_b: list[DbObject] = []


class DifferenceRow(BaseModel):
    run_id: UUID
    run_timestamp: datetime
    object_kind: str
    object_name: str
    schema_name: str
    status: str
    source_db: str

    def as_params(self) -> tuple:
        return (
            self.run_id,
            self.run_timestamp,
            self.object_kind,
            self.object_name,
            self.schema_name,
            self.status,
            self.source_db,
        )


class RunContext(BaseModel):
    oracle_schema: str
    postgres_schema: str
    # Assigned when the run starts its tasks
    run_id: UUID | None = None
    run_timestamp: datetime | None = None
    state: RunState = RunState.CHECKING_CONNECTIONS
