from __future__ import annotations


class CompareError(RuntimeError):
    """Base class for failures surfaced by a comparison run."""


class DataAccessError(CompareError):
    """A database call failed. Carries the database label and the driver message."""

    def __init__(self, dialect: str, message: str):
        self.dialect = dialect
        self.message = message
        super().__init__(self._describe())

    def _describe(self) -> str:
        return f"{self.dialect}: {self.message}"


class ConnectivityError(DataAccessError):
    def _describe(self) -> str:
        return f"Failed to connect to {self.dialect} database: {self.message}"


class QueryError(DataAccessError):
    pass


class PersistenceError(DataAccessError):
    pass


class ReportGenerationError(CompareError):
    pass
