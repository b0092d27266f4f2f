from __future__ import annotations

import os

from pydantic import BaseModel


def _env(name: str, default: str) -> str:
    value = os.getenv(name, "").strip()
    return value or default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


class OracleConn(BaseModel):
    user: str
    password: str
    dsn: str


class PostgresConn(BaseModel):
    host: str
    port: int = 5432
    user: str
    password: str
    dbname: str


def _postgres_from_env(prefix: str, fallback: PostgresConn | None = None) -> PostgresConn:
    # RESULTS_* falls back to the compared PostgreSQL database
    def pick(key: str, placeholder: str) -> str:
        default = str(getattr(fallback, key)) if fallback else placeholder
        return _env(f"{prefix}_{key.upper()}", default)

    return PostgresConn(
        host=pick("host", "POSTGRES_HOST"),
        port=int(pick("port", "5432")),
        user=pick("user", "POSTGRES_USER"),
        password=pick("password", "POSTGRES_PASSWORD"),
        dbname=_env(f"{prefix}_DB", fallback.dbname if fallback else "POSTGRES_DB"),
    )


class Settings(BaseModel):
    oracle: OracleConn = OracleConn(
        user=_env("ORACLE_USER", "ORACLE_USER"),
        password=_env("ORACLE_PASSWORD", "ORACLE_PASSWORD"),
        dsn=_env("ORACLE_DSN", "ORACLE_HOST:1521/ORACLE_SERVICE"),
    )
    postgres: PostgresConn = _postgres_from_env("POSTGRES")
    results: PostgresConn = _postgres_from_env("RESULTS", fallback=_postgres_from_env("POSTGRES"))
    results_table: str = _env("COMPARE_RESULTS_TABLE", "comparison_results")
    match_on_type: bool = _env_bool("COMPARE_MATCH_ON_TYPE", True)
    include_listings: bool = _env_bool("COMPARE_INCLUDE_LISTINGS", True)
    bootstrap_results_table: bool = _env_bool("COMPARE_BOOTSTRAP_RESULTS_TABLE", False)
    log_level: str = _env("COMPARE_LOG_LEVEL", "INFO").upper()
    log_json: bool = _env_bool("COMPARE_LOG_JSON", False)


settings = Settings()
