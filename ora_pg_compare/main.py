from __future__ import annotations

import io
import logging
from contextlib import asynccontextmanager
from urllib.parse import quote

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from ora_pg_compare.compare_service import compare_schemas, connection_status, generate_comparison_report
from ora_pg_compare.errors import CompareError, ConnectivityError
from ora_pg_compare.log import setup_logging
from ora_pg_compare.results_store import ensure_results_table
from ora_pg_compare.settings import settings

LOGGER = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging()
    if settings.bootstrap_results_table:
        ensure_results_table(settings.results.model_dump())
        LOGGER.info("Results table %s ready", settings.results_table)
    yield


def content_disposition(filename: str) -> str:
    # Plain filename= carries an ASCII fallback; filename* carries the exact UTF-8 name
    fallback = "".join(c if c.isascii() and c.isprintable() and c not in '"\\;' else "_" for c in filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


app = FastAPI(title="Oracle PostgreSQL Schema Compare", lifespan=lifespan)


@app.exception_handler(CompareError)
async def compare_error_handler(request: Request, exc: CompareError):
    LOGGER.error("Request %s failed: %s", request.url.path, exc)
    status_code = 503 if isinstance(exc, ConnectivityError) else 500
    return PlainTextResponse(f"Error: {exc}", status_code=status_code)


@app.get("/api/compare/report")
def compare_report(
    oracle_schema: str = Query(..., alias="oracleSchema", min_length=1),
    postgres_schema: str = Query(..., alias="postgresSchema", min_length=1),
):
    LOGGER.info("Report requested for %s vs %s", oracle_schema, postgres_schema)
    data = generate_comparison_report(oracle_schema, postgres_schema)
    filename = f"database_comparison_{oracle_schema}_{postgres_schema}.xlsx"
    return StreamingResponse(
        io.BytesIO(data),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": content_disposition(filename)},
    )


@app.get("/api/compare/schemas")
def compare_schemas_json(
    oracle_schema: str = Query(..., alias="oracleSchema", min_length=1),
    postgres_schema: str = Query(..., alias="postgresSchema", min_length=1),
):
    result = compare_schemas(oracle_schema, postgres_schema)
    return JSONResponse(
        {name: [o.model_dump() for o in objects] for name, objects in result.items()}
    )


@app.get("/api/compare/connections")
def connections():
    status = connection_status()
    ok = all(v == "ok" for v in status.values())
    return JSONResponse(status, status_code=200 if ok else 503)
