from __future__ import annotations

import io
import json
import logging

import pytest

from ora_pg_compare import log


@pytest.fixture()
def package_logger():
    logger = logging.getLogger(log.PACKAGE_LOGGER)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    logger.handlers.clear()
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def test_json_lines_carry_run_fields(package_logger):
    stream = io.StringIO()
    log.setup_logging(level="debug", json_lines=True, stream=stream)

    logging.getLogger("ora_pg_compare.compare_service").info("TABLE: 2 differences", extra={"run_id": "r-1", "kind": "TABLE"})

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert lines[-1]["message"] == "TABLE: 2 differences"
    assert lines[-1]["run_id"] == "r-1"
    assert lines[-1]["kind"] == "TABLE"
    assert lines[-1]["logger"] == "ora_pg_compare.compare_service"
    assert "run_id" not in lines[0]
    assert package_logger.level == logging.DEBUG


def test_setup_is_idempotent(package_logger):
    stream = io.StringIO()
    log.setup_logging(level="WARNING", json_lines=False, stream=stream)
    log.setup_logging(level="DEBUG", json_lines=True)

    assert len(package_logger.handlers) == 1
    assert package_logger.level == logging.WARNING

    logging.getLogger("ora_pg_compare.db").warning("ping slow")
    assert stream.getvalue().rstrip().endswith("WARNING ora_pg_compare.db ping slow")
