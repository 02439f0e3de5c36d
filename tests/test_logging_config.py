from __future__ import annotations

import json
import logging

import pytest

from src.workday_tracker.workday_tracker import logging_config
from src.workday_tracker.workday_tracker.logging_config import WorkdayJsonFormatter, configure_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger(logging_config.__package__)
    saved = (logger.handlers[:], logger.level, logger.propagate)
    yield logger
    logger.handlers[:], logger.level, logger.propagate = saved


def test_json_formatter_emits_level_and_logger_fields():
    record = logging.LogRecord("workday_tracker.attendance", logging.INFO, __file__, 1, "clocked in %s", ("u1",), None)

    payload = json.loads(WorkdayJsonFormatter("%(message)s").format(record))

    assert payload["message"] == "clocked in u1"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "workday_tracker.attendance"
    assert "timestamp" in payload


def test_configure_logging_installs_one_handler(package_logger):
    configure_logging("debug", json_output=True)
    configure_logging("warning", json_output=True)

    assert len(package_logger.handlers) == 1
    assert isinstance(package_logger.handlers[0].formatter, WorkdayJsonFormatter)
    assert package_logger.level == logging.WARNING
