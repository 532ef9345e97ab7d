"""
Tests for webaccept logging utilities.
"""

import json
import logging
import sys

import pytest
from rich.logging import RichHandler

from webaccept.monitoring.logger import JSONFormatter, SuiteLogAdapter, get_logger, setup_logging


@pytest.fixture()
def restore_root_logger():
    """Keep the root logger configuration of the test session intact."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="webaccept.case.LoginCase",
        level=logging.WARNING,
        pathname=__file__,
        lineno=12,
        msg="Client deactivated ...",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_suite_context():
    output = json.loads(JSONFormatter().format(make_record(suite="Smoke Suite", case="LoginCase")))

    assert output["level"] == "WARNING"
    assert output["logger"] == "webaccept.case.LoginCase"
    assert output["message"] == "Client deactivated ..."
    assert output["suite"] == "Smoke Suite"
    assert output["case"] == "LoginCase"
    assert "branch" not in output


def test_json_formatter_exception():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = make_record()
        record.exc_info = sys.exc_info()

    output = json.loads(JSONFormatter().format(record))
    assert "RuntimeError: boom" in output["exception"]


def test_get_logger_with_context():
    plain = get_logger("webaccept.test")
    adapted = get_logger("webaccept.test", suite="Smoke Suite", build_number="42")

    assert isinstance(plain, logging.Logger)
    assert isinstance(adapted, SuiteLogAdapter)

    msg, kwargs = adapted.process("hello", {"extra": {"case": "LoginCase"}})
    assert kwargs["extra"] == {"case": "LoginCase", "suite": "Smoke Suite", "build_number": "42"}


def test_setup_logging_text(restore_root_logger):
    root = setup_logging(log_level="DEBUG", log_format="text")

    assert root.level == logging.DEBUG
    assert any(isinstance(handler, RichHandler) for handler in root.handlers)


def test_setup_logging_json_with_file(restore_root_logger, tmp_path):
    log_file = tmp_path / "run.log"
    root = setup_logging(log_level="INFO", log_format="json", log_file=str(log_file))

    logging.getLogger("webaccept.test").info("suite started")
    for handler in root.handlers:
        handler.flush()

    lines = [json.loads(line) for line in log_file.read_text().splitlines()]
    assert any(line["message"] == "suite started" for line in lines)
    assert all(isinstance(handler.formatter, JSONFormatter) for handler in root.handlers)
