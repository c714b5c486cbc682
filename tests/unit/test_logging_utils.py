"""Unit tests for logging configuration."""

import io
import logging

import pytest

from getmd.logging_utils import configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    noisy_levels = {name: logging.getLogger(name).level for name in ("httpx", "httpcore")}
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, noisy_level in noisy_levels.items():
        logging.getLogger(name).setLevel(noisy_level)


@pytest.mark.unit
def test_console_handler(restore_root_logger):
    stream = io.StringIO()
    root = configure_logging("info", stream=stream)
    logging.getLogger("getmd.test").info("converted")
    assert root.level == logging.INFO
    assert stream.getvalue() == "INFO: converted\n"


@pytest.mark.unit
def test_http_client_loggers_quieted(restore_root_logger):
    configure_logging(logging.DEBUG, stream=io.StringIO())
    assert logging.getLogger("httpx").level == logging.WARNING
    configure_logging(logging.DEBUG, stream=io.StringIO(), trace_mode=True)
    assert logging.getLogger("httpx").level == logging.DEBUG


@pytest.mark.unit
def test_trace_format_and_log_file(restore_root_logger, tmp_path):
    log_file = tmp_path / "getmd.log"
    stream = io.StringIO()
    configure_logging(logging.DEBUG, log_file=str(log_file), trace_mode=True, stream=stream)
    logging.getLogger("getmd.fetch").warning("retrying")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "[WARNING] [getmd.fetch]" in stream.getvalue()
    assert "retrying" in log_file.read_text(encoding="utf-8")


@pytest.mark.unit
def test_unwritable_log_file(restore_root_logger, tmp_path):
    stream = io.StringIO()
    configure_logging(logging.INFO, log_file=str(tmp_path / "missing" / "x.log"), stream=stream)
    assert "Could not open log file" in stream.getvalue()
    assert len(logging.getLogger().handlers) == 1
