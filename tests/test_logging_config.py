"""Tests for logging setup."""

import logging
import logging.handlers

import pytest
from bdl_mcp_server.logging_config import SERVER_LOGGERS, setup_bdl_logging, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    """Put back the root and bdl_client handlers after each test."""
    root = logging.getLogger()
    api = logging.getLogger("bdl_client")
    saved = (root.level, root.handlers[:], api.level, api.handlers[:])
    yield
    for logger in (root, api):
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if handler not in saved[1] and handler not in saved[3]:
                handler.close()
    root.setLevel(saved[0])
    api.setLevel(saved[2])
    for handler in saved[1]:
        root.addHandler(handler)
    for handler in saved[3]:
        api.addHandler(handler)


def _file_handlers(logger):
    return [h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]


def test_console_only():
    setup_logging(log_level="WARNING")
    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert not _file_handlers(root)


def test_rotating_file_is_created(tmp_path):
    log_file = tmp_path / "logs" / "server.log"
    setup_logging(log_level="DEBUG", log_file=str(log_file), enable_console=False)

    logging.getLogger("tests.tools").debug("Calling tool: get_year")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_file.exists()
    assert "tests.tools - DEBUG - Calling tool: get_year" in log_file.read_text()


def test_bdl_logging_writes_api_log(tmp_path):
    api_log = tmp_path / "api.log"
    setup_bdl_logging({
        "log_level": "INFO",
        "log_file": None,
        "api_log_file": str(api_log),
    })

    api_logger = logging.getLogger("bdl_client")
    api_logger.info("API Request: GET /years")
    for handler in api_logger.handlers:
        handler.flush()

    assert len(_file_handlers(api_logger)) == 1
    assert "API Request: GET /years" in api_log.read_text()
    for name in SERVER_LOGGERS:
        assert logging.getLogger(name).level == logging.INFO


def test_bdl_logging_is_repeatable(tmp_path):
    config = {"log_level": "DEBUG", "log_file": None, "api_log_file": str(tmp_path / "api.log")}
    setup_bdl_logging(config)
    setup_bdl_logging(config)
    assert len(_file_handlers(logging.getLogger("bdl_client"))) == 1


def test_invalid_level():
    with pytest.raises(AttributeError):
        setup_logging(log_level="LOUD")
