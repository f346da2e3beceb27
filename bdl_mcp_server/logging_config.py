"""Logging configuration for BDL MCP Server."""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Dict, Any


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
SERVER_LOGGERS = ("mcp_server", "dispatcher", "protocol", "session_manager")


def _rotating_handler(log_file: str, level: int, max_file_size: int, backup_count: int,
                      log_format: str) -> logging.Handler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=max_file_size,
        backupCount=backup_count
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(log_format))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    enable_console: bool = True
) -> None:
    """Setup logging configuration for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        log_format: Custom log format (optional)
        max_file_size: Maximum log file size in bytes before rotation
        backup_count: Number of backup log files to keep
        enable_console: Whether to enable console logging
    """
    if log_format is None:
        log_format = LOG_FORMAT
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(console_handler)

    if log_file:
        root_logger.addHandler(_rotating_handler(log_file, level, max_file_size, backup_count, log_format))


def setup_bdl_logging(config: Dict[str, Any]) -> None:
    """Setup server logging plus a dedicated BDL API log file.

    Args:
        config: Configuration dictionary containing logging settings
    """
    log_level = config.get("log_level", "INFO")
    level = getattr(logging, log_level.upper())

    setup_logging(
        log_level=log_level,
        log_file=config.get("log_file"),
        enable_console=True
    )

    api_logger = logging.getLogger("bdl_client")
    api_logger.setLevel(level)
    for handler in api_logger.handlers[:]:
        api_logger.removeHandler(handler)
        handler.close()

    api_log_file = config.get("api_log_file")
    if api_log_file:
        api_logger.addHandler(_rotating_handler(api_log_file, level, 10 * 1024 * 1024, 5, LOG_FORMAT))

    for name in SERVER_LOGGERS:
        logging.getLogger(name).setLevel(level)
