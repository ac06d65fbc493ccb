"""
Centralized error handling and logging system.

This module provides:
- The shared "arena_tactics" logger (console warnings, optional log file)
- Custom exception types for configuration and replay input problems
- Error logging helpers used wherever a failure must not cost us a tick
"""
import logging
import traceback
from pathlib import Path
from typing import Optional, Callable
from datetime import datetime

# Configure logger
logger = logging.getLogger("arena_tactics")
logger.setLevel(logging.DEBUG)

# Prevent duplicate handlers
if not logger.handlers:
    # Console handler for warnings/errors
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter('%(levelname)s: %(message)s')
    )
    logger.addHandler(console_handler)


def configure_file_logging(log_dir: Path) -> Path:
    """
    Attach a dated file handler that records everything down to DEBUG.

    Safe to call more than once; a second call for the same file is a no-op.

    Returns:
        Path of the log file
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"tactics_{datetime.now().strftime('%Y%m%d')}.log"

    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_file.resolve():
            return log_file

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )
    logger.addHandler(file_handler)
    return log_file


class TacticsError(Exception):
    """Base exception for tactics-engine errors."""
    def __init__(self, message: str, context: Optional[str] = None):
        super().__init__(message)
        self.context = context


class ConfigError(TacticsError):
    """Invalid or unreadable tactics configuration."""
    pass


class SnapshotError(TacticsError):
    """Malformed world snapshot in replay input."""
    pass


def log_error(error: Exception, context: str = "") -> None:
    """
    Log an error with context information.

    Args:
        error: The exception that occurred
        context: Where the error occurred (e.g., "load_config", "debug_sink")
    """
    error_type = type(error).__name__
    error_msg = str(error)
    trace = traceback.format_exc()

    logger.error(
        f"Error in {context}: {error_type}: {error_msg}\n{trace}",
        exc_info=error,
    )


def handle_noncritical_error(
    error: Exception,
    context: str,
    recovery_action: Optional[Callable[[], None]] = None,
) -> bool:
    """
    Log an error that must not abort the current tick.

    Args:
        error: The exception that occurred
        context: Where the error occurred
        recovery_action: Optional function to run so the next tick starts clean

    Returns:
        True if the recovery action ran (or none was needed), False if it failed too
    """
    log_error(error, context)

    if recovery_action is None:
        return True

    try:
        recovery_action()
        logger.info(f"Recovery action executed for {context}")
        return True
    except Exception as recovery_error:
        log_error(recovery_error, f"{context}_recovery")
        return False
