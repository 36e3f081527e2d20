"""
Chapter Quest - Logging System
Provides structured logging with file rotation and multiple log levels.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

from app.core.config import settings

# Create logs directory
LOGS_DIR = Path(settings.LOG_DIR).resolve()
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# Log format
DETAILED_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s'
SIMPLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# =========================
# MAIN APPLICATION LOGGER
# =========================

def setup_logger():
    """Setup the main application logger with console and file handlers."""

    logger = logging.getLogger("chapter_quest")
    logger.setLevel(logging.DEBUG)  # Capture all levels

    # Prevent duplicate handlers
    if logger.hasHandlers():
        logger.handlers.clear()

    # --- Console Handler (INFO and above) ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT, datefmt='%H:%M:%S'))
    logger.addHandler(console_handler)

    # --- Main App Log File (rotating, max 5MB, keep 5 backups) ---
    app_handler = RotatingFileHandler(
        LOGS_DIR / "app.log",
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=5,
        encoding='utf-8'
    )
    app_handler.setLevel(logging.DEBUG)
    app_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(app_handler)

    # --- Error Log File (errors only) ---
    error_handler = RotatingFileHandler(
        LOGS_DIR / "error.log",
        maxBytes=5 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(error_handler)

    return logger


# Initialize main logger
logger = setup_logger()


def get_logger(name: str) -> logging.Logger:
    """
    Returns a child logger (e.g. chapter_quest.engine).
    Inherits handlers from parent logger.
    """
    return logging.getLogger(f"chapter_quest.{name}")


# =========================
# CONVENIENCE FUNCTIONS
# =========================

def log_chapter_event(child_id: int, chapter_number: int, event: str, details: str = ""):
    """Log chapter lifecycle events."""
    chapter_logger = get_logger("chapter")
    chapter_logger.info(f"[Child:{child_id}] [Chapter:{chapter_number}] {event} | {details}")


def log_backend_attempt(backend_name: str, action: str, details: str = "", success: bool = True):
    """Log generative backend attempts (per tier and per model)."""
    backend_logger = get_logger(f"backend.{backend_name}")
    status = "✓" if success else "✗"
    if success:
        backend_logger.info(f"[{status}] {action} | {details}")
    else:
        backend_logger.warning(f"[{status}] {action} | {details}")


def log_error(message: str, error: Exception = None, context: dict = None):
    """Log error with optional exception and context."""
    error_logger = get_logger("error")
    context_str = ""
    if context:
        context_str = " | " + " | ".join(f"{k}={v}" for k, v in context.items())
    if error:
        error_logger.error(f"{message}: {str(error)}{context_str}", exc_info=True)
    else:
        error_logger.error(f"{message}{context_str}")
