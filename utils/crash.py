"""Crash handling for the service process."""

import json
import os
import sys
import traceback

from utils.ids import generate_tracking_id
from utils.timestamp import format_timestamp

# Default crash log path, can be overridden by configure()
_crash_log = "logs/crash.log"


def configure(crash_file):
    """Set crash log file path from config."""
    global _crash_log
    _crash_log = crash_file


def _write_crash(record):
    """Append one crash record. Never raises."""
    try:
        log_dir = os.path.dirname(_crash_log)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        with open(_crash_log, "a") as f:
            f.write(json.dumps(record, default=str) + "\n")
    except Exception:
        pass


def _crash_record(exc_name, exc_msg, tb, context=None):
    # Falls back to a bare marker if the codec itself is what crashed.
    try:
        crash_id = generate_tracking_id()
    except Exception:
        crash_id = "untracked"
    record = {"id": crash_id, "timestamp": format_timestamp(), "type": exc_name, "msg": exc_msg, "traceback": tb}
    if context:
        record["context"] = context
    return record


def log_crash(exc_type, exc_value, exc_tb):
    """Log sync crash to stderr and file. Never raises."""
    exc_name = exc_type.__name__ if exc_type else "Unknown"
    exc_msg = str(exc_value) if exc_value else ""
    tb = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
    record = _crash_record(exc_name, exc_msg, tb)

    sys.stderr.write(f"\n{'=' * 60}\nCRASH [{record['id']}] {record['timestamp']}\n{'=' * 60}\n")
    sys.stderr.write(f"{exc_name}: {exc_msg}\n{'-' * 60}\n{tb}{'=' * 60}\n\n")
    _write_crash(record)
    return record


def log_async_crash(exc, context_dict, logger=None):
    """Log async task crash. Never raises."""
    exc_name = type(exc).__name__ if exc else "AsyncError"
    exc_msg = str(exc) if exc else context_dict.get("message", "Unknown")
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)) if exc else None
    record = _crash_record(exc_name, exc_msg, tb, str(context_dict))

    if logger:
        logger.error("Async exception", error=exc_msg, crash_id=record["id"],
                     task=str(context_dict.get("future", "unknown")))

    _write_crash(record)
    return record


def create_async_handler(logger=None):
    """Create async exception handler for event loop."""
    def handler(loop, context):
        log_async_crash(context.get("exception"), context, logger)
    return handler


def install_crash_handler():
    """Install global sync exception handler."""
    sys.excepthook = log_crash
