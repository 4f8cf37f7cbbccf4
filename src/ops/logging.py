"""
Logging setup.
"""

from __future__ import annotations

import logging
import os


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def setup_logging(log_path: str, log_level: str) -> None:
    """
    Configure root logging to a file and the console.

    Calling again replaces the handlers from a previous call.

    Args:
        log_path: Log file path; parent directories are created. Empty disables the file.
        log_level: One of VALID_LOG_LEVELS (case-insensitive).
    """
    level_name = str(log_level).upper()
    if level_name not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level: {log_level}")

    handlers = [logging.StreamHandler()]
    if log_path:
        log_dir = os.path.dirname(log_path)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=getattr(logging, level_name),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
