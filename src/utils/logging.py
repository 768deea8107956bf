"""Logging setup for doxcer.

``doxcer generate`` prints the finished document on stdout and nothing
else, so ``doxcer generate NB.py > NB.md`` yields a file that holds only
the model's Markdown. Every diagnostic, including the per-stage progress
shown with ``-v``, therefore goes to stderr or to the configured log file.
"""

import logging
import sys
from typing import Optional


def setup_logging(
    level: str = "WARNING",
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Route records from every ``src.*`` module to stderr and an optional file.

    The CLI group calls this once per invocation. Handlers from an earlier
    call are dropped first, so repeated invocations in one process (as under
    CliRunner) do not print each record twice.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Format string for log messages.
        log_file: Extra destination for the same records, opened as UTF-8.
            None keeps output on stderr only.

    Returns:
        The configured package logger instance.
    """
    package_logger = logging.getLogger("src")
    package_logger.handlers.clear()

    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    package_logger.setLevel(numeric_level)

    formatter = logging.Formatter(log_format)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(numeric_level)
    stderr_handler.setFormatter(formatter)
    package_logger.addHandler(stderr_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    package_logger.debug("Logging initialized at level %s", level)
    return package_logger
