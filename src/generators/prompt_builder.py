"""Prompt composition for notebook documentation requests."""

import logging
from pathlib import Path
from typing import Union

from src.utils.errors import IoError

logger = logging.getLogger(__name__)

SOURCE_HEADING = "Hier is de Notebook.py:"


def build_prompt(instructions: str, source_text: str) -> str:
    """Append the notebook source to the instruction block.

    Pure and total: the source text is embedded verbatim, without
    escaping or validation, and may be empty.

    Args:
        instructions: Rendered instruction template.
        source_text: Raw contents of the notebook.

    Returns:
        The complete prompt.
    """
    return f"{instructions}\n\n{SOURCE_HEADING}\n\n{source_text}"


def read_source(path: Union[str, Path]) -> str:
    """Read a notebook file as UTF-8 text.

    Args:
        path: Path to the notebook script.

    Returns:
        The file contents.

    Raises:
        IoError: If the file is missing, unreadable or not UTF-8.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise IoError(f"Failed to read file {path}: {e}") from e
    logger.debug("Read %d characters from %s", len(text), path)
    return text


def count_tokens(text: str) -> int:
    """Estimate the token count of a text string.

    Uses a simple heuristic (4 characters per token) for fast
    estimation without API calls.
    """
    # Rough approximation: ~4 chars per token for English text
    return max(1, len(text) // 4)
