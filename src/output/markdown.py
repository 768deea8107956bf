"""Markdown output for generated notebook documentation.

The document is written verbatim to a text stream (stdout by default).
A conformance check compares it against the documentation template and
reports deviations as warnings without touching the output.
"""

import logging
import re
import sys
from dataclasses import dataclass, field
from typing import Optional, TextIO

import yaml

logger = logging.getLogger(__name__)

FRONT_MATTER_KEYS = ("author", "notebook", "created")
REQUIRED_SECTIONS = ("Functioneel ontwerp", "Technisch ontwerp")

_FRONT_MATTER_RE = re.compile(r"\A\s*---\s*\n(.*?)\n---\s*(?:\n|\Z)", re.DOTALL)
_TABLE_SEPARATOR_RE = re.compile(r"^\|(\s*:?-{3,}:?\s*\|)+\s*$")


@dataclass
class ConformanceReport:
    """Deviations of a document from the documentation template.

    Attributes:
        missing_keys: Front-matter keys that are absent.
        missing_sections: Section headings that are absent.
        sections_without_table: Sections present but lacking a pipe table.
    """

    missing_keys: list[str] = field(default_factory=list)
    missing_sections: list[str] = field(default_factory=list)
    sections_without_table: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (
            self.missing_keys or self.missing_sections or self.sections_without_table
        )


def _front_matter(text: str) -> Optional[dict]:
    match = _FRONT_MATTER_RE.match(text)
    if not match:
        return None
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError:
        return None
    return data if isinstance(data, dict) else None


def _section_body(text: str, heading: str) -> Optional[str]:
    pattern = re.compile(
        rf"^#+\s*{re.escape(heading)}\s*$(.*?)(?=^#+\s|\Z)",
        re.MULTILINE | re.DOTALL | re.IGNORECASE,
    )
    match = pattern.search(text)
    return match.group(1) if match else None


def check_document(text: str) -> ConformanceReport:
    """Compare a generated document against the documentation template.

    Args:
        text: The generated Markdown.

    Returns:
        A ConformanceReport listing every deviation found.
    """
    report = ConformanceReport()

    front_matter = _front_matter(text) or {}
    report.missing_keys = [k for k in FRONT_MATTER_KEYS if k not in front_matter]

    for heading in REQUIRED_SECTIONS:
        body = _section_body(text, heading)
        if body is None:
            report.missing_sections.append(heading)
        elif not any(
            _TABLE_SEPARATOR_RE.match(line.strip()) for line in body.splitlines()
        ):
            report.sections_without_table.append(heading)

    return report


class MarkdownWriter:
    """Writes generated documentation to a text stream.

    Nothing is written until a complete document is available, so a
    failed run leaves the stream untouched.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        """Initialize the Markdown writer.

        Args:
            stream: Destination stream. Defaults to ``sys.stdout`` at
                write time, so redirection set up later is honored.
        """
        self._stream = stream

    def write(self, document: str, check: bool = True) -> ConformanceReport:
        """Write a document verbatim, adding a final newline if missing.

        Args:
            document: The generated Markdown.
            check: Whether to log template deviations as warnings.

        Returns:
            The conformance report of the document.
        """
        report = check_document(document) if check else ConformanceReport()
        if check and not report.ok:
            self._warn(report)

        stream = self._stream or sys.stdout
        stream.write(document)
        if not document.endswith("\n"):
            stream.write("\n")
        stream.flush()
        return report

    @staticmethod
    def _warn(report: ConformanceReport) -> None:
        if report.missing_keys:
            logger.warning(
                "Document front matter is missing: %s", ", ".join(report.missing_keys)
            )
        if report.missing_sections:
            logger.warning(
                "Document is missing sections: %s", ", ".join(report.missing_sections)
            )
        if report.sections_without_table:
            logger.warning(
                "Sections without a table: %s",
                ", ".join(report.sections_without_table),
            )
