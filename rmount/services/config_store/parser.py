"""
Line-oriented parser and serializer for the rclone config format.

Reading is tolerant: anything that is neither a header, a `key = value`
property, a comment nor blank is dropped. Writing is canonical: one
`[name]` header, `key = value` lines, one blank line per section, and no
comments.
"""

import logging
import re
from typing import Iterable, List

from .document import ConfigDocument, Section

SECTION_HEADER = re.compile(r"^\[(.+)\]$")
PROPERTY_LINE = re.compile(r"^([^=]+)\s*=\s*(.*)$")
COMMENT_PREFIXES = ("#", ";")

LINE_BREAK = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> List[str]:
    """
    Split on CR, LF and CRLF only. str.splitlines() would also break on
    form feeds and Unicode separators, which may appear inside values.
    """
    lines = LINE_BREAK.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _is_blank_or_comment(trimmed: str) -> bool:
    return not trimmed or trimmed.startswith(COMMENT_PREFIXES)


def parse_lines(lines: Iterable[str]) -> ConfigDocument:
    """Build a ConfigDocument from raw config lines."""
    document = ConfigDocument()
    current: Section | None = None

    for line_number, line in enumerate(lines, start=1):
        trimmed = line.strip()

        if _is_blank_or_comment(trimmed):
            if current is not None:
                current.comments.append(line.rstrip("\r\n"))
            continue

        header = SECTION_HEADER.match(trimmed)
        if header:
            current = Section(name=header.group(1))
            document.sections.append(current)
            continue

        if current is None:
            logging.debug(f"Ignoring line {line_number} outside any section: {trimmed!r}")
            continue

        prop = PROPERTY_LINE.match(trimmed)
        if prop:
            current.properties[prop.group(1).strip()] = prop.group(2).strip()
        else:
            logging.debug(f"Ignoring malformed line {line_number} in [{current.name}]: {trimmed!r}")

    return document


def parse_text(text: str) -> ConfigDocument:
    return parse_lines(split_lines(text))


def serialize(document: ConfigDocument) -> str:
    """Render a document in canonical form."""
    parts: List[str] = []
    for section in document:
        parts.append(f"[{section.name}]\n")
        for key, value in section.properties.items():
            parts.append(f"{key} = {value}\n")
        parts.append("\n")
    return "".join(parts)


def scan_section_names(lines: Iterable[str]) -> List[str]:
    """Header names in file order, duplicates included. Ignores everything else."""
    names = []
    for line in lines:
        header = SECTION_HEADER.match(line.strip())
        if header:
            names.append(header.group(1))
    return names
