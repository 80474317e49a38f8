"""
Config Store - tolerant reader / canonical writer for rclone.conf.

Components:
- ConfigDocument / Section: ordered in-memory model
- parser: line grammar, canonical serializer, header-only name scan
- ConfigStore: file-level get/set/remove with atomic replace
"""

from .config_store import ConfigStore
from .document import ConfigDocument, Section
from .parser import parse_lines, parse_text, scan_section_names, serialize, split_lines

__all__ = [
    "ConfigStore",
    "ConfigDocument",
    "Section",
    "parse_lines",
    "parse_text",
    "scan_section_names",
    "serialize",
    "split_lines",
]
