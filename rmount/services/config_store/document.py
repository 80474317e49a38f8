"""In-memory model of an rclone-style INI document."""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional


@dataclass
class Section:
    """
    One `[name]` block.

    `properties` keeps first-insertion order; assigning an existing key
    replaces its value in place. `comments` collects blank/comment lines seen
    while this section was open. They are kept for inspection only and are
    never written back.
    """

    name: str
    properties: Dict[str, str] = field(default_factory=dict)
    comments: List[str] = field(default_factory=list)


@dataclass
class ConfigDocument:
    """
    Sections in file order.

    Duplicate section names are kept as separate entries; lookups by name
    only ever see the first one.
    """

    sections: List[Section] = field(default_factory=list)

    def __iter__(self) -> Iterator[Section]:
        return iter(self.sections)

    def __len__(self) -> int:
        return len(self.sections)

    def find_section(self, name: str) -> Optional[Section]:
        """First section called `name`, or None."""
        for section in self.sections:
            if section.name == name:
                return section
        return None

    def sections_named(self, name: str) -> List[Section]:
        return [section for section in self.sections if section.name == name]

    def ensure_section(self, name: str) -> Section:
        """First section called `name`, appending a new one at the end if missing."""
        section = self.find_section(name)
        if section is None:
            section = Section(name=name)
            self.sections.append(section)
        return section

    def section_names(self) -> List[str]:
        return [section.name for section in self.sections]
