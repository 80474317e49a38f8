"""
ConfigStore - read/modify/write access to the shared rclone config file.

The file is owned by rclone; this store only ever changes the properties it
is asked to change. Every call re-reads the file, no document is cached
between calls.
"""

import contextlib
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ...core.exceptions import ConfigConflictError, ConfigFileError
from .document import ConfigDocument
from .parser import parse_text, scan_section_names, serialize, split_lines

Fingerprint = Tuple[int, int]


class ConfigStore:
    """
    Parser and mutator for one INI-style config file.

    Writes are canonical (comments and original layout are dropped) and go
    through a temp file + os.replace. Before replacing, the file's
    (mtime_ns, size) is compared with what was read; if another process
    changed it meanwhile, the mutation is re-applied to a fresh read.
    """

    MAX_WRITE_ATTEMPTS = 3

    def __init__(self, config_path: str | os.PathLike):
        self._path = Path(config_path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    # Reading

    def _read_text(self) -> Optional[str]:
        """File contents, or None if the file does not exist."""
        try:
            return self._path.read_text(encoding="utf-8-sig")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigFileError(str(self._path), "read", str(e)) from e

    def _fingerprint(self) -> Optional[Fingerprint]:
        try:
            stat = self._path.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ConfigFileError(str(self._path), "stat", str(e)) from e
        return stat.st_mtime_ns, stat.st_size

    def parse_document(self) -> ConfigDocument:
        """Parse the whole file. A missing file is an empty document."""
        text = self._read_text()
        if text is None:
            return ConfigDocument()
        return parse_text(text)

    @staticmethod
    def get_property(document: ConfigDocument, section_name: str, key: str) -> Optional[str]:
        """Value of `key` in the first section called `section_name` that has it."""
        for section in document.sections_named(section_name):
            if key in section.properties:
                return section.properties[key]
        return None

    def read_property(self, section_name: str, key: str) -> Optional[str]:
        return self.get_property(self.parse_document(), section_name, key)

    def list_section_names(self) -> List[str]:
        """All `[name]` headers in file order, duplicates included."""
        text = self._read_text()
        if text is None:
            return []
        return scan_section_names(split_lines(text))

    # Writing

    def set_property(self, section_name: str, key: str, value: str) -> None:
        """Set one property, creating the file and/or section if needed."""
        self.update_properties(section_name, set_values={key: value})

    def remove_property(self, section_name: str, key: str) -> bool:
        """Remove one property. Returns False (and writes nothing) if it was absent."""
        return self.update_properties(section_name, remove_keys=[key])

    def update_properties(
        self,
        section_name: str,
        set_values: Optional[Dict[str, str]] = None,
        remove_keys: Iterable[str] = (),
    ) -> bool:
        """
        Apply several sets and removes to the first section called
        `section_name` in a single rewrite.

        The section is appended if missing and there is something to set.
        Returns True if the file was written.
        """
        set_values = dict(set_values or {})
        remove_keys = list(remove_keys)

        def apply(document: ConfigDocument) -> bool:
            if set_values:
                section = document.ensure_section(section_name)
            else:
                section = document.find_section(section_name)
                if section is None:
                    return False

            changed = bool(set_values)
            section.properties.update(set_values)
            for key in remove_keys:
                if key in section.properties:
                    del section.properties[key]
                    changed = True
            return changed

        return self._mutate(apply, create_file=bool(set_values))

    def _mutate(self, mutation: Callable[[ConfigDocument], bool], create_file: bool) -> bool:
        for attempt in range(1, self.MAX_WRITE_ATTEMPTS + 1):
            before = self._fingerprint()
            if before is None and not create_file:
                return False

            document = self.parse_document()
            if not mutation(document):
                return False

            if self._fingerprint() != before:
                logging.warning(
                    f"Config file {self._path} changed while updating "
                    f"(attempt {attempt}/{self.MAX_WRITE_ATTEMPTS}), retrying"
                )
                continue

            self._write_atomic(serialize(document))
            return True

        raise ConfigConflictError(str(self._path), self.MAX_WRITE_ATTEMPTS)

    def _write_atomic(self, text: str) -> None:
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=directory
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                    handle.write(text)
                    handle.flush()
                    os.fsync(handle.fileno())
                if self._path.exists():
                    shutil.copymode(self._path, tmp_name)
                os.replace(tmp_name, self._path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise ConfigFileError(str(self._path), "write", str(e)) from e

        logging.debug(f"Wrote config file {self._path} ({len(text)} chars)")
