"""
SettingsStore - rmount's own per-remote preferences inside rclone.conf.

Preferences live in the remote's section under `_rmount_`-prefixed keys so
rclone's keys (type, token, ...) are never touched.
"""

import logging
from typing import List, Optional

from ..core.exceptions import ConfigConflictError, ConfigFileError
from ..models import ErrorKind, OperationResult, SavedMount
from .config_store import ConfigStore

DRIVE_LETTER_KEY = "_rmount_drive_letter"
AUTO_MOUNT_KEY = "_rmount_auto_mount"
MOUNT_OPTIONS_KEY = "_rmount_mount_options"

MANAGED_KEYS = (DRIVE_LETTER_KEY, AUTO_MOUNT_KEY, MOUNT_OPTIONS_KEY)


def parse_bool(value: Optional[str]) -> bool:
    """'true' in any case is True, everything else (including garbage) is False."""
    return value is not None and value.strip().lower() == "true"


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def _failure_from(error: ConfigFileError) -> OperationResult:
    kind = ErrorKind.CONFIG_CONFLICT if isinstance(error, ConfigConflictError) else ErrorKind.CONFIG_IO
    return OperationResult.fail(kind, str(error))


class SettingsStore:
    """Saved mount preferences, written through to the config file on every change."""

    def __init__(self, config_store: ConfigStore):
        self._config_store = config_store

    def load(self) -> List[SavedMount]:
        """All remotes that have a saved drive letter, in file order."""
        try:
            names = self._config_store.list_section_names()
            document = self._config_store.parse_document()
        except ConfigFileError as e:
            logging.error(f"Could not load saved mounts: {e}")
            return []

        saved_mounts = []
        seen = set()
        for name in names:
            if name in seen:
                continue
            seen.add(name)

            drive_letter = ConfigStore.get_property(document, name, DRIVE_LETTER_KEY)
            if not drive_letter:
                continue

            saved_mounts.append(
                SavedMount(
                    remote_name=name,
                    drive_letter=drive_letter,
                    auto_mount=parse_bool(ConfigStore.get_property(document, name, AUTO_MOUNT_KEY)),
                    mount_options=ConfigStore.get_property(document, name, MOUNT_OPTIONS_KEY) or "",
                )
            )

        logging.debug(f"Loaded {len(saved_mounts)} saved mounts from {self._config_store.path}")
        return saved_mounts

    def get(self, remote_name: str) -> Optional[SavedMount]:
        for saved in self.load():
            if saved.remote_name == remote_name:
                return saved
        return None

    def add_or_update(
        self,
        remote_name: str,
        drive_letter: str,
        auto_mount: bool,
        mount_options: str = "",
    ) -> OperationResult:
        """Save preferences for a remote. Empty options remove the options key."""
        mount_options = mount_options.strip()
        set_values = {
            DRIVE_LETTER_KEY: drive_letter,
            AUTO_MOUNT_KEY: format_bool(auto_mount),
        }
        remove_keys = []
        if mount_options:
            set_values[MOUNT_OPTIONS_KEY] = mount_options
        else:
            remove_keys.append(MOUNT_OPTIONS_KEY)

        try:
            self._config_store.update_properties(remote_name, set_values, remove_keys)
        except ConfigFileError as e:
            logging.error(f"Could not save mount settings for {remote_name}: {e}")
            return _failure_from(e)

        logging.info(
            f"Saved mount settings for {remote_name}: drive={drive_letter}, "
            f"auto_mount={auto_mount}, options={mount_options or 'none'}"
        )
        return OperationResult.ok()

    def remove(self, remote_name: str) -> OperationResult:
        """Drop rmount's keys for a remote; the section and rclone's keys stay."""
        try:
            changed = self._config_store.update_properties(remote_name, remove_keys=MANAGED_KEYS)
        except ConfigFileError as e:
            logging.error(f"Could not remove mount settings for {remote_name}: {e}")
            return _failure_from(e)

        if changed:
            logging.info(f"Removed mount settings for {remote_name}")
        return OperationResult.ok()
