"""
Shared fixtures: temp rclone.conf, settings and a fake drive probe.
"""

from typing import Set

import pytest

from rmount.config import Settings
from rmount.dependencies import reset_singletons
from rmount.services.config_store import ConfigStore
from rmount.services.mount_supervisor import DriveLetterProbe
from rmount.services.settings_store import SettingsStore


class FakeDriveProbe(DriveLetterProbe):
    """Drive probe with a settable set of used letters and no filesystem access."""

    def __init__(self, used: Set[str] | None = None):
        self.used: Set[str] = set(used or ())

    def used_letters(self) -> Set[str]:
        return set(self.used)

    def mount_target(self, drive_letter: str) -> str:
        return f"{drive_letter}:"

    def get_platform_name(self) -> str:
        return "Fake"


@pytest.fixture(autouse=True)
def clean_singletons():
    """Reset dependency singletons around every test."""
    reset_singletons()
    yield
    reset_singletons()


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "rclone" / "rclone.conf"


@pytest.fixture
def settings(tmp_path, config_path):
    return Settings(
        rclone_path=str(tmp_path / "bin" / "rclone"),
        rclone_config_path=str(config_path),
        mount_root=str(tmp_path / "mnt"),
        log_file_path=str(tmp_path / "logs" / "rmount.log"),
    )


@pytest.fixture
def config_store(config_path):
    return ConfigStore(config_path)


@pytest.fixture
def settings_store(config_store):
    return SettingsStore(config_store)


@pytest.fixture
def drive_probe():
    return FakeDriveProbe()
