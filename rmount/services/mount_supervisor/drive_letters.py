"""Drive letter probes - which letters are taken, and where a letter mounts."""

import os
import platform
import string
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Set

from ...config import Settings

# A, B and C are never handed out.
RESERVED_DRIVE_LETTERS = tuple(string.ascii_uppercase[:3])
DRIVE_LETTERS = tuple(string.ascii_uppercase[3:])


def available_letters(used: Iterable[str]) -> List[str]:
    """D..Z minus `used`, ascending."""
    taken = {letter.upper() for letter in used}
    return [letter for letter in DRIVE_LETTERS if letter not in taken]


class UnsupportedPlatformError(Exception):
    """Raised when no drive probe exists for the current platform."""
    pass


class DriveLetterProbe(ABC):
    """Abstract base class for platform-specific drive letter handling."""

    @abstractmethod
    def used_letters(self) -> Set[str]:
        """Letters currently in use according to the OS."""
        pass

    @abstractmethod
    def mount_target(self, drive_letter: str) -> str:
        """Target argument passed to `rclone mount` for this letter."""
        pass

    @abstractmethod
    def get_platform_name(self) -> str:
        pass

    def prepare_target(self, drive_letter: str) -> str:
        """Make the target usable by rclone and return it."""
        return self.mount_target(drive_letter)


class WindowsDriveProbe(DriveLetterProbe):
    """Real drive letters; WinFsp creates the drive itself."""

    def used_letters(self) -> Set[str]:
        listdrives = getattr(os, "listdrives", None)  # Python 3.12+ on Windows
        if listdrives is not None:
            return {drive[0].upper() for drive in listdrives() if drive}
        return {
            letter for letter in string.ascii_uppercase if os.path.exists(f"{letter}:\\")
        }

    def mount_target(self, drive_letter: str) -> str:
        return f"{drive_letter}:"

    def get_platform_name(self) -> str:
        return "Windows"


class PosixDriveProbe(DriveLetterProbe):
    """
    Letters map to directories under a mount root, e.g. ~/rmount/E.

    A letter counts as used while its directory is a mount point.
    """

    def __init__(self, mount_root: str | os.PathLike):
        self._mount_root = Path(mount_root).expanduser()

    @property
    def mount_root(self) -> Path:
        return self._mount_root

    def used_letters(self) -> Set[str]:
        return {
            letter for letter in DRIVE_LETTERS if os.path.ismount(self._mount_root / letter)
        }

    def mount_target(self, drive_letter: str) -> str:
        return str(self._mount_root / drive_letter)

    def prepare_target(self, drive_letter: str) -> str:
        target = self._mount_root / drive_letter
        target.mkdir(parents=True, exist_ok=True)
        return str(target)

    def get_platform_name(self) -> str:
        return platform.system() or "POSIX"


class PlatformFactory:
    """Picks the drive probe for the running platform."""

    def detect_platform(self) -> str:
        """windows, macos, linux, or the lowercased system name for other POSIX systems."""
        system = platform.system().lower()

        if not system:
            raise UnsupportedPlatformError("Could not determine the platform for rclone mounts")
        if system == "darwin":
            return "macos"
        return system

    def create_drive_probe(self, settings: Settings) -> DriveLetterProbe:
        if self.detect_platform() == "windows":
            return WindowsDriveProbe()
        return PosixDriveProbe(settings.mount_root)
