"""
Mount Supervisor Module

Components:
- MountSupervisor: spawns, tracks and kills rclone mount processes
- DriveLetterProbe: abstract base for platform drive letter handling
- WindowsDriveProbe / PosixDriveProbe: platform implementations
- PlatformFactory: platform detection and probe creation
- rclone_command: executable lookup and command line building
"""

from .drive_letters import (
    DRIVE_LETTERS,
    DriveLetterProbe,
    PlatformFactory,
    PosixDriveProbe,
    UnsupportedPlatformError,
    WindowsDriveProbe,
    available_letters,
)
from .mount_supervisor import MountSupervisor

__all__ = [
    "MountSupervisor",
    "DriveLetterProbe",
    "WindowsDriveProbe",
    "PosixDriveProbe",
    "PlatformFactory",
    "UnsupportedPlatformError",
    "DRIVE_LETTERS",
    "available_letters",
]
