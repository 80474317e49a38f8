import asyncio
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Deque, Dict, List, Optional

from pydantic import BaseModel, Field


DRIVE_LETTER_PATTERN = r"^[D-Z]$"


class MountState(str, Enum):
    """
    Supervisor-known state for a remote.

    Workflow: Unmounted -> Mounting -> Mounted -> Unmounting -> Unmounted

    This is bookkeeping only, it is never read back from the OS mount table.
    """

    UNMOUNTED = "Unmounted"
    MOUNTING = "Mounting"  # Process spawned, waiting for the settle delay
    MOUNTED = "Mounted"  # Process survived the settle delay
    UNMOUNTING = "Unmounting"  # Kill sent, waiting for exit


class ErrorKind(str, Enum):
    """Failure kinds reported in OperationResult."""

    CONFIG_IO = "ConfigIO"  # Config file unreadable or unwritable
    CONFIG_CONFLICT = "ConfigConflict"  # Config file kept changing during update
    PROCESS_LAUNCH_FAILURE = "ProcessLaunchFailure"  # rclone missing or unspawnable
    PROCESS_EXITED = "ProcessExited"  # rclone died during the settle delay
    PROCESS_TIMEOUT = "ProcessTimeout"  # Probe or unmount exceeded its bound
    ALREADY_TRACKED = "AlreadyTracked"  # Remote already has a mount process
    INVALID_OPTIONS = "InvalidOptions"  # Mount options could not be tokenized


@dataclass
class OperationResult:
    """
    Outcome of a store or supervisor operation.

    Truthy iff the operation succeeded, so callers that only care about
    success can treat it as a bool. `error` and `message` are diagnostics.
    """

    success: bool
    error: Optional[ErrorKind] = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, message: str = "") -> "OperationResult":
        return cls(success=True, message=message)

    @classmethod
    def fail(cls, error: ErrorKind, message: str = "") -> "OperationResult":
        return cls(success=False, error=error, message=message)


class SavedMount(BaseModel):
    """Per-remote mount preferences stored inside the rclone config file."""

    remote_name: str = Field(..., description="Name of the rclone remote section")
    drive_letter: str = Field(..., description="Preferred drive letter, e.g. 'E'")
    auto_mount: bool = Field(default=False, description="Mount on startup")
    mount_options: str = Field(
        default="", description="Extra arguments passed verbatim to rclone mount"
    )


@dataclass
class MountHandle:
    """
    A running rclone mount process owned by MountSupervisor.

    Nothing outside the supervisor may kill or wait on `process`.
    """

    remote_name: str
    drive_letter: str
    process: asyncio.subprocess.Process
    started_at: datetime = field(default_factory=datetime.now)
    state: MountState = MountState.MOUNTING
    stderr_task: Optional[asyncio.Task] = None
    stderr_tail: Deque[str] = field(default_factory=lambda: deque(maxlen=20))

    @property
    def is_alive(self) -> bool:
        return self.process.returncode is None

    @property
    def pid(self) -> Optional[int]:
        return getattr(self.process, "pid", None)


class ReconcileReport(BaseModel):
    """Result of mounting all auto-mount remotes at startup."""

    mounted: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(
        default_factory=list, description="Saved drive letter was not available"
    )
    failed: List[str] = Field(default_factory=list)


# API models


class MountRequest(BaseModel):
    """Body for POST /api/remotes/{name}/mount. Missing fields fall back to saved settings."""

    drive_letter: Optional[str] = Field(default=None, pattern=DRIVE_LETTER_PATTERN)
    options: Optional[str] = None


class MountSettingsUpdate(BaseModel):
    """Body for PUT /api/remotes/{name}/settings."""

    drive_letter: str = Field(..., pattern=DRIVE_LETTER_PATTERN)
    auto_mount: bool = False
    mount_options: str = ""


class RemoteStatus(BaseModel):
    name: str
    state: MountState
    mounted: bool
    drive_letter: Optional[str] = Field(
        default=None, description="Live drive letter if mounted, else the saved one"
    )
    saved: Optional[SavedMount] = None


class ToolStatus(BaseModel):
    rclone_available: bool
    rclone_executable: str
    rclone_config_path: str
    config_file_exists: bool
    config_file_info: Dict[str, object] = Field(default_factory=dict)
