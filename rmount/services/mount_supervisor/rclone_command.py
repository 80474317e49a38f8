"""rclone executable lookup and command lines."""

import logging
import shlex
import shutil
import sys
from pathlib import Path
from typing import List, Sequence

VERSION_ARGS = ("version",)
BASE_MOUNT_OPTIONS = ("--vfs-cache-mode", "full")


def resolve_rclone_executable(configured: str) -> str:
    """
    Find rclone: the configured path if it is a file, then PATH, then next to
    the Python interpreter. Falls back to the configured value unchanged.
    """
    configured_path = Path(configured).expanduser()
    if configured_path.is_file():
        return str(configured_path)

    found = shutil.which(configured)
    if found:
        return found

    exe_name = "rclone.exe" if sys.platform == "win32" else "rclone"
    local = Path(sys.executable).parent / exe_name
    if local.is_file():
        return str(local)

    logging.debug(f"rclone executable not found, using {configured!r} as-is")
    return configured


def split_mount_options(options: str) -> List[str]:
    """
    Tokenize user-supplied mount options shell-style.

    Raises ValueError on unbalanced quotes.
    """
    options = options.strip()
    if not options:
        return []
    return shlex.split(options, posix=sys.platform != "win32")


def build_mount_command(
    executable: str, remote_name: str, target: str, extra_args: Sequence[str] = ()
) -> List[str]:
    return [executable, "mount", f"{remote_name}:", target, *BASE_MOUNT_OPTIONS, *extra_args]


def build_version_command(executable: str) -> List[str]:
    return [executable, *VERSION_ARGS]
