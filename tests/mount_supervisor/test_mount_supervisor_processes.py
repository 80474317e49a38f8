"""
MountSupervisor against real child processes.

A small shell script stands in for rclone: `version` exits 0, `mount`
sleeps until killed, and mounting the remote `broken` fails right away
the way rclone does for an unknown remote.
"""

import asyncio
import shutil
import sys

import pytest

from rmount.config import Settings
from rmount.models import ErrorKind
from rmount.services.mount_supervisor import MountSupervisor, PosixDriveProbe
from rmount.services.mount_supervisor import mount_supervisor as supervisor_module

pytestmark = [
    pytest.mark.asyncio,
    pytest.mark.skipif(
        sys.platform == "win32" or shutil.which("sh") is None,
        reason="needs a POSIX shell",
    ),
]

FAKE_RCLONE = """#!/bin/sh
case "$1" in
  version)
    echo "rclone v1.66.0"
    exit 0
    ;;
  mount)
    if [ "$2" = "broken:" ]; then
      echo "CRITICAL: Failed to create file system for \\"broken:\\": didn't find section in config file" >&2
      exit 1
    fi
    exec sleep 30
    ;;
esac
exit 2
"""


@pytest.fixture
def fake_rclone(tmp_path):
    script = tmp_path / "bin" / "rclone"
    script.parent.mkdir(parents=True)
    script.write_text(FAKE_RCLONE)
    script.chmod(0o755)
    return script


@pytest.fixture
def supervisor(tmp_path, fake_rclone, monkeypatch):
    monkeypatch.setattr(supervisor_module, "MOUNT_SETTLE_DELAY_SECONDS", 0.3)
    settings = Settings(
        rclone_path=str(fake_rclone),
        rclone_config_path=str(tmp_path / "rclone.conf"),
        mount_root=str(tmp_path / "mnt"),
    )
    return MountSupervisor(settings, drive_probe=PosixDriveProbe(tmp_path / "mnt"))


async def test_probe_finds_fake_rclone(supervisor, fake_rclone):
    assert supervisor.rclone_path == str(fake_rclone)
    assert await supervisor.is_available() is True


async def test_missing_executable_is_unavailable(tmp_path):
    settings = Settings(rclone_path=str(tmp_path / "nowhere" / "rclone"), mount_root=str(tmp_path / "mnt"))
    supervisor = MountSupervisor(settings, drive_probe=PosixDriveProbe(tmp_path / "mnt"))

    assert await supervisor.is_available() is False

    result = await supervisor.mount("gdrive", "E")
    assert result.error == ErrorKind.PROCESS_LAUNCH_FAILURE
    assert supervisor.is_mounted("gdrive") is False
    assert supervisor.tracked_remotes() == []


async def test_mount_and_unmount_real_process(supervisor, tmp_path):
    result = await supervisor.mount("gdrive", "E")

    assert result
    assert supervisor.is_mounted("gdrive")
    assert (tmp_path / "mnt" / "E").is_dir()
    process = supervisor.get_handle("gdrive").process

    assert await supervisor.unmount("gdrive")

    assert process.returncode is not None
    assert supervisor.is_mounted("gdrive") is False


async def test_immediate_exit_reports_stderr(supervisor):
    result = await supervisor.mount("broken", "F")

    assert result.error == ErrorKind.PROCESS_EXITED
    assert "didn't find section" in result.message
    assert supervisor.tracked_remotes() == []


async def test_close_kills_all_processes(supervisor):
    await supervisor.mount("a", "E")
    await supervisor.mount("b", "F")
    processes = [supervisor.get_handle(name).process for name in ("a", "b")]

    await supervisor.aclose()

    await asyncio.sleep(0)
    assert all(process.returncode is not None for process in processes)
    assert supervisor.tracked_remotes() == []
