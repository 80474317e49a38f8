"""
MountSupervisor - owns every `rclone mount` process started by rmount.

State is bookkeeping only (remote name -> MountHandle). Nothing here reads
the OS mount table, so "mounted" means "our process for it is alive".
"""

import asyncio
import contextlib
import logging
import shlex
import subprocess
import sys
from typing import Dict, List, Optional

from ...config import Settings
from ...models import ErrorKind, MountHandle, MountState, OperationResult
from .drive_letters import DriveLetterProbe, PlatformFactory, available_letters
from .rclone_command import (
    build_mount_command,
    build_version_command,
    resolve_rclone_executable,
    split_mount_options,
)

PROBE_TIMEOUT_SECONDS = 5.0
MOUNT_SETTLE_DELAY_SECONDS = 1.0
UNMOUNT_TIMEOUT_SECONDS = 5.0
STDERR_DRAIN_TIMEOUT_SECONDS = 1.0


class MountSupervisor:
    """
    Spawns, tracks and kills one rclone mount process per remote.

    Use as `async with MountSupervisor(...)` or call `aclose()`; either way
    every tracked process is killed on teardown.

    Mount success is a heuristic: the process is still alive after
    MOUNT_SETTLE_DELAY_SECONDS. That does not prove the drive is usable.
    """

    def __init__(self, settings: Settings, drive_probe: Optional[DriveLetterProbe] = None):
        self._settings = settings
        self._rclone_path = resolve_rclone_executable(settings.rclone_path)
        self._drive_probe = drive_probe or PlatformFactory().create_drive_probe(settings)
        self._handles: Dict[str, MountHandle] = {}
        self._lock = asyncio.Lock()
        self._closed = False
        logging.info(
            f"MountSupervisor initialized - rclone: {self._rclone_path}, "
            f"platform: {self._drive_probe.get_platform_name()}"
        )

    @property
    def rclone_path(self) -> str:
        return self._rclone_path

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "MountSupervisor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @staticmethod
    def _spawn_kwargs() -> dict:
        # Detach from our console / process group so Ctrl+C hits us, not rclone.
        if sys.platform == "win32":
            return {"creationflags": subprocess.CREATE_NO_WINDOW}
        return {"start_new_session": True}

    async def is_available(self) -> bool:
        """True if `rclone version` exits 0 within PROBE_TIMEOUT_SECONDS. Never raises."""
        command = build_version_command(self._rclone_path)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
                **self._spawn_kwargs(),
            )
        except Exception as e:
            logging.warning(f"rclone not available ({self._rclone_path}): {e}")
            return False

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=PROBE_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            logging.warning(f"rclone version probe timed out after {PROBE_TIMEOUT_SECONDS}s")
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            return False

        if process.returncode != 0:
            logging.warning(f"rclone version probe exited with code {process.returncode}")
            return False

        first_line = (stdout or b"").decode(errors="replace").strip().splitlines()[:1]
        logging.info(f"rclone available: {first_line[0] if first_line else self._rclone_path}")
        return True

    async def mount(self, remote_name: str, drive_letter: str, options: str = "") -> OperationResult:
        """Start `rclone mount` for a remote. Blocks for the settle delay."""
        async with self._lock:
            if self._closed:
                return OperationResult.fail(
                    ErrorKind.PROCESS_LAUNCH_FAILURE, "Supervisor has been shut down"
                )

            if remote_name in self._handles:
                logging.warning(f"Mount refused: {remote_name} is already tracked")
                return OperationResult.fail(
                    ErrorKind.ALREADY_TRACKED, f"{remote_name} is already mounted"
                )

            try:
                extra_args = split_mount_options(options)
            except ValueError as e:
                logging.error(f"Invalid mount options for {remote_name}: {options!r} ({e})")
                return OperationResult.fail(ErrorKind.INVALID_OPTIONS, str(e))

            try:
                target = self._drive_probe.prepare_target(drive_letter)
                command = build_mount_command(self._rclone_path, remote_name, target, extra_args)
                logging.info(f"Mounting {remote_name} as {drive_letter}: {shlex.join(command)}")
                process = await asyncio.create_subprocess_exec(
                    *command,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.PIPE,
                    **self._spawn_kwargs(),
                )
            except Exception as e:
                logging.error(f"Could not start rclone mount for {remote_name}: {e}")
                return OperationResult.fail(ErrorKind.PROCESS_LAUNCH_FAILURE, str(e))

            handle = MountHandle(remote_name=remote_name, drive_letter=drive_letter, process=process)
            self._handles[remote_name] = handle
            if process.stderr is not None:
                handle.stderr_task = asyncio.create_task(self._drain_stderr(handle))

            await asyncio.sleep(MOUNT_SETTLE_DELAY_SECONDS)

            if handle.is_alive:
                handle.state = MountState.MOUNTED
                logging.info(f"{remote_name} mounted as {drive_letter} (pid {handle.pid})")
                return OperationResult.ok()

            await self._stop_stderr_drain(handle)
            self._handles.pop(remote_name, None)
            detail = " | ".join(handle.stderr_tail) or "no output"
            logging.error(
                f"rclone mount for {remote_name} exited with code "
                f"{process.returncode}: {detail}"
            )
            return OperationResult.fail(
                ErrorKind.PROCESS_EXITED,
                f"rclone exited with code {process.returncode}: {detail}",
            )

    async def unmount(self, remote_name: str) -> OperationResult:
        """Kill the remote's process. Untracked remotes are a no-op."""
        async with self._lock:
            return await self._unmount_locked(remote_name)

    async def _unmount_locked(self, remote_name: str) -> OperationResult:
        handle = self._handles.get(remote_name)
        if handle is None:
            logging.debug(f"Unmount of {remote_name} skipped: not tracked")
            return OperationResult.ok(f"{remote_name} was not mounted")

        handle.state = MountState.UNMOUNTING
        result = OperationResult.ok()
        try:
            if handle.is_alive:
                try:
                    handle.process.kill()
                except ProcessLookupError:
                    pass
                except OSError as e:
                    logging.warning(f"Could not kill rclone for {remote_name}: {e}")

                try:
                    await asyncio.wait_for(handle.process.wait(), timeout=UNMOUNT_TIMEOUT_SECONDS)
                except asyncio.TimeoutError:
                    logging.warning(
                        f"rclone for {remote_name} did not exit within {UNMOUNT_TIMEOUT_SECONDS}s"
                    )
                    result = OperationResult.fail(
                        ErrorKind.PROCESS_TIMEOUT,
                        f"Process for {remote_name} did not exit in time",
                    )

            await self._stop_stderr_drain(handle)
        finally:
            self._handles.pop(remote_name, None)

        logging.info(f"Unmounted {remote_name} ({handle.drive_letter})")
        return result

    async def unmount_all(self) -> int:
        """Unmount every tracked remote. Returns how many were tracked."""
        async with self._lock:
            remote_names = list(self._handles)
            for remote_name in remote_names:
                await self._unmount_locked(remote_name)
        if remote_names:
            logging.info(f"Unmounted all remotes: {', '.join(remote_names)}")
        return len(remote_names)

    async def aclose(self) -> None:
        """Refuse new mounts and kill everything still tracked."""
        if self._closed:
            return
        self._closed = True
        count = await self.unmount_all()
        logging.info(f"MountSupervisor closed ({count} mounts released)")

    def is_mounted(self, remote_name: str) -> bool:
        """
        Tracked and alive. A dead process is not reaped here; its handle
        stays until unmount()/unmount_all() is called.
        """
        handle = self._handles.get(remote_name)
        return handle is not None and handle.is_alive

    def get_state(self, remote_name: str) -> MountState:
        handle = self._handles.get(remote_name)
        return handle.state if handle is not None else MountState.UNMOUNTED

    def get_handle(self, remote_name: str) -> Optional[MountHandle]:
        return self._handles.get(remote_name)

    def tracked_remotes(self) -> List[str]:
        return list(self._handles)

    def mounted_remotes(self) -> Dict[str, str]:
        """Remote name -> drive letter for every live mount."""
        return {
            name: handle.drive_letter
            for name, handle in self._handles.items()
            if handle.is_alive
        }

    def available_drive_letters(self) -> List[str]:
        """
        Free letters D..Z in ascending order. Letters held by our own live
        mounts count as used even before the OS reports them.
        """
        try:
            used = self._drive_probe.used_letters()
        except OSError as e:
            logging.error(f"Could not list drive letters in use: {e}")
            return []
        return available_letters(used | set(self.mounted_remotes().values()))

    async def _drain_stderr(self, handle: MountHandle) -> None:
        stream = handle.process.stderr
        try:
            while True:
                line = await stream.readline()
                if not line:
                    break
                text = line.decode(errors="replace").rstrip()
                if text:
                    handle.stderr_tail.append(text)
                    logging.debug(f"rclone[{handle.remote_name}]: {text}")
        except Exception as e:
            logging.debug(f"Stopped reading rclone output for {handle.remote_name}: {e}")

    async def _stop_stderr_drain(self, handle: MountHandle) -> None:
        task = handle.stderr_task
        if task is None:
            return
        done, _ = await asyncio.wait({task}, timeout=STDERR_DRAIN_TIMEOUT_SECONDS)
        if not done:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
