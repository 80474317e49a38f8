"""Startup auto-mount of saved remotes."""

import logging

from ..models import ReconcileReport
from .mount_supervisor import MountSupervisor
from .settings_store import SettingsStore


class AutoMountReconciler:
    """Mounts every saved remote flagged auto-mount whose drive letter is free."""

    def __init__(self, settings_store: SettingsStore, supervisor: MountSupervisor):
        self._settings_store = settings_store
        self._supervisor = supervisor

    async def reconcile(self) -> ReconcileReport:
        report = ReconcileReport()

        for saved in self._settings_store.load():
            if not saved.auto_mount:
                continue

            # Re-read every time: earlier mounts in this loop take letters too.
            if saved.drive_letter not in self._supervisor.available_drive_letters():
                logging.warning(
                    f"Auto-mount skipped for {saved.remote_name}: "
                    f"drive {saved.drive_letter} is not available"
                )
                report.skipped.append(saved.remote_name)
                continue

            result = await self._supervisor.mount(
                saved.remote_name, saved.drive_letter, saved.mount_options
            )
            if result:
                report.mounted.append(saved.remote_name)
            else:
                logging.error(f"Auto-mount failed for {saved.remote_name}: {result.message}")
                report.failed.append(saved.remote_name)

        logging.info(
            f"Auto-mount finished: {len(report.mounted)} mounted, "
            f"{len(report.skipped)} skipped, {len(report.failed)} failed"
        )
        return report
