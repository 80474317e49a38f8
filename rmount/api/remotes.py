import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status

from ..config import Settings
from ..core.exceptions import ConfigFileError
from ..dependencies import (
    get_config_store,
    get_mount_supervisor,
    get_settings,
    get_settings_store,
)
from ..models import (
    ErrorKind,
    MountRequest,
    MountSettingsUpdate,
    OperationResult,
    RemoteStatus,
    SavedMount,
    ToolStatus,
)
from ..services.config_store import ConfigStore
from ..services.mount_supervisor import MountSupervisor
from ..services.settings_store import SettingsStore

router = APIRouter(prefix="/api", tags=["remotes"])

_ERROR_STATUS = {
    ErrorKind.ALREADY_TRACKED: status.HTTP_409_CONFLICT,
    ErrorKind.CONFIG_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_OPTIONS: status.HTTP_400_BAD_REQUEST,
    ErrorKind.PROCESS_LAUNCH_FAILURE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.PROCESS_EXITED: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.PROCESS_TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorKind.CONFIG_IO: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _raise_for(result: OperationResult) -> None:
    if result:
        return
    raise HTTPException(
        status_code=_ERROR_STATUS.get(result.error, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={"error": result.error.value if result.error else None, "message": result.message},
    )


@router.get("/status", response_model=ToolStatus)
async def get_status(
    settings: Settings = Depends(get_settings),
    config_store: ConfigStore = Depends(get_config_store),
    supervisor: MountSupervisor = Depends(get_mount_supervisor),
) -> ToolStatus:
    """rclone availability and which files are in use."""
    return ToolStatus(
        rclone_available=await supervisor.is_available(),
        rclone_executable=supervisor.rclone_path,
        rclone_config_path=str(config_store.path),
        config_file_exists=config_store.exists(),
        config_file_info=settings.config_file_info,
    )


@router.get("/remotes", response_model=List[RemoteStatus])
async def list_remotes(
    config_store: ConfigStore = Depends(get_config_store),
    settings_store: SettingsStore = Depends(get_settings_store),
    supervisor: MountSupervisor = Depends(get_mount_supervisor),
) -> List[RemoteStatus]:
    """Every remote in rclone.conf with its mount state and saved preferences."""
    try:
        names = config_store.list_section_names()
    except ConfigFileError as e:
        logging.error(f"Could not list remotes: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    saved_by_name = {saved.remote_name: saved for saved in settings_store.load()}
    live = supervisor.mounted_remotes()

    remotes = []
    for name in dict.fromkeys(names):
        saved = saved_by_name.get(name)
        mounted = name in live
        remotes.append(
            RemoteStatus(
                name=name,
                state=supervisor.get_state(name),
                mounted=mounted,
                drive_letter=live[name] if mounted else (saved.drive_letter if saved else None),
                saved=saved,
            )
        )
    return remotes


@router.get("/drives", response_model=List[str])
async def list_available_drives(
    supervisor: MountSupervisor = Depends(get_mount_supervisor),
) -> List[str]:
    return supervisor.available_drive_letters()


@router.post("/remotes/{remote_name}/mount")
async def mount_remote(
    remote_name: str,
    request: Optional[MountRequest] = Body(default=None),
    settings_store: SettingsStore = Depends(get_settings_store),
    supervisor: MountSupervisor = Depends(get_mount_supervisor),
):
    """Mount a remote. Drive letter and options default to the saved preferences."""
    request = request or MountRequest()
    saved = settings_store.get(remote_name)

    drive_letter = request.drive_letter or (saved.drive_letter if saved else None)
    if not drive_letter:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"No drive letter given and none saved for {remote_name}",
        )

    options = request.options if request.options is not None else (saved.mount_options if saved else "")

    if not supervisor.is_mounted(remote_name) and drive_letter not in supervisor.available_drive_letters():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Drive {drive_letter} is not available",
        )

    logging.info(f"Mount requested: {remote_name} as {drive_letter}", extra={"operation": "api_mount"})
    _raise_for(await supervisor.mount(remote_name, drive_letter, options))
    return {"success": True, "remote": remote_name, "drive_letter": drive_letter}


@router.post("/remotes/{remote_name}/unmount")
async def unmount_remote(
    remote_name: str,
    supervisor: MountSupervisor = Depends(get_mount_supervisor),
):
    logging.info(f"Unmount requested: {remote_name}", extra={"operation": "api_unmount"})
    _raise_for(await supervisor.unmount(remote_name))
    return {"success": True, "remote": remote_name}


@router.post("/unmount-all")
async def unmount_all(supervisor: MountSupervisor = Depends(get_mount_supervisor)):
    count = await supervisor.unmount_all()
    return {"success": True, "unmounted": count}


@router.get("/remotes/{remote_name}/settings", response_model=SavedMount)
async def get_mount_settings(
    remote_name: str,
    settings_store: SettingsStore = Depends(get_settings_store),
) -> SavedMount:
    saved = settings_store.get(remote_name)
    if saved is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No saved mount settings for {remote_name}",
        )
    return saved


@router.put("/remotes/{remote_name}/settings", response_model=SavedMount)
async def save_mount_settings(
    remote_name: str,
    update: MountSettingsUpdate,
    settings_store: SettingsStore = Depends(get_settings_store),
) -> SavedMount:
    _raise_for(
        settings_store.add_or_update(
            remote_name, update.drive_letter, update.auto_mount, update.mount_options
        )
    )
    return SavedMount(
        remote_name=remote_name,
        drive_letter=update.drive_letter,
        auto_mount=update.auto_mount,
        mount_options=update.mount_options.strip(),
    )


@router.delete("/remotes/{remote_name}/settings")
async def delete_mount_settings(
    remote_name: str,
    settings_store: SettingsStore = Depends(get_settings_store),
):
    _raise_for(settings_store.remove(remote_name))
    return {"success": True, "remote": remote_name}
