import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from .utils.host_config import get_hostname_settings_file


def default_rclone_config_path() -> str:
    """rclone's own default location for rclone.conf on this platform."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming"))
        return str(Path(appdata) / "rclone" / "rclone.conf")
    config_home = os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config"))
    return str(Path(config_home) / "rclone" / "rclone.conf")


class Settings(BaseSettings):
    # rclone
    rclone_path: str = "rclone"  # Executable path or bare name looked up on PATH
    rclone_config_path: str = Field(default_factory=default_rclone_config_path)

    # Mount targets on non-Windows platforms: <mount_root>/<drive letter>
    mount_root: str = str(Path.home() / "rmount")

    # Logging
    log_level: str = "INFO"
    log_file_path: str = "logs/rmount.log"
    log_retention_days: int = 30

    # Control API
    api_host: str = "127.0.0.1"
    api_port: int = 7380

    model_config = SettingsConfigDict(
        env_prefix="RMOUNT_",
        env_file=get_hostname_settings_file(),
        extra="ignore",
    )

    @property
    def log_directory(self) -> Path:
        """Directory holding the log file."""
        return Path(self.log_file_path).parent

    @property
    def config_file_info(self) -> dict:
        """Return information about which settings file is being used."""
        from .utils.host_config import get_hostname, list_all_settings_files

        return {
            "hostname": get_hostname(),
            "active_config_file": get_hostname_settings_file(),
            "all_available_configs": list_all_settings_files(),
        }
