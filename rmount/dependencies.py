from functools import lru_cache
from typing import Dict, Any

from .config import Settings
from .services.config_store import ConfigStore
from .services.mount_supervisor import MountSupervisor
from .services.reconciler import AutoMountReconciler
from .services.settings_store import SettingsStore

# Global singleton instances
_singletons: Dict[str, Any] = {}


@lru_cache
def get_settings() -> Settings:
    """Settings singleton, cached for the process."""
    return Settings()


def get_config_store() -> ConfigStore:
    if "config_store" not in _singletons:
        _singletons["config_store"] = ConfigStore(get_settings().rclone_config_path)
    return _singletons["config_store"]


def get_settings_store() -> SettingsStore:
    if "settings_store" not in _singletons:
        _singletons["settings_store"] = SettingsStore(get_config_store())
    return _singletons["settings_store"]


def get_mount_supervisor() -> MountSupervisor:
    if "mount_supervisor" not in _singletons:
        _singletons["mount_supervisor"] = MountSupervisor(get_settings())
    return _singletons["mount_supervisor"]


def get_reconciler() -> AutoMountReconciler:
    if "reconciler" not in _singletons:
        _singletons["reconciler"] = AutoMountReconciler(
            settings_store=get_settings_store(),
            supervisor=get_mount_supervisor(),
        )
    return _singletons["reconciler"]


def reset_singletons() -> None:
    """Drop all cached instances (tests)."""
    _singletons.clear()
    get_settings.cache_clear()
