"""
Host-specific configuration file selection.

A machine can carry its own `{hostname}-settings.env` next to the shared
`settings.env`. The host file wins when it exists.
"""

import logging
import socket
from pathlib import Path

BASE_SETTINGS_FILE = "settings.env"


def get_hostname() -> str:
    """Get the current hostname (without domain)."""
    return socket.gethostname().split('.')[0]


def get_hostname_settings_file() -> str:
    """
    Get the settings file for this host.

    Returns `{hostname}-settings.env` if it exists, otherwise `settings.env`
    (which pydantic-settings silently ignores when missing).
    """
    host_settings = Path(f"{get_hostname()}-settings.env")
    if host_settings.exists():
        logging.debug(f"Using host-specific configuration: {host_settings}")
        return str(host_settings)
    return BASE_SETTINGS_FILE


def list_all_settings_files() -> list[str]:
    """List all available settings files (base + host-specific)."""
    settings_files = []

    if Path(BASE_SETTINGS_FILE).exists():
        settings_files.append(BASE_SETTINGS_FILE)

    for file_path in sorted(Path(".").glob("*-settings.env")):
        settings_files.append(str(file_path))

    return settings_files
