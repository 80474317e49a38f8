# rmount/core/exceptions.py

class ConfigFileError(OSError):
    """Raised when the shared rclone config file cannot be read or written."""
    def __init__(self, config_path: str, operation: str, reason: str):
        self.config_path = config_path
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"Cannot {operation} config file {config_path}: {reason}"
        )


class ConfigConflictError(ConfigFileError):
    """Raised when the config file keeps changing underneath a read-modify-write."""
    def __init__(self, config_path: str, attempts: int):
        self.attempts = attempts
        super().__init__(
            config_path,
            "update",
            f"file was modified concurrently {attempts} times in a row",
        )
