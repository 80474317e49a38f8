"""rmount - mount rclone remotes as local drives."""

__version__ = "0.1.0"
