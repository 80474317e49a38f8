import logging
import logging.handlers

from rich.console import Console
from rich.logging import RichHandler

from .config import Settings

FILE_LOG_FORMAT = (
    "%(asctime)s - %(levelname)s - [%(operation)s] "
    "%(filename)s:%(lineno)d - %(message)s"
)

NOISY_LOGGERS = ("uvicorn.access", "asyncio")


class OperationFilter(logging.Filter):
    """Gives every record an `operation` attribute so the file format never breaks."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "operation"):
            record.operation = "-"
        return True


def _console_handler(settings: Settings) -> logging.Handler:
    handler = RichHandler(
        console=Console(width=120),
        show_path=True,
        markup=False,  # remote names and rclone stderr may contain [brackets]
        rich_tracebacks=True,
        tracebacks_show_locals=False,
    )
    handler.setLevel(settings.log_level)
    return handler


def _file_handler(settings: Settings) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=settings.log_file_path,
        when="midnight",
        backupCount=settings.log_retention_days,
        encoding="utf-8",
    )
    handler.setLevel(settings.log_level)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    handler.addFilter(OperationFilter())
    return handler


def setup_logging(settings: Settings) -> None:
    """Console (rich) plus a daily-rotated file, both on the root logger."""
    settings.log_directory.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)

    # Replace, never stack: setup_logging runs again on every app startup
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.addHandler(_console_handler(settings))
    root_logger.addHandler(_file_handler(settings))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(
        f"Logging initialized - file: {settings.log_file_path}, "
        f"level: {settings.log_level}, retention: {settings.log_retention_days} days"
    )
