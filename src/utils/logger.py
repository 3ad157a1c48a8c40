import logging
import os

from rich.console import Console
from rich.logging import RichHandler

from utils import config


class CenteredFormatter(logging.Formatter):
    longest_name_length = 14  # Initial default width

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=14):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )

        dynamic_width = CenteredFormatter.longest_name_length + 2
        record.name = f"{record.name.center(dynamic_width - 2)}"
        return super().format(record)


_file_console = None


def _console():
    """
    Rich console for log output. While the TUI owns the terminal, logs go to
    POS_LOG_FILE when it is set.
    """
    global _file_console
    if not config.LOG_FILE:
        return None
    if _file_console is None:
        _file_console = Console(
            file=open(config.LOG_FILE, "a", encoding="utf-8"), width=120
        )
    return _file_console


def get_logger(name=None) -> logging.Logger:
    """
    Creates and returns a logger configured with RichHandler for rich output.
    """
    if name is None:
        name = "Default"
    logger = logging.getLogger(name)
    log_level = logging.DEBUG if os.getenv("DEBUG") else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        format_pattern = "[%(name)s]  %(message)s"
        formatter = CenteredFormatter(format_pattern)

        console_handler = RichHandler(
            console=_console(),
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)

        logger.propagate = False
        logger.debug(f"Logger for '{name}' initialized with RichHandler.")

    return logger


def close_log_file() -> None:
    """Close POS_LOG_FILE, if it was opened. Called once the app has exited."""
    global _file_console
    if _file_console is None:
        return
    _file_console.file.close()
    _file_console = None
