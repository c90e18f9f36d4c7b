import logging
import sys
from typing import Optional, Union

from sessionsvc.local import effective_settings as config


class SubprocessLogFilter(logging.Filter):
    """
    This filter identifies logs coming from the subprocess loggers
    so that they can be kept out of a handler.
    """
    def filter(self, record):
        # The 'proc.' prefix is used by log_process_output in process_utils.py
        return not record.name.startswith('proc.')


class MainFormatter(logging.Formatter):
    """A custom formatter to handle regular logs and raw subprocess logs."""

    def format(self, record):
        # If the log is from a subprocess, prefix it with the service name only.
        if record.name.startswith('proc.'):
            return f"[{record.name[len('proc.'):]}] {record.getMessage()}"

        # Otherwise, use the default formatting.
        # Temporarily change the format string for the superclass call.
        original_format = self._style._fmt
        self._style._fmt = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'
        formatted_message = super().format(record)
        self._style._fmt = original_format
        return formatted_message


def setup_logging(console_level: Optional[Union[int, str]] = None, show_subprocess_output: bool = True) -> None:
    """
    Configures the root logger for the session services.
    This sets up the console handler, clearing any previously configured
    handlers to prevent duplication.

    :param console_level: The logging level for the console output; LOG_LEVEL from the settings when omitted.
    :param show_subprocess_output: If False, output captured from child processes is not printed.
    """
    if console_level is None:
        console_level = config.LOG_LEVEL

    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    if not show_subprocess_output:
        console_handler.addFilter(SubprocessLogFilter())
    root_logger.addHandler(console_handler)
