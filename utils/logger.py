# This module contains the logging setup shared by every blog client module.
import logging
from typing import Optional

ROOT_LOGGER_NAME = "blogclient"


class CustomFormatter(logging.Formatter):
    """
    A custom formatter for logging messages with different log levels.

    Attributes:
        grey (str): ANSI escape sequence for grey color.
        yellow (str): ANSI escape sequence for yellow color.
        red (str): ANSI escape sequence for red color.
        bold_red (str): ANSI escape sequence for bold red color.
        reset (str): ANSI escape sequence to reset color.
        format (str): The log message format.
        FORMATS (dict): A dictionary mapping log levels to their respective log message formats.

    Usage:
        logger = get_logger(__name__)
        logger.info("Created post 42")
    """
    grey = "\x1b[37;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    dark_grey = "\x1b[30;1m"
    reset = "\x1b[0m"
    format = '[%(levelname)s] %(asctime)s %(name)s - %(message)s'

    FORMATS = {
        logging.DEBUG: dark_grey + format + reset,
        logging.INFO: grey + format + reset,
        logging.WARNING: yellow + format + reset,
        logging.ERROR: red + format + reset,
        logging.CRITICAL: bold_red + format + reset
    }

    def format(self, record):
        """
        Formats the log record based on its log level.

        Args:
            record (logging.LogRecord): The log record to be formatted.

        Returns:
            str: The formatted log message.
        """
        log_fmt = self.FORMATS.get(record.levelno)
        formatter = logging.Formatter(log_fmt)
        return formatter.format(record)


def _root_logger() -> logging.Logger:
    """Return the library root logger, attaching the console handler once."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not any(getattr(h, "_blogclient_console", False) for h in root.handlers):
        ch = logging.StreamHandler()
        ch.setLevel(logging.DEBUG)
        ch.setFormatter(CustomFormatter())
        ch._blogclient_console = True
        root.addHandler(ch)
        root.setLevel(logging.INFO)
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger that lives under the blog client hierarchy.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        logging.Logger: A child of the ``blogclient`` logger.
    """
    root = _root_logger()
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return root.getChild(name)


def setup_file_logging(log_file: str, level: int = logging.INFO,
                       logger_name: Optional[str] = None) -> logging.Handler:
    """
    Add a plain-text file handler to the blog client logger.

    Args:
        log_file: Path of the log file to append to.
        level: Minimum level written to the file and set on the logger.
        logger_name: Logger to attach to, defaults to the library root.

    Returns:
        logging.Handler: The handler that was added.
    """
    logger = logging.getLogger(logger_name or ROOT_LOGGER_NAME)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter('[%(levelname)s] %(asctime)s %(name)s - %(message)s'))
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler
