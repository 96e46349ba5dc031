"""Logging infrastructure for tarpkg.

Console output goes to stderr so it never mixes with command output such as
archive listings. File logging is opt-in and rotates at a fixed size.
"""

import logging
import logging.handlers
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_MAX_BYTES = 10485760  # 10MB
LOG_BACKUP_COUNT = 5


def setup_logger(
    name: str = "tarpkg",
    log_dir: str = "/var/log/tarpkg",
    level: str = "INFO",
    file_logging: bool = False,
    console_logging: bool = True,
) -> logging.Logger:
    """Configure the ``tarpkg`` logger (or one of its children).

    Calling it again only changes the level; handlers are added once.

    Args:
        name: Logger name (child loggers like "tarpkg.repo" inherit handlers)
        log_dir: Directory for ``<name>.log`` when file logging is enabled
        level: Logging level name, case-insensitive
        file_logging: Write to a rotating file in ``log_dir``
        console_logging: Write to stderr

    Returns:
        Configured logger instance

    Raises:
        ValueError: If ``level`` is not a known level name
    """
    logger = logging.getLogger(name)

    level_upper = level.upper()
    if level_upper not in LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of: {', '.join(LOG_LEVELS)}")
    logger.setLevel(level_upper)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if file_logging:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, f"{name}.log"),
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console_logging:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a component, e.g. "repo" for "tarpkg.repo"."""
    if name == "tarpkg" or name.startswith("tarpkg."):
        return logging.getLogger(name)
    return logging.getLogger(f"tarpkg.{name}")
