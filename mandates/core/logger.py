"""Application logging for the decision register.

The ``mandates`` logger writes ISO 8601 stamped records to the console
and, when enabled, to a rotating file in ``log_dir``.
"""

import logging
import logging.handlers
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def setup_logger(
    name: str,
    log_dir: str = "/var/log/mandates",
    level: str = "INFO",
    file_logging: bool = True,
    console_logging: bool = True,
) -> logging.Logger:
    """Attach handlers to the named logger once and set its level.

    Module loggers from ``logging.getLogger(__name__)`` propagate here.

    Raises:
        ValueError: If ``level`` is not a standard level name
    """
    logger = logging.getLogger(name)

    level_upper = level.upper()
    if level_upper not in LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of: {', '.join(LEVELS)}")
    logger.setLevel(getattr(logging, level_upper))

    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if file_logging:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, f"{name}.log"),
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console_logging:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
