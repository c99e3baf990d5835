import logging
import sys
import os
from logging.handlers import RotatingFileHandler

from codementor.config import LOG_LEVEL, LOG_DIR

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_COLORS = {
    logging.DEBUG: "\x1b[38;20m",
    logging.INFO: "\x1b[34;20m",
    logging.WARNING: "\x1b[33;20m",
    logging.ERROR: "\x1b[31;20m",
    logging.CRITICAL: "\x1b[31;1m",
}
RESET = "\x1b[0m"


class ColorFormatter(logging.Formatter):
    """Wraps each console line in the color of its level"""

    def __init__(self):
        super().__init__(LOG_FORMAT + " (%(filename)s:%(lineno)d)", datefmt=DATE_FORMAT)

    def format(self, record):
        line = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        return f"{color}{line}{RESET}" if color else line


def setup_logger(name: str = "codementor", level: str = LOG_LEVEL, log_dir: str = LOG_DIR) -> logging.Logger:
    """Configure the package logger. Module loggers under `codementor.*` inherit it."""

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ColorFormatter())
    logger.addHandler(console)

    os.makedirs(log_dir, exist_ok=True)
    rotating = RotatingFileHandler(
        os.path.join(log_dir, "codementor.log"),
        maxBytes=5 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8"
    )
    rotating.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(rotating)

    return logger
