"""Logging setup shared by the CLI and the dashboard."""

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

# Store and driver activity is also written to log_dir/<logger_name>.log
FILE_LOGGERS = ["kvadmin.store", "kvadmin.database.driver"]


def _formatter():
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)


def setup_logging(level=logging.INFO, log_dir="logs"):
    """Send records to stderr, plus rotating files for the loggers in FILE_LOGGERS.

    `level` is a logging constant or a name like "debug". A root logger that
    already has handlers is left alone.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root = logging.getLogger()
    if root.handlers:
        return
    root.setLevel(level)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(_formatter())
    root.addHandler(console)

    os.makedirs(log_dir, exist_ok=True)
    for name in FILE_LOGGERS:
        path = os.path.join(log_dir, name.replace(".", "_") + ".log")
        handler = RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS)
        handler.setLevel(level)
        handler.setFormatter(_formatter())
        logging.getLogger(name).addHandler(handler)
