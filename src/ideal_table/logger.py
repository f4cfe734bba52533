# ideal_table/logger.py
import logging
import sys

logger = logging.getLogger("ideal_table")
logger.setLevel(logging.INFO)

# Prevent duplicate handlers if imported multiple times
if not logger.handlers:
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_formatter = logging.Formatter("[%(levelname)s] %(message)s")
    stream_handler.setFormatter(stream_formatter)
    logger.addHandler(stream_handler)


def get_logger(name: str) -> logging.Logger:
    """Child logger of the package logger, e.g. ``ideal_table.algorithm``."""
    return logger.getChild(name.rsplit(".", 1)[-1])
