"""
Logging configuration for the command-line tool.

Log records go to stderr (stdout carries the frames) and optionally to a
file.
"""

import logging
import os
from typing import Optional


_LOGGER_NAME = "asciicam"


def setup_logging(verbosity: int = 0, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger.

    Safe to call more than once: the stderr handler is added on the first
    call and each distinct log file gets exactly one handler.

    Args:
        verbosity: 0 for warnings, 1 for info, 2 or more for debug
        log_file: Optional path that receives the same records

    Returns:
        The configured package logger
    """
    level = [logging.WARNING, logging.INFO, logging.DEBUG][min(max(verbosity, 0), 2)]

    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)

    file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(stream_handler)

    if log_file:
        path = os.path.abspath(log_file)
        if not any(h.baseFilename == path for h in file_handlers):
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
            logger.addHandler(file_handler)

    return logger
