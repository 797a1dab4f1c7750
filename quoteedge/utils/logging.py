import logging
import os
from typing import Optional


LOGGER_PREFIX = "quoteedge"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    level_str = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_str, logging.INFO)

    full_name = f"{LOGGER_PREFIX}.{name}" if name else LOGGER_PREFIX
    logger = logging.getLogger(full_name)
    if logger.handlers:
        logger.setLevel(level)
        return logger

    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
