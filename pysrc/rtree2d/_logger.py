# _logger.py
"""Package logger shared by the engine and the wrapper classes."""

import logging

LOGGER_NAME = "rtree2d"

logger = logging.getLogger(LOGGER_NAME)

if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("[%(name)s] %(levelname)s: %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)

logger.setLevel(logging.INFO)


def set_debug(enabled: bool) -> None:
    """
    Toggle DEBUG output for the rtree2d logger.

    With debug on, splits, root growth and collapse, underflows, reinsertion,
    ignored duplicates and deletes of absent points are all logged.

    Args:
        enabled: True for DEBUG, False to return to INFO.
    """
    logger.setLevel(logging.DEBUG if enabled else logging.INFO)
