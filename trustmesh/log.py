"""
TrustMesh logging utilities.

Every module logs through ``logging.getLogger(__name__)``, so all records
land under the ``trustmesh`` logger namespace.
"""

import logging
from typing import Optional, Union

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(
    level: Union[int, str] = logging.INFO,
    handler: Optional[logging.Handler] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the ``trustmesh`` logger.

    Args:
        level: Log level (int or name such as "DEBUG")
        handler: Custom handler (default: StreamHandler to stderr)
        format_string: Custom format string

    Returns:
        The configured root ``trustmesh`` logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if handler is None:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string or _FORMAT))

    logger = logging.getLogger("trustmesh")
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
