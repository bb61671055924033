"""
Logging setup.

One stream handler on the `intranet` logger, level taken from settings.
Modules call `get_logger(__name__)`.
"""

import logging
import sys

from intranet.config.settings import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_root = logging.getLogger("intranet")

if not _root.handlers:
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    _root.addHandler(_handler)
    _root.setLevel(settings.LOG_LEVEL.upper())
    _root.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the `intranet` namespace."""
    if name == "intranet" or name.startswith("intranet."):
        return logging.getLogger(name)
    return logging.getLogger(f"intranet.{name}")


logger = get_logger("intranet")
