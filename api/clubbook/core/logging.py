"""Root logger setup. Modules log through ``logging.getLogger(__name__)``."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger.

    Safe to call more than once (e.g. under reload): existing handlers are replaced.
    """
    root = logging.getLogger()
    root.handlers = []

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper())
