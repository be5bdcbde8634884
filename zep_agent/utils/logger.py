"""Logging configuration for zep-agent.

All modules log through ``logging.getLogger(__name__)``; this module wires
the root logger once at startup.
"""

from __future__ import annotations

import logging
import sys

# SDK and transport loggers that stay at WARNING even in verbose mode.
_QUIET_LOGGERS = ("httpx", "httpcore", "urllib3", "anthropic", "zep_cloud")


def setup_logging(verbose: bool = False) -> None:
    """Configure the root logger.

    Normal mode shows warnings and above on stderr so log lines do not
    interleave with the conversation.  Verbose mode shows debug output,
    including every tool result, with timestamps and source locations.

    Args:
        verbose: Use ``DEBUG`` and the detailed format when ``True``.
    """
    if verbose:
        level = logging.DEBUG
        fmt = "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d  %(message)s"
        datefmt = "%H:%M:%S"
    else:
        level = logging.WARNING
        fmt = "%(levelname)s: %(message)s"
        datefmt = None

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging initialised (level=%s)", logging.getLevelName(level)
    )
