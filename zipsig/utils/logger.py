"""
ZipSig Logger - Centralized Logging Utility
Stdout handler with message-only output for the CLI. Debug detail
(retry timings, digests, tracebacks) goes out only in verbose mode.
"""
import logging
import sys

LOGGER_NAME = "zipsig"


def setup_logger():
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.INFO)
        console.setFormatter(logging.Formatter('%(message)s'))
        logger.addHandler(console)

    return logger


def set_verbose(enabled: bool = True):
    """Raise or lower the console handler between DEBUG and INFO"""
    level = logging.DEBUG if enabled else logging.INFO
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler):
            handler.setLevel(level)
            if enabled:
                handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
            else:
                handler.setFormatter(logging.Formatter('%(message)s'))


logger = setup_logger()

__all__ = ["logger", "set_verbose", "LOGGER_NAME"]
