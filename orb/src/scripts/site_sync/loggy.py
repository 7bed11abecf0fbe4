#!/usr/bin/env python3
"""
loggy

Common code to force logging to the console for pipelines

Example Usage:
    from site_sync import loggy
"""
import logging
import os
import sys


def level_from_env(value):
    """
    level_from_env()

    Map a LOG_LEVEL value (any case) to a logging level, INFO when unset or unknown.
    """
    level = logging.getLevelName((value or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


logging.basicConfig(
    stream=sys.stdout,
    format="%(levelname)s %(asctime)s - %(message)s",
    level=level_from_env(os.environ.get('LOG_LEVEL'))
)
loggy = logging.getLogger()
logging.getLogger('botocore').setLevel(logging.WARNING)
logging.getLogger('boto3').setLevel(logging.WARNING)
loggy.debug("loggy Initialized")


def log(msg):
    """
    log()

    The single console sink for lifecycle output. Lists are joined with spaces
    so argument vectors read like the command that was run.
    """
    if isinstance(msg, (list, tuple)):
        msg = " ".join(str(m) for m in msg)
    loggy.info(msg)


def debug(msg):
    """
    debug()

    Log a DEBUG message to stdout
    """
    loggy.debug(msg)


def info(msg):
    """
    info()

    Log an INFO message to stdout
    """
    loggy.info(msg)


def warn(msg):
    loggy.warning(msg)


def warning(msg):
    """
    warning()

    Log a WARNING message to stdout
    """
    loggy.warning(msg)


def error(msg):
    """
    error()

    Log an ERROR message to stdout
    """
    loggy.error(msg)
