"""
Logging for TransportLedger

Modules log through get_logger("transport_ledger.<module>") and stay silent
until the command-line entry point calls configure_logging.
"""
from __future__ import annotations
import logging
import os
import sys
from typing import IO, Union

LOGGER_NAME = "transport_ledger"
LEVEL_ENV = "TRANSPORT_LEDGER_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_root = logging.getLogger(LOGGER_NAME)
_root.addHandler(logging.NullHandler())
_configured = False

Level = Union[int, str, None]


def resolve_level(*choices: Level) -> int:
    """
    First usable level among choices, INFO when there is none.
    A choice is a logging level number or a name such as "debug";
    None and unknown names are skipped.
    """
    for choice in choices:
        if isinstance(choice, int) and not isinstance(choice, bool):
            return choice
        if isinstance(choice, str):
            level = logging.getLevelName(choice.strip().upper())
            if isinstance(level, int):
                return level
    return logging.INFO


def configure_logging(
    cli_level: Level = None,
    settings_level: Level = None,
    stream: IO[str] = sys.stderr,
) -> logging.Logger:
    """
    Send transport_ledger records to stream.
    The level is taken from the command line, then the environment, then
    settings.json. Only the first call has any effect.
    """
    global _configured
    if _configured:
        return _root

    level = resolve_level(cli_level, os.getenv(LEVEL_ENV), settings_level)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    _root.addHandler(handler)
    _root.setLevel(level)
    _root.propagate = False
    _configured = True
    return _root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
