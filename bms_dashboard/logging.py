from __future__ import annotations

import logging
import sys
from typing import Iterable, TextIO

APP_LOGGER = "bms"

# Leg threads are named bms-leg-<leg>, so the thread column tells the legs apart.
LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Transport chatter stays at WARNING unless named in debug_modules.
NOISY_MODULES = ("urllib3", "requests")

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConsoleLog:
    """
    Console logging for the dashboard.

    Records go to stderr so that ``--json`` output on stdout stays parseable.
    """

    def __init__(
        self,
        level: str = "INFO",
        quiet: bool = False,
        debug_modules: Iterable[str] | None = None,
        stream: TextIO | None = None,
    ):
        self.level = level.upper()
        self.quiet = quiet
        self.debug_modules = list(debug_modules or [])
        self.stream = stream

    def setup(self) -> logging.Logger:
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(logging.DEBUG)

        if not self.quiet:
            handler = logging.StreamHandler(self.stream or sys.stderr)
            handler.setLevel(getattr(logging, self.level) if self.level in _LEVELS else logging.INFO)
            handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            root.addHandler(handler)

        for name in NOISY_MODULES:
            if name not in self.debug_modules:
                logging.getLogger(name).setLevel(logging.WARNING)
        for name in self.debug_modules:
            logging.getLogger(name).setLevel(logging.DEBUG)

        return logging.getLogger(APP_LOGGER)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
