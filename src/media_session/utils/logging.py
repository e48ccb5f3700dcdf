"""Console logging helpers."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, TextIO

from media_session.domain.shared.constants import ConfigKeys

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATEFMT = "%H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter that tints the level name and dims the logger name.

    Color is skipped when ``NO_COLOR`` is set or the target stream is not a
    TTY, so redirected output stays plain.
    """

    LEVEL_COLORS: dict[int, str] = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    DIM = "\033[2m"
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str | None = DEFAULT_FORMAT,
        datefmt: str | None = DEFAULT_DATEFMT,
        stream: TextIO | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, **kwargs)
        self._stream = stream

    def use_color(self) -> bool:
        if os.environ.get(ConfigKeys.NO_COLOR) is not None:
            return False
        stream = self._stream or sys.stderr
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color():
            return super().format(record)

        tinted = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno, "")
        tinted.levelname = f"{color}{record.levelname:<8}{self.RESET}"
        tinted.name = f"{self.DIM}{record.name}{self.RESET}"
        return super().format(tinted)
