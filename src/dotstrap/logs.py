from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_TAGS = {
    logging.DEBUG: ("DEBUG", "\033[0;36m"),
    logging.INFO: ("INFO", "\033[0;34m"),
    SUCCESS: ("OK", "\033[0;32m"),
    logging.WARNING: ("WARN", "\033[0;33m"),
    logging.ERROR: ("ERROR", "\033[0;31m"),
    logging.CRITICAL: ("ERROR", "\033[0;31m"),
}
_RESET = "\033[0m"


class TagFormatter(logging.Formatter):
    """Render records as ``[TAG] message`` lines, coloured when asked to."""

    def __init__(self, color: bool = False) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        tag, colour = _TAGS.get(record.levelno, (record.levelname, ""))
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        if self.color and colour:
            return f"{colour}[{tag}]{_RESET} {message}"
        return f"[{tag}] {message}"


def success(logger: logging.Logger, msg: str, *args) -> None:
    logger.log(SUCCESS, msg, *args)


def configureLogging(
    logPath: Optional[str] = None,
    level: int = logging.INFO,
    stream=None,
) -> Optional[str]:
    """Configure the ``dotstrap`` logger.

    Progress lines go to stdout unbuffered-by-line so they appear as each step
    happens. When ``logPath`` is given, a timestamped copy is appended there.

    Calling it again replaces the previous handlers, so tests and repeated CLI
    invocations in one process don't stack output.

    Returns the log file path in use, if any.
    """

    logger = logging.getLogger("dotstrap")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream = stream or sys.stdout
    console = logging.StreamHandler(stream)
    console.setLevel(level)
    console.setFormatter(TagFormatter(color=hasattr(stream, "isatty") and stream.isatty()))
    logger.addHandler(console)

    if logPath:
        Path(logPath).expanduser().parent.mkdir(parents=True, exist_ok=True)
        fileHandler = logging.FileHandler(Path(logPath).expanduser())
        fileHandler.setLevel(logging.DEBUG)
        fileHandler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S%z",
            )
        )
        logger.addHandler(fileHandler)
        logger.debug("Logging to %s", logPath)

    return logPath
