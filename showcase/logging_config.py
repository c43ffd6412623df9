# showcase/logging_config.py
# Version 01.00.00.00 dated 20261019
"""
Logging setup for the Showcase overlay.

Every module logs through ``get_logger(__name__)`` into the ``showcase``
logger tree, prefixing messages with the component that emits them
(``[Lifecycle]``, ``[Geometry]``, ``[ContentLoader]``, ``[QtHost]`` ...).
Applications embedding the overlay call setup_logging() once at startup;
the level can also be chosen with SHOWCASE_LOG_LEVEL.
"""

import logging
import logging.handlers
import os
import re
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "showcase"
LEVEL_ENV = "SHOWCASE_LOG_LEVEL"

CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s:%(lineno)d] %(message)s"

# Libraries that are chatty at DEBUG while images are decoded
NOISY_LOGGERS = ("PIL", "PIL.PngImagePlugin", "PIL.TiffImagePlugin", "PIL.Image")
QT_LOGGING_RULES = "*.debug=false;qt.qpa.*=false;qt.multimedia.*=false"

_LEVEL_COLORS = {
    logging.DEBUG: "36",
    logging.INFO: "32",
    logging.WARNING: "33",
    logging.ERROR: "31",
    logging.CRITICAL: "35",
}
_COMPONENT = re.compile(r"\] (\[[A-Za-z]+\])")


class ShowcaseFormatter(logging.Formatter):
    """
    Console formatter for the overlay's logs.

    On a terminal the level name is colored and the ``[Component]`` prefix
    is emphasized so the open / load / resize / close sequence of a single
    presentation is easy to follow. NO_COLOR disables both.
    """

    def __init__(self, fmt: str = CONSOLE_FORMAT, colors: Optional[bool] = None, stream=None):
        super().__init__(fmt)
        if colors is None:
            stream = stream if stream is not None else sys.stdout
            colors = (
                hasattr(stream, "isatty") and stream.isatty()
                and os.environ.get("NO_COLOR") is None
            )
        self.colors = colors

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self.colors:
            return text
        code = _LEVEL_COLORS.get(record.levelno)
        if code is not None:
            text = text.replace(
                f"[{record.levelname}]", f"[\033[{code}m{record.levelname}\033[0m]", 1
            )
        return _COMPONENT.sub(lambda m: f"] \033[1m{m.group(1)}\033[0m", text, count=1)


def resolve_level(level: Optional[str] = None) -> int:
    """Numeric level from *level*, then SHOWCASE_LOG_LEVEL, then INFO."""
    name = level or os.environ.get(LEVEL_ENV) or "INFO"
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    console: bool = True,
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 3,
    use_colors: Optional[bool] = None,
) -> logging.Logger:
    """
    Configure the ``showcase`` logger tree.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_level: Level name; falls back to SHOWCASE_LOG_LEVEL, then INFO
        log_file: Rotating log file receiving everything down to DEBUG
        console: Attach a stdout handler at *log_level*
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files kept next to *log_file*
        use_colors: Force console colors on or off (None detects a tty)

    Returns:
        The ``showcase`` logger
    """
    level = resolve_level(log_level)
    logger = logging.getLogger(ROOT_LOGGER)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(ShowcaseFormatter(colors=use_colors))
        logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    # The file keeps DEBUG even when the console is quieter
    logger.setLevel(logging.DEBUG if log_file else level)
    logger.info("[Logging] Showcase logging ready (level=%s, file=%s)",
                logging.getLevelName(level), log_file or "-")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a Showcase module.

    Names outside the ``showcase`` tree (scripts, ``__main__``) are nested
    under it so setup_logging() still reaches them.
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def set_log_level(level: str) -> None:
    """Change the level of the ``showcase`` logger and its console handlers."""
    numeric = resolve_level(level)
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(numeric)
    for handler in logger.handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(numeric)
    logger.info("[Logging] Level changed to %s", logging.getLevelName(numeric))


def disable_external_logging() -> None:
    """Quiet Pillow's plugin loggers and Qt's platform/multimedia categories."""
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    os.environ.setdefault("QT_LOGGING_RULES", QT_LOGGING_RULES)
