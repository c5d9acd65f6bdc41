import logging
import sys
from typing import Dict, Optional, TextIO, Union

from tqdm import tqdm

Level = Union[str, int]

DEFAULT_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"


class LogWithTqdm(logging.Handler):
    """
    Routes log records through `tqdm.write()`.

    A batch extraction keeps a progress bar on stderr; a plain StreamHandler
    would print through the bar and leave half-drawn lines behind.
    """

    def __init__(self, stream: Optional[TextIO] = None, level: int = logging.NOTSET):
        super().__init__(level)
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream or sys.stderr)
        except Exception:
            self.handleError(record)


def _to_level(level: Optional[Level], fallback: int) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        return getattr(logging, level.upper(), fallback)
    return fallback


def configure_logger(
        general_level: Level = 'INFO',
        module_specific_levels: Optional[Dict[str, Level]] = None,
        silenced_loggers: Optional[Dict[str, Level]] = None,
) -> None:
    """
    Installs a single tqdm-aware handler on the root logger.

    Called once per CLI run with the `debug.level` setting; calling it again
    replaces the handler instead of stacking a second one.

    Args:
        general_level: Level of the root logger ('DEBUG', 'INFO', ... or an int).
        module_specific_levels: Per-logger overrides, e.g. {'aid_extractor.dom.builder': 'DEBUG'}.
        silenced_loggers: Loggers to muzzle; unknown level names fall back to CRITICAL.
    """
    handler = LogWithTqdm()
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(_to_level(general_level, logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name, level in (module_specific_levels or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.INFO))

    for name, level in (silenced_loggers or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.CRITICAL))
