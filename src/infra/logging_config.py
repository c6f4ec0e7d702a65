"""
Logging configuration module.

One console handler and one daily file per process, shared by the
application logger and every src.* module logger:

    <log_dir>/probe_control_YYYYMMDD_<START_HHMMSS>.log
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

LOGGER_NAME = "probe_control"
LOG_FILE_PREFIX = "probe_control"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Loggers that receive the shared handlers
ROUTED_LOGGERS = (LOGGER_NAME, "src")

# HHMMSS of the first handler created in this process
_PROCESS_START_TIME: Optional[str] = None


def _today() -> str:
    return datetime.now().strftime("%Y%m%d")


class DailyRotatingFileHandler(logging.FileHandler):
    """
    File handler that switches to a new file when the calendar day changes.

    The start-time suffix stays fixed for the life of the process so all
    files of one process sort together.
    """

    def __init__(
        self,
        log_dir: str = "logs",
        encoding: str = "utf-8",
        prefix: str = LOG_FILE_PREFIX,
    ):
        global _PROCESS_START_TIME
        if _PROCESS_START_TIME is None:
            _PROCESS_START_TIME = datetime.now().strftime("%H%M%S")

        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix
        self._start_hhmmss = _PROCESS_START_TIME
        self._current_date = _today()

        super().__init__(self._path_for(self._current_date), mode="a", encoding=encoding)

    def _path_for(self, date_str: str) -> str:
        return str(self.log_dir / f"{self.prefix}_{date_str}_{self._start_hhmmss}.log")

    def _rotate_if_needed(self) -> None:
        today = _today()
        if today == self._current_date:
            return
        self.close()
        self._current_date = today
        self.baseFilename = self._path_for(today)
        self.stream = self._open()

    def emit(self, record: logging.LogRecord) -> None:
        self._rotate_if_needed()
        super().emit(record)


def _attach(logger: logging.Logger, handlers: Iterable[logging.Handler], level: int) -> None:
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()
    for handler in handlers:
        logger.addHandler(handler)


def setup_logging(log_level: str = "INFO", log_dir: str = "logs") -> logging.Logger:
    """
    Configure console and daily-file logging.

    The application logger and the src.* module loggers share the
    same handlers and do not propagate to the root logger. Calling
    this again replaces the handlers instead of adding duplicates.

    Args:
        log_level (str): DEBUG, INFO, WARNING, ERROR or CRITICAL
            (unknown names fall back to INFO)
        log_dir (str): Directory for daily log files

    Returns:
        logging.Logger: The application logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    file_handler = DailyRotatingFileHandler(log_dir=log_dir)
    for handler in (console_handler, file_handler):
        handler.setLevel(level)
        handler.setFormatter(formatter)

    for name in ROUTED_LOGGERS:
        _attach(logging.getLogger(name), (console_handler, file_handler), level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.info(f"Logging started - level: {log_level}, log file: {file_handler.baseFilename}")
    return logger
