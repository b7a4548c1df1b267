import json
import logging
import os
from typing import Optional

from concurrent_log_handler import ConcurrentRotatingFileHandler

from runemetrics.event_emitter import event_emitter

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

CONSOLE_LEVELS = {
    "dev": logging.DEBUG,
    "staging": logging.INFO,
    "prod": logging.WARNING,
}

# Library loggers that would otherwise flood the terminal under the dashboard.
QUIET_LOGGERS = {
    "aiohttp": logging.WARNING,
    "apscheduler": logging.WARNING,
    "tzlocal": logging.ERROR,
}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shipping in production."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _level(name: str) -> int:
    return getattr(logging, name.upper())


class RuneMetricsLogger:
    """Installs a console handler and a rotating log file on the root logger.

    Settings come from the environment: ``LOG_DIR``, ``LOG_LEVEL``,
    ``LOG_CONSOLE_LEVEL``, ``LOG_JSON_FORMAT``, ``LOG_FILE_MAX_BYTES`` and
    ``LOG_FILE_BACKUP_COUNT``.
    """

    def __init__(
        self,
        log_dir: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.log_dir = log_dir or os.getenv("LOG_DIR", "./logs")
        self.log_level = _level(log_level or os.getenv("LOG_LEVEL", "INFO"))
        self.environment = environment or os.getenv("ENVIRONMENT", "prod")

        json_logs = os.getenv("LOG_JSON_FORMAT", "false").lower() == "true"
        if json_logs and self.environment == "prod":
            self.formatter: logging.Formatter = JSONFormatter()
        else:
            self.formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

        self.console_handler = logging.StreamHandler()
        self.file_handler = self._create_file_handler()
        self.configure_logging()

        event_emitter.on("shutdown", self.cleanup, priority=100)

    @property
    def log_file(self) -> str:
        return os.path.join(self.log_dir, f"runemetrics_{self.environment}.log")

    def _create_file_handler(self) -> ConcurrentRotatingFileHandler:
        os.makedirs(self.log_dir, exist_ok=True)

        return ConcurrentRotatingFileHandler(
            self.log_file,
            maxBytes=int(os.getenv("LOG_FILE_MAX_BYTES", 5_000_000)),
            backupCount=int(os.getenv("LOG_FILE_BACKUP_COUNT", 5)),
        )

    def configure_logging(self) -> None:
        # console output goes to stderr, stdout belongs to the dashboard
        console_level = os.getenv("LOG_CONSOLE_LEVEL")
        self.console_handler.setLevel(
            _level(console_level)
            if console_level
            else CONSOLE_LEVELS.get(self.environment, logging.WARNING)
        )
        self.console_handler.setFormatter(self.formatter)

        self.file_handler.setFormatter(self.formatter)

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.addHandler(self.console_handler)
        root_logger.addHandler(self.file_handler)
        self.set_level(logging.getLevelName(self.log_level))

        for name, level in QUIET_LOGGERS.items():
            logging.getLogger(name).setLevel(level)

        logging.getLogger(__name__).info(
            f"Logging to {self.log_file} at {logging.getLevelName(self.log_level)}"
        )

    def set_level(self, level: str) -> None:
        """Override the root and file level, e.g. from the command line."""
        self.log_level = _level(level)
        logging.getLogger().setLevel(self.log_level)
        self.file_handler.setLevel(self.log_level)

    async def cleanup(self) -> None:
        logging.getLogger(__name__).info("Closing log file")
        self.file_handler.close()


LOGGER = RuneMetricsLogger()
