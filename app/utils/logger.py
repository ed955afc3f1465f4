import json
import logging
import sys
from datetime import datetime
from enum import Enum
from typing import Any, Optional

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"


class Colors:
    """ANSI color codes for console output"""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    BRIGHT_BLACK = '\033[90m'
    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_CYAN = '\033[96m'
    WHITE = '\033[37m'


_LEVEL_NUMBERS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.SUCCESS: SUCCESS,
}


class PivotFormatter(logging.Formatter):
    """Formats service records as `[time] [SERVICE/CONTEXT] [LEVEL] message | k=v`."""

    level_colors = {
        "DEBUG": Colors.BRIGHT_CYAN,
        "INFO": Colors.BRIGHT_BLUE,
        "WARNING": Colors.BRIGHT_YELLOW,
        "ERROR": Colors.BRIGHT_RED,
        "SUCCESS": Colors.BRIGHT_GREEN,
    }

    def __init__(self, enable_colors: bool = True):
        super().__init__()
        self.enable_colors = enable_colors

    def _colorize(self, text: str, color: str) -> str:
        if not self.enable_colors:
            return text
        return f"{color}{text}{Colors.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        service = getattr(record, "service", record.name)
        context = getattr(record, "context", None)
        if context:
            service = f"{service}/{context.upper()}"

        level_color = self.level_colors.get(record.levelname, Colors.WHITE)
        line = (
            f"{self._colorize(f'[{timestamp}]', Colors.DIM)} "
            f"{self._colorize(f'[{service}]', Colors.BRIGHT_BLACK)} "
            f"{self._colorize(f'[{record.levelname}]', level_color + Colors.BOLD)} "
            f"{record.getMessage()}"
        )

        extras = getattr(record, "extras", None)
        if extras:
            line += self._colorize(f" | {extras}", Colors.DIM)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class PivotLogger:
    """Service-scoped logger with a context tag and key=value extras."""

    def __init__(self, service_name: str = "PIVOT", enable_colors: bool = True):
        self.service_name = service_name.upper()
        self._logger = logging.getLogger(f"pivot.{service_name.lower()}")

        if not self._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(PivotFormatter(enable_colors=enable_colors and sys.stdout.isatty()))
            self._logger.addHandler(handler)
            self._logger.setLevel(logging.DEBUG)
            self._logger.propagate = False

    @staticmethod
    def _format_extras(kwargs: dict) -> str:
        extras = []
        for key, value in kwargs.items():
            if isinstance(value, (dict, list)):
                value_str = json.dumps(value, default=str, separators=(',', ':'))
                if len(value_str) > 100:
                    value_str = value_str[:100] + "..."
            else:
                value_str = str(value)
            extras.append(f"{key}={value_str}")
        return ", ".join(extras)

    def _log(self, level: LogLevel, message: str, context: Optional[str] = None,
             exc_info: bool = False, **kwargs: Any):
        self._logger.log(
            _LEVEL_NUMBERS[level],
            message,
            exc_info=exc_info,
            extra={
                "service": self.service_name,
                "context": context,
                "extras": self._format_extras(kwargs) if kwargs else "",
            },
        )

    def debug(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.DEBUG, message, context, **kwargs)

    def info(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.INFO, message, context, **kwargs)

    def warning(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.WARNING, message, context, **kwargs)

    def error(self, message: str, context: Optional[str] = None, exc_info: bool = False, **kwargs):
        self._log(LogLevel.ERROR, message, context, exc_info=exc_info, **kwargs)

    def success(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.SUCCESS, message, context, **kwargs)


auth_logger = PivotLogger("AUTH")
user_logger = PivotLogger("USER")
habit_logger = PivotLogger("HABIT")
urge_logger = PivotLogger("URGE")
stats_logger = PivotLogger("STATS")


def get_logger(service_name: str) -> PivotLogger:
    """Get a logger instance for a specific service"""
    return PivotLogger(service_name)
