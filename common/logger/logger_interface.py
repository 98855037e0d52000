# common/logger/logger_interface.py

"""
Logger contract shared by every logger implementation.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class LogLevel(Enum):
    """Supported log levels"""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def to_logging_level(self) -> int:
        """Map to the numeric level used by the logging module"""
        return getattr(logging, self.value)

    @classmethod
    def from_string(cls, value: str) -> "LogLevel":
        """Parse a level name, case-insensitively"""
        try:
            return cls(value.upper())
        except ValueError:
            raise ValueError(f"Unknown log level: {value}")


class LoggerInterface(ABC):
    """Abstract interface for loggers"""

    def __init__(self, name: str, level: LogLevel = LogLevel.INFO):
        self.name = name
        self.level = level

    @abstractmethod
    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def critical(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def exception(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log an error together with the active exception traceback"""
        pass

    @abstractmethod
    def set_level(self, level: LogLevel) -> None:
        pass
