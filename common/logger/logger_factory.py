# common/logger/logger_factory.py

"""
Factory returning named logger instances.
"""

from enum import Enum
from typing import Dict, Optional

from .logger_interface import LoggerInterface, LogLevel
from .print_logger import PrintLogger
from .standard_logger import StandardLogger


class LoggerType(Enum):
    """Available logger implementations"""

    STANDARD = "standard"
    PRINT = "print"


class LoggerFactory:
    """Creates loggers and caches them by name"""

    _loggers: Dict[str, LoggerInterface] = {}

    @classmethod
    def get_logger(
        cls,
        name: str,
        logger_type: LoggerType = LoggerType.STANDARD,
        level: LogLevel = LogLevel.INFO,
        console_level: Optional[LogLevel] = None,
        file_level: Optional[LogLevel] = None,
        log_file: Optional[str] = None,
        use_colors: bool = True,
    ) -> LoggerInterface:
        """
        Get a cached logger or create a new one.

        Args:
            name: Logger name, also the cache key
            logger_type: Implementation to use
            level: Default level
            console_level: Console handler level (defaults to level)
            file_level: File handler level (defaults to level)
            log_file: Optional path of a rotating log file
            use_colors: Colorize console output

        Returns:
            LoggerInterface instance
        """
        if name in cls._loggers:
            return cls._loggers[name]

        logger = cls.create_logger(
            name=name,
            logger_type=logger_type,
            level=level,
            console_level=console_level,
            file_level=file_level,
            log_file=log_file,
            use_colors=use_colors,
        )
        cls._loggers[name] = logger
        return logger

    @classmethod
    def create_logger(
        cls,
        name: str,
        logger_type: LoggerType = LoggerType.STANDARD,
        level: LogLevel = LogLevel.INFO,
        console_level: Optional[LogLevel] = None,
        file_level: Optional[LogLevel] = None,
        log_file: Optional[str] = None,
        use_colors: bool = True,
    ) -> LoggerInterface:
        """Create a new, uncached logger"""
        if logger_type == LoggerType.STANDARD:
            return StandardLogger(
                name=name,
                level=level,
                console_level=console_level,
                file_level=file_level,
                log_file=log_file,
                use_colors=use_colors,
            )
        if logger_type == LoggerType.PRINT:
            return PrintLogger(name=name, level=level)
        raise ValueError(f"Unknown logger type: {logger_type}")

    @classmethod
    def clear(cls) -> None:
        """Drop all cached loggers"""
        cls._loggers.clear()
