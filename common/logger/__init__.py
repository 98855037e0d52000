# common/logger/__init__.py

"""Named loggers: colored console output with optional rotating file output."""

from .logger_factory import LoggerFactory, LoggerType
from .logger_interface import LoggerInterface, LogLevel
from .print_logger import PrintLogger
from .standard_logger import StandardLogger

__all__ = [
    "LoggerInterface",
    "LogLevel",
    "StandardLogger",
    "PrintLogger",
    "LoggerFactory",
    "LoggerType",
]
