"""Core module initialization."""

from .clock import Clock, FixedClock, SystemClock
from .config_manager import BlobAuthConfig, ConfigManager, parse_connection_string
from .logging_config import configure_logging, get_logger, setup_logging

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "BlobAuthConfig",
    "ConfigManager",
    "parse_connection_string",
    "configure_logging",
    "setup_logging",
    "get_logger",
]
