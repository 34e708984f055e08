"""Core module initialization."""

from .config_manager import ConfigManager, LocalCosmosConfig, LoggingConfig, QueryConfig
from .logging_config import setup_logging, get_logger

__all__ = [
    "ConfigManager",
    "LocalCosmosConfig",
    "LoggingConfig",
    "QueryConfig",
    "setup_logging",
    "get_logger",
]
