"""Core module initialization."""

from .config_manager import ConfigManager, LocalGSMConfig
from .logging_config import setup_logging, get_logger

__all__ = [
    "ConfigManager",
    "LocalGSMConfig",
    "setup_logging",
    "get_logger",
]
