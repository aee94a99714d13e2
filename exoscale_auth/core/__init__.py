"""Core module initialization."""

from .config_manager import ConfigManager, ExoscaleConfig
from .logging_config import setup_logging

__all__ = [
    "ConfigManager",
    "ExoscaleConfig",
    "setup_logging",
]
