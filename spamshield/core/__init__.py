"""
SpamShield - Core Package
=========================

Configuration, constants and logging shared by every other package.

DESIGN:
    - get_config() returns the same Config instance
    - logger is a global TreeLogger instance
"""

from .config import (
    AntiSpamConfig,
    Config,
    ConfigValidationError,
    get_config,
    has_command_permission,
)

from .constants import EmbedColors, LOCAL_TZ

from .logger import logger, TreeLogger


__all__ = [
    # Config
    "AntiSpamConfig",
    "Config",
    "ConfigValidationError",
    "get_config",
    "has_command_permission",
    # Constants
    "EmbedColors",
    "LOCAL_TZ",
    # Logger
    "logger",
    "TreeLogger",
]
