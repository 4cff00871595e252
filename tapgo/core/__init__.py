"""
Core module initialization.
Exports configuration, logging and error utilities.
"""

from tapgo.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from tapgo.core.exceptions import (
    TapGoError,
    ValidationError,
    NotFoundError,
    StoreError,
    InsertionError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "TapGoError",
    "ValidationError",
    "NotFoundError",
    "StoreError",
    "InsertionError",
]
