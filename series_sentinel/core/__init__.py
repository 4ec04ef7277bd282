"""
Core module: Configuration, logging, and exception handling.
"""

from .config import AlertConfig, Config, SelectionCriterion, config
from .exceptions import (
    ConfigurationError,
    DataQualityWarning,
    DataValidationError,
    IngestionError,
    MissingCurrentDataWarning,
    ModelFitError,
    RepositoryError,
    SentinelError,
)
from .logging_config import setup_logging

__all__ = [
    "AlertConfig",
    "Config",
    "SelectionCriterion",
    "config",
    "setup_logging",
    "SentinelError",
    "DataValidationError",
    "ModelFitError",
    "RepositoryError",
    "IngestionError",
    "ConfigurationError",
    "DataQualityWarning",
    "MissingCurrentDataWarning",
]
