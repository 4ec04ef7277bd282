"""
Custom exceptions for Series Sentinel.

These exceptions provide clear error semantics across the system.
Per-series problems (too little history, no valid model) are recoverable and
are recorded against the series key; repository failures abort the request.
"""


class SentinelError(Exception):
    """Base exception for anomaly evaluation failures."""
    pass


class DataValidationError(SentinelError):
    """Raised when a series has fewer clean observations than required."""
    pass


class ModelFitError(SentinelError):
    """Raised when no ARIMA candidate yields a usable model."""
    pass


class RepositoryError(SentinelError):
    """Raised when historical or current data cannot be obtained at all."""
    pass


class IngestionError(SentinelError):
    """Raised when a record file cannot be read."""
    pass


class ConfigurationError(SentinelError):
    """Raised when configuration is invalid or missing."""
    pass


class DataQualityWarning(UserWarning):
    """Duplicate current observations were averaged into one value."""


class MissingCurrentDataWarning(UserWarning):
    """Series had history but no observation for the evaluated period."""
