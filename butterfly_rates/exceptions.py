"""
Custom exceptions for the butterfly rates package.

The pricing core never raises for missing market data; these exceptions are
only used at the configuration and snapshot boundaries.
"""

from typing import Any


class ButterflyRatesError(Exception):
    """Base exception for all butterfly-rates errors."""

    pass


class ConfigError(ButterflyRatesError):
    """Exception raised when a configuration value is invalid."""

    def __init__(self, field_name: str, value: Any, reason: str = "") -> None:
        self.field_name = field_name
        self.value = value
        message = f"Invalid configuration '{field_name}': {value!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SnapshotError(ButterflyRatesError):
    """Exception raised when a chain snapshot cannot be read or parsed."""

    def __init__(self, source: str, details: str = "") -> None:
        self.source = source
        message = f"Unusable chain snapshot from {source}"
        if details:
            message += f": {details}"
        super().__init__(message)
