"""Custom exceptions for configuration management."""


class ConfigError(Exception):
    """Raised when gallery configuration cannot be loaded or validated."""
