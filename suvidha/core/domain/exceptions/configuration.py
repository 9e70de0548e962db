"""Configuration-related exceptions."""

from .base import SuvidhaError


class ConfigurationError(SuvidhaError):
    """Configuration or environment variable errors."""

    error_code = "SUV_CFG_001"


class InvalidConfigurationError(ConfigurationError):
    """Configuration value is invalid (e.g. an unknown provider name)."""

    error_code = "SUV_CFG_002"
