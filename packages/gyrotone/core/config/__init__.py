"""Configuration management for Gyrotone."""

from gyrotone.core.config.loader import (
    apply_logging_config,
    detect_format,
    load_app_config,
    load_config,
)
from gyrotone.core.config.models import (
    AppConfig,
    GeometryConfig,
    LayerConfig,
    LoggingConfig,
    TriggerConfig,
)

__all__ = [
    # Loaders
    "apply_logging_config",
    "detect_format",
    "load_app_config",
    "load_config",
    # Models
    "AppConfig",
    "GeometryConfig",
    "LayerConfig",
    "LoggingConfig",
    "TriggerConfig",
]
