"""Public API for Chronicle configuration."""

from .loader import load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    ChronicleSettings,
    LimitsSettings,
    LoggingSettings,
    MonitoringSettings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ChronicleSettings",
    "LimitsSettings",
    "LoggingSettings",
    "MonitoringSettings",
    "load_settings",
]
