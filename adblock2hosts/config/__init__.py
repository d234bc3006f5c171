"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    DEFAULT_SOURCES,
    GlobalConfig,
    ReportConfig,
    ScheduleConfig,
    ScheduleType,
)

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_SOURCES",
    "GlobalConfig",
    "ReportConfig",
    "ScheduleConfig",
    "ScheduleType",
]
