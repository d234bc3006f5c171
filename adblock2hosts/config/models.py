"""Pydantic models describing a conversion run."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_SOURCES = [
    "https://raw.githubusercontent.com/hagezi/dns-blocklists/main/adblock/pro.mini.txt",
    "https://raw.githubusercontent.com/hagezi/dns-blocklists/main/adblock/tif.mini.txt",
]
DEFAULT_HOMEPAGE = "https://github.com/eugenescodes/adblock2mikrotik"
DEFAULT_LICENSE = "https://github.com/eugenescodes/adblock2mikrotik/blob/main/LICENSE"
DEFAULT_TITLE = (
    "This filter compiled from trusted, verified sources and optimized for "
    "compatibility with DNS-level ad blocking by merging and simplifying multiple filters"
)


class ScheduleType(str, Enum):
    """Scheduler modes for periodic regeneration."""

    CRON = "cron"
    INTERVAL = "interval"


class ScheduleConfig(BaseModel):
    """When ``watch`` should regenerate the hosts file."""

    type: ScheduleType = Field(default=ScheduleType.CRON)
    value: Any = Field(
        default="0 */6 * * *",
        description="Cron expression, or interval seconds / kwargs dict.",
    )

    @model_validator(mode="after")
    def _validate_value(self) -> "ScheduleConfig":
        if self.type is ScheduleType.CRON and not isinstance(self.value, str):
            raise ValueError("Cron schedule requires string expression")
        if self.type is ScheduleType.INTERVAL:
            if isinstance(self.value, bool) or not isinstance(self.value, (int, float, dict)):
                raise ValueError("Interval schedule requires seconds (int/float) or kwargs dict")
        return self


class ReportConfig(BaseModel):
    """Banner lines written at the top of the hosts file.

    Set ``homepage`` or ``license`` to ``null`` to leave that line out.
    """

    title: str = DEFAULT_TITLE
    homepage: str | None = DEFAULT_HOMEPAGE
    license: str | None = DEFAULT_LICENSE

    @field_validator("title", "homepage", "license")
    @classmethod
    def _single_line(cls, value: str | None) -> str | None:
        if value is not None and ("\n" in value or "\r" in value):
            raise ValueError("Report banner values must be single-line")
        return value


class GlobalConfig(BaseModel):
    """Settings for one conversion run."""

    sources: list[str] = Field(default_factory=lambda: list(DEFAULT_SOURCES))
    output_path: Path = Field(default=Path("hosts.txt"))
    request_timeout: float = 10.0
    thread_pool_workers: int = 8
    user_agent: str | None = None
    progress_log_interval: int = 1000
    report: ReportConfig = Field(default_factory=ReportConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)

    @field_validator("sources", mode="before")
    @classmethod
    def _coerce_sources(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise ValueError("sources expects a list of URLs")
        seen: set[str] = set()
        sources: list[str] = []
        for item in value:
            url = str(item).strip()
            if not url:
                raise ValueError("source URL cannot be blank")
            parsed = urlparse(url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError(f"source must be an http(s) URL: {url}")
            if url not in seen:
                seen.add(url)
                sources.append(url)
        return sources

    @field_validator("output_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    @model_validator(mode="after")
    def _validate_limits(self) -> "GlobalConfig":
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        if self.thread_pool_workers < 1:
            raise ValueError("thread_pool_workers must be >= 1")
        if self.progress_log_interval < 1:
            raise ValueError("progress_log_interval must be >= 1")
        return self


__all__ = [
    "DEFAULT_HOMEPAGE",
    "DEFAULT_LICENSE",
    "DEFAULT_SOURCES",
    "DEFAULT_TITLE",
    "GlobalConfig",
    "ReportConfig",
    "ScheduleConfig",
    "ScheduleType",
]
