"""Exporter SPI and implementations."""

from .base import BaseExporter
from .hosts_exporter import HostsFileExporter, format_timestamp, render_header, write_report

__all__ = [
    "BaseExporter",
    "HostsFileExporter",
    "format_timestamp",
    "render_header",
    "write_report",
]
