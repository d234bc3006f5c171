"""Hosts file writer with a provenance header."""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from ...config import ReportConfig
from ..converter import ADDRESS, ConvertedEntry
from .base import BaseExporter

if TYPE_CHECKING:
    from ...orchestrator import RunResult


def format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="seconds")


def render_header(
    result: "RunResult", generated_at: datetime, report: ReportConfig | None = None
) -> str:
    """Build the ``#``-prefixed header block preceding the data lines."""

    report = report or ReportConfig()
    lines = [f"# Title: {report.title}", "#"]
    if report.homepage or report.license:
        if report.homepage:
            lines.append(f"# Homepage: {report.homepage}")
        if report.license:
            lines.append(f"# License: {report.license}")
        lines.append("#")
    lines.append(f"# Last modified: {format_timestamp(generated_at)}")
    lines.append("#")
    lines.append(f"# Convert to format: {ADDRESS} domain.tld")
    for stat in result.stats:
        lines.append("#")
        lines.append(f"# Source: {stat.source}")
        if stat.ok:
            lines.append(f"# Successfully fetched {stat.fetched_count} domains")
        else:
            lines.append(f"# Failed to fetch: {stat.error}")
    lines.append("#")
    lines.append(f"# Total unique raw rules: {result.unique_raw_count}")
    lines.append(f"# Total unique converted rules: {result.unique_converted_count}")
    return "\n".join(lines) + "\n\n"


class HostsFileExporter(BaseExporter):
    """Write entries to a temporary sibling file and move it into place on close.

    Until :meth:`close` succeeds the destination is untouched; :meth:`abort`
    discards everything written so far.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="\n",
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            delete=False,
        )
        self._tmp_path = Path(self._file.name)
        self._counter = 0
        self._closed = False

    @property
    def count(self) -> int:
        return self._counter

    def write_header(self, header: str) -> None:
        self._file.write(header)

    def export(self, entry: ConvertedEntry) -> None:
        self._file.write(entry.line)
        self._file.write("\n")
        self._counter += 1

    def flush(self) -> None:
        self._file.flush()
        os.fsync(self._file.fileno())

    def close(self) -> None:
        if self._closed:
            return
        self.flush()
        self._file.close()
        self._closed = True
        os.replace(self._tmp_path, self.path)

    def abort(self) -> None:
        if not self._closed:
            self._closed = True
            try:
                self._file.close()
            finally:
                self._tmp_path.unlink(missing_ok=True)
        else:
            self._tmp_path.unlink(missing_ok=True)


def write_report(
    result: "RunResult",
    destination: Path,
    report: ReportConfig | None = None,
    generated_at: datetime | None = None,
    logger: structlog.BoundLogger | None = None,
) -> Path:
    """Write header and entries of ``result`` to ``destination``.

    Raises ``OSError`` when the artifact cannot be produced; a partially
    written temporary file is removed before the error propagates.
    """

    log = logger or structlog.get_logger("adblock2hosts.report")
    moment = generated_at or datetime.now(timezone.utc)
    exporter = HostsFileExporter(Path(destination))
    try:
        exporter.write_header(render_header(result, moment, report))
        exporter.export_many(result.entries)
        exporter.close()
    except OSError:
        exporter.abort()
        log.error("report_write_failed", path=str(destination))
        raise
    log.info("report_written", path=str(exporter.path), entries=exporter.count)
    return exporter.path


__all__ = ["HostsFileExporter", "format_timestamp", "render_header", "write_report"]
