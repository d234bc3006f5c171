"""Exporter contract for converted entries."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ..converter import ConvertedEntry


class BaseExporter(ABC):
    """Uniform exporter contract for hosts entries."""

    @abstractmethod
    def export(self, entry: ConvertedEntry) -> None:
        """Persist a single entry."""

    def export_many(self, entries: Iterable[ConvertedEntry]) -> None:
        for entry in entries:
            self.export(entry)

    @abstractmethod
    def flush(self) -> None:
        """Flush buffered data to destination."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseExporter"]
