"""In-memory deduplication keyed by exact text."""

from __future__ import annotations

from typing import Iterator


class DeduplicationStore:
    """Insertion-ordered set remembering which source contributed each key first.

    Instances are owned by a single coordinating thread and are not locked.
    """

    def __init__(self) -> None:
        self._origins: dict[str, str] = {}

    def check_and_store(self, key: str, source: str) -> bool:
        """Store ``key`` and return ``True`` if it was not seen before."""

        if key in self._origins:
            return False
        self._origins[key] = source
        return True

    def origin(self, key: str) -> str | None:
        return self._origins.get(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._origins)

    def __len__(self) -> int:
        return len(self._origins)


__all__ = ["DeduplicationStore"]
