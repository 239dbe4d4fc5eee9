"""Thread-safe set of raw image references shared by the extractors."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator


class ReferenceSet:
    """Duplicate-free collection of raw reference strings.

    Both extractors insert into the same instance, possibly from worker
    threads; iteration works on a sorted snapshot so the validator can drain
    the set while producers are still running.
    """

    def __init__(self, references: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._references: set[str] = set(references)

    def add(self, reference: str) -> bool:
        """Insert ``reference``; return ``True`` if it was not present yet."""
        with self._lock:
            if reference in self._references:
                return False
            self._references.add(reference)
            return True

    def update(self, references: Iterable[str]) -> int:
        """Insert every reference and return how many were new."""
        added = 0
        for reference in references:
            if self.add(reference):
                added += 1
        return added

    def snapshot(self) -> list[str]:
        with self._lock:
            return sorted(self._references)

    def __contains__(self, reference: object) -> bool:
        with self._lock:
            return reference in self._references

    def __len__(self) -> int:
        with self._lock:
            return len(self._references)

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"ReferenceSet({self.snapshot()!r})"
