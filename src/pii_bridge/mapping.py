"""MappingTable — session-scoped original ↔ placeholder store.

One table holds the entries of the most recent anonymization.  It is
rebuilt by every ``AnonymizerService.anonymize`` call, so it must have a
single writer at a time; give each concurrent caller its own table.
"""

from __future__ import annotations
from typing import Iterator

from .types import BEST, MappingEntry, MappingKey


class MappingTable:
    """Keyed collection of MappingEntry, with inverse substitution."""

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[MappingKey, MappingEntry] = {}

    # ------------------------------------------------------------------
    # Core API
    # ------------------------------------------------------------------

    def put(self, entry: MappingEntry, key: MappingKey | None = None) -> None:
        """Insert (or overwrite) an entry under its positional key."""
        self._entries[key if key is not None else entry.key] = entry

    def get(self, key: MappingKey) -> MappingEntry | None:
        return self._entries.get(key)

    def by_category(self, category: str) -> list[MappingEntry]:
        return [e for k, e in self._entries.items() if k[0] == category]

    def collapse(self, category: str, winner: MappingEntry) -> None:
        """Replace every entry of ``category`` with ``winner`` under the best key."""
        for key in [k for k in self._entries if k[0] == category]:
            del self._entries[key]
        self._entries[(category, BEST)] = winner

    def restore(self, text: str) -> str:
        """Replace every placeholder in text with its original value."""
        if not self._entries:
            return text
        result = text
        # Longest placeholders first so "[PERSON]" can't eat into "[PERSONAL]"
        for entry in sorted(self._entries.values(),
                            key=lambda e: len(e.anonymized_value), reverse=True):
            if entry.anonymized_value in result:
                result = result.replace(entry.anonymized_value, entry.original_value)
        return result

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[MappingEntry]:
        return iter(list(self._entries.values()))

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def keys(self) -> list[MappingKey]:
        return list(self._entries)

    def entries(self) -> list[MappingEntry]:
        """Snapshot of the current entries."""
        return list(self._entries.values())

    def dump(self) -> dict[str, str]:
        """Return a placeholder→original mapping (for debugging)."""
        return {e.anonymized_value: e.original_value for e in self._entries.values()}

    def clear(self) -> None:
        self._entries.clear()
