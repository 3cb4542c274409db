"""Best-match reduction policies and fragment filters.

A policy marks a category as "one occurrence per session": when more than
one entry of that category survives reconciliation, only the best one is
kept.  "Best" means preferred first, then longest original text, then
earliest position.

Adding a category is a table edit:

    policies = {**DEFAULT_POLICIES, "EMAIL_ADDRESS": BestMatchPolicy(lambda v: "." in v)}
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping

from .types import MappingEntry


def _never(value: str) -> bool:
    return False


@dataclass(frozen=True, slots=True)
class BestMatchPolicy:
    """Tie-break for one category."""
    prefer: Callable[[str], bool] = _never

    def sort_key(self, entry: MappingEntry) -> tuple[bool, int, int, int]:
        value = entry.original_value
        return (self.prefer(value), len(value), -entry.start, -entry.end)

    def select(self, entries: Iterable[MappingEntry]) -> MappingEntry:
        return max(entries, key=self.sort_key)


def _has_plus(value: str) -> bool:
    return "+" in value


def _has_space(value: str) -> bool:
    return " " in value


DEFAULT_POLICIES: dict[str, BestMatchPolicy] = {
    # international prefix beats a local number
    "PHONE_NUMBER": BestMatchPolicy(_has_plus),
    # multi-token full name beats a lone surname
    "PERSON": BestMatchPolicy(_has_space),
}

# Entries shorter than this are dropped as fragments.
DEFAULT_MIN_LENGTHS: dict[str, int] = {
    "PERSON": 3,
}


def policies_for(categories: Iterable[str]) -> dict[str, BestMatchPolicy]:
    """Policies for the named categories; unknown ones get plain longest-wins."""
    return {c: DEFAULT_POLICIES.get(c, BestMatchPolicy()) for c in categories}


def too_short(entry: MappingEntry, min_lengths: Mapping[str, int]) -> bool:
    return len(entry.original_value) < min_lengths.get(entry.category, 0)
