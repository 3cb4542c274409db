"""Detection result normalizer.

Analyzers happily report the same entity several times: once per
recognizer, once for the surname alone and once for the full name, and so
on.  ``normalize_spans`` collapses exact duplicates and ranks what is left,
so the reconciler sees each position once.
"""

from __future__ import annotations
from collections import defaultdict
from typing import Iterable

from .types import Span


def rank_key(span: Span) -> tuple[int, float]:
    """Sort key: longer spans first, then higher confidence."""
    return (-span.length, -span.score)


def normalize_spans(spans: Iterable[Span]) -> list[Span]:
    """Group by category, rank, and keep the first span seen per position.

    Overlapping but non-identical spans (``[0,5)`` vs ``[0,8)``) are both
    kept; only best-match reduction collapses those, and only for the
    categories it is configured for.
    """
    groups: dict[str, list[Span]] = defaultdict(list)
    for span in spans:
        groups[span.category].append(span)

    seen: set[tuple[str, int, int]] = set()
    out: list[Span] = []
    for category, candidates in groups.items():
        for span in sorted(candidates, key=rank_key):
            key = (category, span.start, span.end)
            if key in seen:
                continue
            seen.add(key)
            out.append(span)
    return out
