"""Reconciliation — merge detections with anonymizer output into a MappingTable.

    spans  ──normalize──►  candidates
    items  ──resolve────►  category → placeholder
    both   ──────────────► MappingTable  ──best-match──►  one entry per
                                                          reduced category
"""

from __future__ import annotations
import logging
from typing import Iterable, Mapping

from .mapping import MappingTable
from .normalizer import normalize_spans
from .policies import DEFAULT_MIN_LENGTHS, DEFAULT_POLICIES, BestMatchPolicy, too_short
from .transforms import CATEGORY_PLACEHOLDERS, synthesize_placeholder
from .types import AppliedItem, MappingEntry, Span

logger = logging.getLogger(__name__)


def resolve_placeholders(
    items: Iterable[AppliedItem],
    static: Mapping[str, str] = CATEGORY_PLACEHOLDERS,
) -> dict[str, str]:
    """Work out which placeholder the anonymizer used for each category.

    An explicit literal on an item wins (first one per category).  Masked or
    hashed items carry no reusable literal, so those categories fall back to
    the static table and then to ``[CATEGORY]``.
    """
    resolved: dict[str, str] = {}
    literal_seen: set[str] = set()
    for item in items:
        category = item.category
        literal = item.literal
        if literal is not None:
            if category not in literal_seen:
                resolved[category] = literal
                literal_seen.add(category)
        elif category not in resolved:
            resolved[category] = static.get(category) or synthesize_placeholder(category)
    return resolved


def reconcile(
    table: MappingTable,
    text: str,
    spans: Iterable[Span],
    items: Iterable[AppliedItem],
    *,
    static_placeholders: Mapping[str, str] = CATEGORY_PLACEHOLDERS,
    policies: Mapping[str, BestMatchPolicy] = DEFAULT_POLICIES,
    min_lengths: Mapping[str, int] = DEFAULT_MIN_LENGTHS,
) -> MappingTable:
    """Populate ``table`` from detections and the anonymizer's applied items.

    Nothing is added when the anonymizer reports no items.  Span offsets
    are trusted to lie within ``text``.
    """
    items = list(items)
    if not items:
        return table

    placeholders = resolve_placeholders(items, static_placeholders)

    for span in normalize_spans(spans):
        original = text[span.start:span.end]
        anonymized = (
            placeholders.get(span.category)
            or static_placeholders.get(span.category)
            or synthesize_placeholder(span.category)
        )
        entry = MappingEntry(
            original_value=original,
            anonymized_value=anonymized,
            category=span.category,
            start=span.start,
            end=span.end,
        )
        if too_short(entry, min_lengths):
            logger.debug("Skipping %s fragment %r", entry.category, original)
            continue
        table.put(entry)
        logger.debug("Mapped %r -> %s", original, anonymized)

    for category, policy in policies.items():
        reduce_category(table, category, policy)

    return table


def reduce_category(table: MappingTable, category: str, policy: BestMatchPolicy) -> MappingEntry | None:
    """Collapse all entries of a category to the single best one."""
    entries = table.by_category(category)
    if len(entries) <= 1:
        return entries[0] if entries else None
    best = policy.select(entries)
    table.collapse(category, best)
    logger.debug("Selected best %s: %r -> %s", category, best.original_value, best.anonymized_value)
    return best
