"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, Union

# Mapping table keys: (category, start, end) for positional entries,
# (category, BEST) once best-match reduction has collapsed a category.
BEST = "best"
PositionKey = tuple[str, int, int]
BestKey = tuple[str, str]
MappingKey = Union[PositionKey, BestKey]


@dataclass(frozen=True, slots=True)
class Span:
    """A single detected entity position."""
    category: str          # e.g. "PERSON", "PHONE_NUMBER"
    start: int
    end: int
    score: float           # 0.0–1.0 confidence

    @property
    def length(self) -> int:
        return self.end - self.start

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Span":
        """Build from an analyzer result (``entity_type``/``start``/``end``/``score``)."""
        return cls(
            category=data["entity_type"],
            start=int(data["start"]),
            end=int(data["end"]),
            score=float(data.get("score", 0.0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_type": self.category,
            "start": self.start,
            "end": self.end,
            "score": self.score,
        }


@dataclass(frozen=True, slots=True)
class AppliedItem:
    """One replacement the anonymizer reports having made."""
    category: str
    start: int = 0
    end: int = 0
    text: str | None = None       # value written into the anonymized text
    operator: str | None = None   # "replace" | "mask" | "hash" | ...

    @property
    def literal(self) -> str | None:
        """The placeholder string, if this item was a literal replacement."""
        if self.operator not in (None, "replace"):
            return None
        return self.text or None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AppliedItem":
        return cls(
            category=data["entity_type"],
            start=int(data.get("start", 0)),
            end=int(data.get("end", 0)),
            text=data.get("text"),
            operator=data.get("operator"),
        )


@dataclass(slots=True)
class AnonymizerResponse:
    """Result returned by the anonymizer collaborator."""
    text: str
    items: list[AppliedItem] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class MappingEntry:
    """A confirmed original ↔ anonymized pairing."""
    original_value: str
    anonymized_value: str
    category: str
    start: int
    end: int

    @property
    def key(self) -> PositionKey:
        return (self.category, self.start, self.end)

    def to_dict(self) -> dict[str, Any]:
        return {
            "original": self.original_value,
            "anonymized": self.anonymized_value,
            "entity_type": self.category,
            "start": self.start,
            "end": self.end,
        }


@dataclass(slots=True)
class AnonymizeResult:
    """Result of anonymizing a piece of text."""
    anonymized_text: str
    entities_found: bool = False
    entities: list[MappingEntry] = field(default_factory=list)


class Detector(Protocol):
    """Anything that can turn text into detected spans."""

    def analyze(self, text: str) -> list[Span]: ...


class Anonymizer(Protocol):
    """Anything that can replace detected spans in text."""

    def anonymize(
        self,
        text: str,
        spans: list[Span],
        transforms: Mapping[str, Any],
    ) -> AnonymizerResponse: ...
