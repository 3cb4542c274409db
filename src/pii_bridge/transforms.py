"""Per-category anonymizer transforms.

Three kinds, matching Presidio's operators:

    Replace("[PERSON]")         → literal placeholder
    Mask("*", 5, from_end=False) → partial masking
    Hash("sha256")              → irreversible hashing

Only ``Replace`` produces a placeholder the mapping engine can restore from,
so ``CATEGORY_PLACEHOLDERS`` is derived from the replace entries.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Mapping, Union

from .exceptions import ConfigError

DEFAULT_KEY = "DEFAULT"


@dataclass(frozen=True, slots=True)
class Replace:
    new_value: str

    def to_operator(self) -> dict[str, Any]:
        return {"type": "replace", "new_value": self.new_value}


@dataclass(frozen=True, slots=True)
class Mask:
    masking_char: str
    chars_to_mask: int
    from_end: bool = True

    def to_operator(self) -> dict[str, Any]:
        return {
            "type": "mask",
            "masking_char": self.masking_char,
            "chars_to_mask": self.chars_to_mask,
            "from_end": self.from_end,
        }


@dataclass(frozen=True, slots=True)
class Hash:
    hash_type: str = "sha256"

    def to_operator(self) -> dict[str, Any]:
        return {"type": "hash", "hash_type": self.hash_type}


Transform = Union[Replace, Mask, Hash]


DEFAULT_TRANSFORMS: dict[str, Transform] = {
    "PHONE_NUMBER": Replace("[PHONE]"),
    "NAME": Replace("[PERSON]"),
    "PERSON": Replace("[PERSON]"),
    "EMAIL_ADDRESS": Mask("*", 5, from_end=False),
    "LOCATION": Replace("[LOCATION]"),
    "ORGANIZATION": Replace("[ORGANIZATION]"),
    "US_SSN": Mask("#", 5),
    "US_DRIVER_LICENSE": Mask("#", 4),
    "CREDIT_CARD": Mask("*", 12),
    "DATE_TIME": Replace("[DATE_TIME]"),
    "NRP": Replace("[NRP]"),
    "US_BANK_ACCOUNT": Mask("#", 8),
    "US_ITIN": Mask("#", 5),
    "US_PASSPORT": Mask("#", 5),
    "UK_NHS": Mask("#", 6),
    "IP_ADDRESS": Mask("0", 6),
    "IBAN_CODE": Mask("#", 10),
    "CRYPTO": Mask("*", 10),
    "URL": Replace("[URL]"),
    "MEDICAL_LICENSE": Mask("#", 5),
    "MEDICAL_RECORD": Mask("#", 5),
    "AGE": Replace("[AGE]"),
    "ADDRESS": Replace("[ADDRESS]"),
    DEFAULT_KEY: Hash("sha256"),
}


def placeholders_for(transforms: Mapping[str, Transform]) -> dict[str, str]:
    """category → placeholder for every literal-replacement transform."""
    return {
        category: t.new_value
        for category, t in transforms.items()
        if isinstance(t, Replace) and category != DEFAULT_KEY
    }


CATEGORY_PLACEHOLDERS: dict[str, str] = placeholders_for(DEFAULT_TRANSFORMS)


def synthesize_placeholder(category: str) -> str:
    return f"[{category}]"


def to_operators(transforms: Mapping[str, Transform]) -> dict[str, dict[str, Any]]:
    """Render a transform table as the anonymizer's ``anonymizers`` payload."""
    return {category: t.to_operator() for category, t in transforms.items()}


def parse_transform(data: Mapping[str, Any]) -> Transform:
    """Build a transform from its operator dict (as found in YAML config)."""
    kind = data.get("type")
    try:
        if kind == "replace":
            return Replace(str(data["new_value"]))
        if kind == "mask":
            return Mask(
                masking_char=str(data.get("masking_char", "*")),
                chars_to_mask=int(data["chars_to_mask"]),
                from_end=bool(data.get("from_end", True)),
            )
        if kind == "hash":
            return Hash(str(data.get("hash_type", "sha256")))
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {kind} transform", {"transform": dict(data)}) from e
    raise ConfigError(f"Unknown transform type: {kind!r}", {"transform": dict(data)})


def merge_transforms(
    overrides: Mapping[str, Mapping[str, Any]] | None,
    base: Mapping[str, Transform] = DEFAULT_TRANSFORMS,
) -> dict[str, Transform]:
    """Overlay operator dicts from config on top of a transform table."""
    merged = dict(base)
    for category, data in (overrides or {}).items():
        merged[category] = data if isinstance(data, (Replace, Mask, Hash)) else parse_transform(data)
    return merged
