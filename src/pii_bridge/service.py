"""AnonymizerService — the public API.

Usage:
    from pii_bridge import AnonymizerService, PresidioAnalyzer, PresidioAnonymizer

    service = AnonymizerService(
        PresidioAnalyzer("http://localhost:5001"),
        PresidioAnonymizer("http://localhost:5002"),
    )

    result = service.anonymize("Hi, I'm John Doe")
    print(result.anonymized_text)        # "Hi, I'm [PERSON]"

    reply = "Nice to meet you, [PERSON]!"
    print(service.deanonymize(reply))    # "Nice to meet you, John Doe!"

A service owns one MappingTable, rebuilt by every ``anonymize`` call.
Serialize calls against the same instance (or pass each session its own
``table``); nothing here locks.
"""

from __future__ import annotations
import logging
from typing import Mapping

from .exceptions import ConfigError
from .mapping import MappingTable
from .policies import DEFAULT_MIN_LENGTHS, DEFAULT_POLICIES, BestMatchPolicy
from .reconciler import reconcile
from .transforms import DEFAULT_TRANSFORMS, Transform, placeholders_for
from .types import AnonymizeResult, Anonymizer, Detector, MappingEntry

logger = logging.getLogger(__name__)


class AnonymizerService:
    """Detect → anonymize → reconcile, with restoration from the last mapping."""

    def __init__(
        self,
        detector: Detector,
        anonymizer: Anonymizer,
        *,
        transforms: Mapping[str, Transform] | None = None,
        policies: Mapping[str, BestMatchPolicy] | None = None,
        min_lengths: Mapping[str, int] | None = None,
        table: MappingTable | None = None,
    ) -> None:
        self.detector = detector
        self.anonymizer = anonymizer
        self.transforms = dict(transforms or DEFAULT_TRANSFORMS)
        self.policies = dict(DEFAULT_POLICIES if policies is None else policies)
        self.min_lengths = dict(DEFAULT_MIN_LENGTHS if min_lengths is None else min_lengths)
        self.table = table if table is not None else MappingTable()

    def anonymize(self, text: str) -> AnonymizeResult:
        """Anonymize text and rebuild the mapping.

        If either collaborator fails, the original text comes back with
        ``entities_found=False``; callers that require anonymization must
        check that flag.
        """
        self.table.clear()

        try:
            spans = self.detector.analyze(text)
            if not spans:
                return AnonymizeResult(anonymized_text=text, entities_found=False)

            response = self.anonymizer.anonymize(text, spans, self.transforms)
        except ConfigError:
            raise
        except Exception as e:
            logger.warning("Failed to anonymize text: %s. Falling back to original text.", e)
            return AnonymizeResult(anonymized_text=text, entities_found=False)

        reconcile(
            self.table,
            text,
            spans,
            response.items,
            static_placeholders=placeholders_for(self.transforms),
            policies=self.policies,
            min_lengths=self.min_lengths,
        )
        logger.info("Found %d sensitive entities", self.table.size)

        return AnonymizeResult(
            anonymized_text=response.text,
            entities_found=self.table.size > 0,
            entities=self.table.entries(),
        )

    def deanonymize(self, anonymized_text: str) -> str:
        """Restore original values into text using the current mapping."""
        return self.table.restore(anonymized_text)

    def list_entities(self) -> list[MappingEntry]:
        """Entities recorded by the last ``anonymize`` call."""
        return self.table.entries()

    def clear_mapping(self) -> None:
        self.table.clear()

    @property
    def stats(self) -> dict:
        return {
            "mapping_size": self.table.size,
            "mappings": self.table.dump(),
        }

    def close(self) -> None:
        """Close collaborators that hold connections."""
        for collaborator in (self.detector, self.anonymizer):
            close = getattr(collaborator, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> "AnonymizerService":
        return self

    def __exit__(self, *args) -> None:
        self.close()
