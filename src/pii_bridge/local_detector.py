"""In-process detector — Presidio's AnalyzerEngine instead of the REST service.

Useful when no analyzer container is running.  Uses spaCy under the hood,
so the engine is created lazily on first use.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Mapping

from .exceptions import DetectorError
from .presidio_client import DEFAULT_ENTITIES, DEFAULT_SCORE_THRESHOLD, DEFAULT_THRESHOLDS
from .types import Span

if TYPE_CHECKING:
    from presidio_analyzer import AnalyzerEngine

logger = logging.getLogger(__name__)

# Lazy singleton — don't load spaCy until first use
_engine: AnalyzerEngine | None = None
_engine_lang: str = ""


def _get_engine(language: str = "en") -> AnalyzerEngine:
    """Lazy-init the Presidio analyzer engine."""
    global _engine, _engine_lang
    if _engine is None or _engine_lang != language:
        from presidio_analyzer import AnalyzerEngine
        from presidio_analyzer.nlp_engine import NlpEngineProvider

        logger.info("Loading spaCy model %s_core_web_sm", language)
        provider = NlpEngineProvider(nlp_configuration={
            "nlp_engine_name": "spacy",
            "models": [{"lang_code": language, "model_name": f"{language}_core_web_sm"}],
        })
        nlp_engine = provider.create_engine()
        _engine = AnalyzerEngine(nlp_engine=nlp_engine, supported_languages=[language])
        _engine_lang = language
    return _engine


class LocalPresidioDetector:
    """Detector collaborator running presidio-analyzer in this process."""

    def __init__(
        self,
        *,
        language: str = "en",
        entities: list[str] | None = None,
        score_threshold: float = DEFAULT_SCORE_THRESHOLD,
        thresholds: Mapping[str, float] | None = None,
    ) -> None:
        self.language = language
        self.entities = list(entities or DEFAULT_ENTITIES)
        self.score_threshold = score_threshold
        self.thresholds = dict(DEFAULT_THRESHOLDS if thresholds is None else thresholds)

    def analyze(self, text: str) -> list[Span]:
        floor = min([self.score_threshold, *self.thresholds.values()])
        try:
            engine = _get_engine(self.language)
            results = engine.analyze(
                text=text,
                language=self.language,
                entities=self.entities,
                score_threshold=floor,
            )
        except (ImportError, OSError, ValueError) as e:
            raise DetectorError("local Presidio analyzer failed",
                                details={"error": str(e)}) from e

        spans = [Span(r.entity_type, r.start, r.end, r.score) for r in results]
        return [
            s for s in spans
            if s.score >= self.thresholds.get(s.category, self.score_threshold)
        ]
