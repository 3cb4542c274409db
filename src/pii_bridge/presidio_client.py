"""HTTP collaborators — Presidio analyzer and anonymizer REST services.

Both clients hold a persistent ``httpx.Client`` and retry transient failures
(transport errors, 502/503/504) a fixed number of times.  Every failure that
survives the retries is raised as ``DetectorError`` / ``AnonymizerError``.

Usage:
    analyzer = PresidioAnalyzer("http://localhost:5001")
    spans = analyzer.analyze("Call John on +1 555-123-4567")

    anonymizer = PresidioAnonymizer("http://localhost:5002")
    response = anonymizer.anonymize(text, spans, DEFAULT_TRANSFORMS)
"""

from __future__ import annotations
import logging
import time
from typing import Any, Mapping

import httpx
from httpx import HTTPStatusError, TransportError

from .exceptions import AnonymizerError, CollaboratorError, DetectorError
from .transforms import Transform, to_operators
from .types import AnonymizerResponse, AppliedItem, Span

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = frozenset({502, 503, 504})

# Entity types requested from the analyzer by default
DEFAULT_ENTITIES = [
    "PERSON",
    "PHONE_NUMBER",
    "EMAIL_ADDRESS",
    "CREDIT_CARD",
    "DATE_TIME",
    "LOCATION",
    "NRP",
    "ORGANIZATION",
    "US_BANK_ACCOUNT",
    "US_DRIVER_LICENSE",
    "US_ITIN",
    "US_PASSPORT",
    "US_SSN",
    "UK_NHS",
    "IP_ADDRESS",
    "IBAN_CODE",
    "CRYPTO",
    "URL",
    "MEDICAL_LICENSE",
    "MEDICAL_RECORD",
    "AGE",
    "ADDRESS",
]

DEFAULT_SCORE_THRESHOLD = 0.5
# Phone numbers score low without context words
DEFAULT_THRESHOLDS: dict[str, float] = {"PHONE_NUMBER": 0.3}

INTERNATIONAL_PHONE_RECOGNIZER: dict[str, Any] = {
    "name": "International Phone Number",
    "supported_language": "en",
    "patterns": [
        {
            "name": "phone-number-int",
            "regex": r"\+?(?:[0-9] ?){6,14}[0-9]",
            "score": 0.75,
        },
    ],
    "context": ["contact", "phone", "call", "reach"],
    "supported_entity": "PHONE_NUMBER",
}


class _PresidioClient:
    """Shared transport: connection reuse, retry, error wrapping."""

    error_cls: type[CollaboratorError] = CollaboratorError

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                base_url=self.base_url,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            self._client.close()
        self._client = None

    def __enter__(self):
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Make a request, retrying transient failures."""
        client = self._get_client()
        service = self.error_cls.service
        last_error: Exception | None = None

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, path, **kwargs)
                response.raise_for_status()
                return response
            except TransportError as e:
                last_error = e
            except HTTPStatusError as e:
                if e.response.status_code not in _RETRYABLE_STATUS_CODES:
                    raise self.error_cls(
                        f"{service} returned HTTP {e.response.status_code}",
                        status_code=e.response.status_code,
                        details={"url": str(e.request.url)},
                    ) from e
                last_error = e
            except httpx.RequestError as e:
                # decoding, redirect loops, bad URLs: not worth retrying
                logger.error("%s service error: %s", service, e)
                raise self.error_cls(f"Failed to talk to {service}", status_code=500,
                                     details={"url": f"{self.base_url}{path}"}) from e
            if attempt < self.max_retries:
                logger.warning(
                    "Retrying %s request %s %s (%d/%d): %s",
                    service, method, path, attempt + 1, self.max_retries, last_error,
                )
                time.sleep(self.retry_delay)

        if isinstance(last_error, HTTPStatusError):
            status = last_error.response.status_code
            message = f"{service} returned HTTP {status}"
        elif isinstance(last_error, (httpx.ConnectError, httpx.TimeoutException)):
            status = 503
            message = f"Presidio {service} service is unavailable"
        else:
            status = 500
            message = f"Failed to reach {service}"
        logger.error("%s service error: %s", service, last_error)
        raise self.error_cls(message, status_code=status,
                             details={"url": f"{self.base_url}{path}"}) from last_error

    def _post_json(self, path: str, payload: Mapping[str, Any]) -> Any:
        response = self._request("POST", path, json=payload)
        try:
            return response.json()
        except ValueError as e:
            raise self.error_cls(f"{self.error_cls.service} returned invalid JSON") from e

    def health(self) -> bool:
        """GET /health — True if the service answers with 2xx. Never retried."""
        try:
            response = self._get_client().get("/health")
        except httpx.HTTPError as e:
            logger.debug("%s health check failed: %s", self.error_cls.service, e)
            return False
        return response.is_success


class PresidioAnalyzer(_PresidioClient):
    """Detector collaborator backed by presidio-analyzer's REST API."""

    error_cls = DetectorError

    def __init__(
        self,
        base_url: str,
        *,
        language: str = "en",
        entities: list[str] | None = None,
        score_threshold: float = DEFAULT_SCORE_THRESHOLD,
        thresholds: Mapping[str, float] | None = None,
        correlation_id: str = "anonymization-request",
        ad_hoc_recognizers: list[dict[str, Any]] | None = None,
        **kwargs,
    ) -> None:
        super().__init__(base_url, **kwargs)
        self.language = language
        self.entities = list(entities or DEFAULT_ENTITIES)
        self.score_threshold = score_threshold
        self.thresholds = dict(DEFAULT_THRESHOLDS if thresholds is None else thresholds)
        self.correlation_id = correlation_id
        self.ad_hoc_recognizers = (
            [INTERNATIONAL_PHONE_RECOGNIZER] if ad_hoc_recognizers is None else ad_hoc_recognizers
        )

    def threshold_for(self, category: str) -> float:
        return self.thresholds.get(category, self.score_threshold)

    def build_request(self, text: str) -> dict[str, Any]:
        # The service only takes one threshold; ask for the loosest and
        # apply per-category thresholds on our side.
        floor = min([self.score_threshold, *self.thresholds.values()])
        return {
            "text": text,
            "language": self.language,
            "entities": self.entities,
            "correlation_id": self.correlation_id,
            "score_threshold": floor,
            "return_decision_process": False,
            "ad_hoc_recognizers": self.ad_hoc_recognizers,
        }

    def analyze(self, text: str) -> list[Span]:
        """POST /analyze and return the spans that clear their threshold."""
        logger.debug("Sending analyzer request to %s/analyze", self.base_url)
        data = self._post_json("/analyze", self.build_request(text))
        if not isinstance(data, list):
            raise DetectorError("analyzer response is not a list",
                                details={"type": type(data).__name__})
        try:
            spans = [Span.from_dict(r) for r in data]
        except (KeyError, TypeError, ValueError) as e:
            raise DetectorError("malformed analyzer result") from e

        kept = [s for s in spans if s.score >= self.threshold_for(s.category)]
        logger.info("Analyzer found %d entities (%d above threshold)", len(spans), len(kept))
        return kept


class PresidioAnonymizer(_PresidioClient):
    """Anonymizer collaborator backed by presidio-anonymizer's REST API."""

    error_cls = AnonymizerError

    def anonymize(
        self,
        text: str,
        spans: list[Span],
        transforms: Mapping[str, Transform],
    ) -> AnonymizerResponse:
        """POST /anonymize with the detected spans and per-category operators."""
        payload = {
            "text": text,
            "anonymizers": to_operators(transforms),
            "analyzer_results": [s.to_dict() for s in spans],
        }
        data = self._post_json("/anonymize", payload)
        if not isinstance(data, dict) or not isinstance(data.get("text"), str):
            raise AnonymizerError("anonymizer response has no text")
        try:
            items = [AppliedItem.from_dict(i) for i in data.get("items") or []]
        except (KeyError, TypeError, ValueError) as e:
            raise AnonymizerError("malformed anonymizer item") from e

        logger.info("Anonymizer returned %d items", len(items))
        return AnonymizerResponse(text=data["text"], items=items)
