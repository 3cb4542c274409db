"""Exception hierarchy.

Collaborator failures (network errors, non-2xx responses, timeouts and
malformed payloads) surface as ``CollaboratorError`` subclasses so the
service can degrade on exactly those and nothing else.

Usage:
    from pii_bridge.exceptions import CollaboratorError

    try:
        spans = analyzer.analyze(text)
    except CollaboratorError as e:
        log.warning("detector down: %s", e)
"""

from __future__ import annotations
from typing import Any


class BridgeError(Exception):
    """Base exception for all pii-bridge errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ConfigError(BridgeError):
    """Invalid configuration (unknown transform type, bad threshold, ...)."""


class CollaboratorError(BridgeError):
    """A remote (or local) collaborator failed to produce a usable result."""

    service = "collaborator"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code

    @property
    def unavailable(self) -> bool:
        """True when the service could not be reached at all."""
        return self.status_code == 503


class DetectorError(CollaboratorError):
    """The analyzer failed."""

    service = "analyzer"


class AnonymizerError(CollaboratorError):
    """The anonymizer failed."""

    service = "anonymizer"
