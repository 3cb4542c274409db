"""pii-bridge — reversible PII anonymization over Presidio's analyzer and anonymizer."""

from .service import AnonymizerService
from .mapping import MappingTable
from .normalizer import normalize_spans
from .reconciler import reconcile, resolve_placeholders
from .policies import BestMatchPolicy, DEFAULT_POLICIES
from .presidio_client import PresidioAnalyzer, PresidioAnonymizer
from .config import create_service, load_config, load_from_env, load_from_yaml
from .exceptions import BridgeError, CollaboratorError, DetectorError, AnonymizerError, ConfigError
from .types import Span, AppliedItem, AnonymizerResponse, MappingEntry, AnonymizeResult

__all__ = [
    "AnonymizerService", "MappingTable",
    "normalize_spans", "reconcile", "resolve_placeholders",
    "BestMatchPolicy", "DEFAULT_POLICIES",
    "PresidioAnalyzer", "PresidioAnonymizer",
    "create_service", "load_config", "load_from_env", "load_from_yaml",
    "BridgeError", "CollaboratorError", "DetectorError", "AnonymizerError", "ConfigError",
    "Span", "AppliedItem", "AnonymizerResponse", "MappingEntry", "AnonymizeResult",
]
__version__ = "0.1.0"
