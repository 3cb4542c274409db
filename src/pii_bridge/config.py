"""YAML/dict/env config loader for pii-bridge.

Supports loading from a YAML file, a plain dict (for embedding in a larger
config) or the environment.

Example YAML:

    pii_bridge:
      analyzer_url: http://presidio-analyzer:3000
      anonymizer_url: http://presidio-anonymizer:3000
      detector: remote           # "remote" or "local"
      language: en
      score_threshold: 0.5
      thresholds:
        PHONE_NUMBER: 0.3
      timeout: 5.0
      max_retries: 2
      best_match:
        - PERSON
        - PHONE_NUMBER
      transforms:
        EMAIL_ADDRESS:
          type: replace
          new_value: "[EMAIL]"

Environment:

    PRESIDIO_ANALYZER_URL    (default http://localhost:5001)
    PRESIDIO_ANONYMIZER_URL  (default http://localhost:5002)
"""

from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any, Mapping

from .exceptions import ConfigError
from .policies import DEFAULT_POLICIES, policies_for
from .presidio_client import DEFAULT_SCORE_THRESHOLD, DEFAULT_THRESHOLDS, PresidioAnalyzer, PresidioAnonymizer
from .service import AnonymizerService
from .transforms import merge_transforms

logger = logging.getLogger(__name__)

DEFAULT_ANALYZER_URL = "http://localhost:5001"
DEFAULT_ANONYMIZER_URL = "http://localhost:5002"


def load_config(data: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    # Support nested under "pii_bridge" key or flat
    if data and "pii_bridge" in data:
        data = data["pii_bridge"]
    # An empty "pii_bridge:" section in YAML loads as None
    data = data or {}
    if not isinstance(data, Mapping):
        raise ConfigError("Config must be a mapping", details={"type": type(data).__name__})

    detector = data.get("detector", "remote")
    if detector not in ("remote", "local"):
        raise ConfigError(f"Unknown detector: {detector!r}")

    try:
        thresholds = {k: float(v) for k, v in (data.get("thresholds") or DEFAULT_THRESHOLDS).items()}
        score_threshold = float(data.get("score_threshold", DEFAULT_SCORE_THRESHOLD))
    except (TypeError, ValueError) as e:
        raise ConfigError("Thresholds must be numbers") from e

    try:
        timeout = float(data.get("timeout", 5.0))
        max_retries = int(data.get("max_retries", 2))
        retry_delay = float(data.get("retry_delay", 1.0))
    except (TypeError, ValueError) as e:
        raise ConfigError("timeout, max_retries and retry_delay must be numbers") from e

    return {
        "analyzer_url": data.get("analyzer_url") or DEFAULT_ANALYZER_URL,
        "anonymizer_url": data.get("anonymizer_url") or DEFAULT_ANONYMIZER_URL,
        "detector": detector,
        "language": data.get("language", "en"),
        "entities": data.get("entities"),
        "score_threshold": score_threshold,
        "thresholds": thresholds,
        "timeout": timeout,
        "max_retries": max_retries,
        "retry_delay": retry_delay,
        "transforms": merge_transforms(data.get("transforms")),
        "best_match": list(data.get("best_match", DEFAULT_POLICIES)),
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml  # optional dependency
    with open(path) as f:
        return load_config(yaml.safe_load(f) or {})


def load_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Load service URLs from the environment, with localhost fallbacks."""
    env = os.environ if environ is None else environ

    analyzer_url = env.get("PRESIDIO_ANALYZER_URL")
    anonymizer_url = env.get("PRESIDIO_ANONYMIZER_URL")

    if not analyzer_url:
        analyzer_url = DEFAULT_ANALYZER_URL
        logger.warning("PRESIDIO_ANALYZER_URL not set, using fallback: %s", analyzer_url)
    if not anonymizer_url:
        anonymizer_url = DEFAULT_ANONYMIZER_URL
        logger.warning("PRESIDIO_ANONYMIZER_URL not set, using fallback: %s", anonymizer_url)

    analyzer_url, anonymizer_url = fix_swapped_urls(analyzer_url, anonymizer_url)
    return load_config({"analyzer_url": analyzer_url, "anonymizer_url": anonymizer_url})


def fix_swapped_urls(analyzer_url: str, anonymizer_url: str) -> tuple[str, str]:
    """Swap back URLs that point at each other's default ports."""
    if "5002" in analyzer_url and "5001" in anonymizer_url:
        logger.warning("URLs appear to be swapped in environment variables, correcting them")
        return anonymizer_url, analyzer_url
    return analyzer_url, anonymizer_url


def create_service(config: Mapping[str, Any]) -> AnonymizerService:
    """Create a fully configured service from a config dict."""
    cfg = load_config(config)

    transport = {
        "timeout": cfg["timeout"],
        "max_retries": cfg["max_retries"],
        "retry_delay": cfg["retry_delay"],
    }

    if cfg["detector"] == "local":
        from .local_detector import LocalPresidioDetector
        detector = LocalPresidioDetector(
            language=cfg["language"],
            entities=cfg["entities"],
            score_threshold=cfg["score_threshold"],
            thresholds=cfg["thresholds"],
        )
    else:
        detector = PresidioAnalyzer(
            cfg["analyzer_url"],
            language=cfg["language"],
            entities=cfg["entities"],
            score_threshold=cfg["score_threshold"],
            thresholds=cfg["thresholds"],
            **transport,
        )
    logger.info("Using analyzer: %s", "local" if cfg["detector"] == "local" else cfg["analyzer_url"])
    logger.info("Using anonymizer URL: %s", cfg["anonymizer_url"])

    return AnonymizerService(
        detector,
        PresidioAnonymizer(cfg["anonymizer_url"], **transport),
        transforms=cfg["transforms"],
        policies=policies_for(cfg["best_match"]),
    )
