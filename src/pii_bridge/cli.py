"""CLI interface for pii-bridge.

Usage:
    # Anonymize text (stdin: plain text, stdout: JSON)
    echo 'Hello, my name is John Doe' | \
        python -m pii_bridge.cli anonymize

    # Also show the text restored from the mapping
    echo 'Hello, my name is John Doe' | \
        python -m pii_bridge.cli anonymize --restore

    # Check both Presidio services are reachable
    python -m pii_bridge.cli health

Service URLs come from --config (YAML), then PRESIDIO_ANALYZER_URL /
PRESIDIO_ANONYMIZER_URL, then localhost defaults.
"""

from __future__ import annotations
import argparse
import json
import logging
import sys

from .config import create_service, load_from_env, load_from_yaml
from .service import AnonymizerService


def _build_service(args: argparse.Namespace) -> AnonymizerService:
    cfg = load_from_yaml(args.config) if args.config else load_from_env()
    if args.analyzer_url:
        cfg["analyzer_url"] = args.analyzer_url
    if args.anonymizer_url:
        cfg["anonymizer_url"] = args.anonymizer_url
    if args.local:
        cfg["detector"] = "local"
    if args.language:
        cfg["language"] = args.language
    return create_service(cfg)


def cmd_anonymize(args: argparse.Namespace) -> int:
    """Anonymize plain text from stdin."""
    text = sys.stdin.read()
    with _build_service(args) as service:
        result = service.anonymize(text)
        output = {
            "text": result.anonymized_text,
            "entities_found": result.entities_found,
            "entities": [e.to_dict() for e in result.entities],
        }
        if args.restore:
            output["restored"] = service.deanonymize(result.anonymized_text)
    json.dump(output, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


def cmd_health(args: argparse.Namespace) -> int:
    """Report whether the analyzer and anonymizer answer."""
    with _build_service(args) as service:
        status = {}
        for name, collaborator in (("analyzer", service.detector), ("anonymizer", service.anonymizer)):
            check = getattr(collaborator, "health", None)
            status[name] = "local" if check is None else ("ok" if check() else "unavailable")
    json.dump(status, sys.stdout)
    sys.stdout.write("\n")
    return 0 if "unavailable" not in status.values() else 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pii-bridge",
        description="Reversible PII anonymization via Presidio",
    )
    parser.add_argument("--config", default="", help="YAML config file")
    parser.add_argument("--analyzer-url", default="", help="Presidio analyzer base URL")
    parser.add_argument("--anonymizer-url", default="", help="Presidio anonymizer base URL")
    parser.add_argument("--local", action="store_true", help="Run the analyzer in-process")
    parser.add_argument("--language", default="", help="Language code")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    p_anon = sub.add_parser("anonymize", help="Anonymize plain text (stdin)")
    p_anon.add_argument("--restore", action="store_true", help="Include restored text")
    sub.add_parser("health", help="Check service health")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    cmds = {
        "anonymize": cmd_anonymize,
        "health": cmd_health,
    }
    return cmds[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
