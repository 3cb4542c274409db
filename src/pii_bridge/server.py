"""HTTP sidecar server for pii-bridge.

A small stdlib HTTP server on localhost so non-Python callers can share
one anonymizer service and its mapping.

Endpoints:
    POST /anonymize     — {"text": ...} → {"text", "entities_found", "entities"}
    POST /deanonymize   — {"text": ...} → {"text"}
    GET  /entities      — current mapping entries
    POST /clear         — reset the mapping
    GET  /health        — sidecar + Presidio service health

Requests are served one at a time under a lock: the mapping is rebuilt by
every /anonymize.
"""

from __future__ import annotations
import json
import logging
import os
import threading
from http.server import HTTPServer, BaseHTTPRequestHandler
from typing import Any

from .config import create_service, load_from_env, load_from_yaml
from .service import AnonymizerService

logger = logging.getLogger(__name__)

DEFAULT_PORT = int(os.environ.get("PII_BRIDGE_PORT", "18792"))

# Shared state
_service: AnonymizerService | None = None
_lock = threading.Lock()


def _get_service() -> AnonymizerService:
    global _service
    if _service is None:
        _service = create_service(load_from_env())
    return _service


def set_service(service: AnonymizerService | None) -> None:
    """Install the service the handler uses (tests, embedding)."""
    global _service
    _service = service


class BridgeHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the pii-bridge sidecar."""

    def _read_json(self) -> dict[str, Any]:
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length).decode("utf-8")
        return json.loads(body) if body else {}

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self) -> None:
        with _lock:
            service = _get_service()
            if self.path == "/health":
                checks = {}
                for name, collaborator in (("analyzer", service.detector),
                                           ("anonymizer", service.anonymizer)):
                    check = getattr(collaborator, "health", None)
                    checks[name] = "local" if check is None else ("ok" if check() else "unavailable")
                self._respond(200, {"status": "ok", "services": checks,
                                    "mapping_size": service.table.size})
            elif self.path == "/entities":
                self._respond(200, {"entities": [e.to_dict() for e in service.list_entities()]})
            else:
                self._respond(404, {"error": "not found"})

    def do_POST(self) -> None:
        try:
            body = self._read_json()
        except (ValueError, UnicodeDecodeError) as e:
            self._respond(400, {"error": f"invalid JSON: {e}"})
            return

        if not isinstance(body, dict):
            self._respond(400, {"error": "body must be a JSON object"})
            return
        text = body.get("text", "")
        if not isinstance(text, str):
            self._respond(400, {"error": "text must be a string"})
            return

        try:
            with _lock:
                service = _get_service()
                if self.path == "/anonymize":
                    result = service.anonymize(text)
                    self._respond(200, {
                        "text": result.anonymized_text,
                        "entities_found": result.entities_found,
                        "entities": [e.to_dict() for e in result.entities],
                    })
                elif self.path == "/deanonymize":
                    self._respond(200, {"text": service.deanonymize(text)})
                elif self.path == "/clear":
                    service.clear_mapping()
                    self._respond(200, {"status": "cleared"})
                else:
                    self._respond(404, {"error": "not found"})
        except Exception as e:
            logger.exception("Error handling %s", self.path)
            self._respond(500, {"error": str(e)})


def serve(port: int = DEFAULT_PORT, service: AnonymizerService | None = None) -> None:
    """Start the pii-bridge HTTP sidecar."""
    if service is not None:
        set_service(service)
    _get_service()

    server = HTTPServer(("127.0.0.1", port), BridgeHandler)
    logger.info("pii-bridge sidecar listening on http://127.0.0.1:%d", port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        server.shutdown()
    finally:
        server.server_close()
        if _service is not None:
            _service.close()


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="pii-bridge HTTP sidecar")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--config", default="", help="YAML config file")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")
    serve(port=args.port, service=create_service(load_from_yaml(args.config)) if args.config else None)
