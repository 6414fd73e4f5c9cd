"""The HTTP(S) server of the agent's mutating admission webhook."""

from __future__ import annotations

import base64
import json
import logging
import signal
import ssl
import threading
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Mapping
from urllib.parse import urlsplit

from zarfkit.operations import AdmissionRequest, Hook

log = logging.getLogger(__name__)

HTTP_PORT = "8443"
TLS_CERT = "/etc/certs/tls.crt"
TLS_KEY = "/etc/certs/tls.key"

ADMISSION_API_VERSION = "admission.k8s.io/v1"
_JSON = "application/json"
_TEXT = "text/plain; charset=utf-8"


@dataclass
class WebhookResponse:
    """Status, body and content type of a webhook reply."""

    status: int
    body: bytes = b""
    content_type: str = _JSON


def _error(status: int, message: str) -> WebhookResponse:
    return WebhookResponse(status, (message + "\n").encode("utf-8"), _TEXT)


def _to_admission_request(raw: Mapping[str, Any]) -> AdmissionRequest:
    obj = raw.get("object")
    return AdmissionRequest(
        uid=str(raw.get("uid", "") or ""),
        kind=dict(raw.get("kind") or {}),
        namespace=str(raw.get("namespace", "") or ""),
        name=str(raw.get("name", "") or ""),
        operation=str(raw.get("operation", "") or ""),
        object_raw=json.dumps(obj).encode("utf-8") if obj is not None else b"",
    )


class AdmissionHandler:
    """Turns admission review requests into admission review responses."""

    def handle(self, hook: Hook, method: str, content_type: str, body: bytes) -> WebhookResponse:
        """Run the hook on an admission review and build the reply."""
        if method != "POST":
            return _error(405, "invalid method, only POST requests are allowed")
        if content_type != _JSON:
            return _error(400, "invalid content type, only application/json is accepted")

        try:
            review = json.loads(body)
        except ValueError as err:
            return _error(400, f"could not deserialize request: {err}")
        if not isinstance(review, dict):
            return _error(400, "could not deserialize request: expected a JSON object")

        raw_request = review.get("request")
        if raw_request is None:
            return _error(400, "malformed admission review: request is nil")
        if not isinstance(raw_request, dict):
            return _error(400, "could not deserialize request: request must be a JSON object")

        request = _to_admission_request(raw_request)
        try:
            result = hook.execute(request)
        except Exception:
            log.exception("Unable to bind the webhook handler")
            return WebhookResponse(500)

        status: dict[str, Any] = {"metadata": {}}
        if result.msg:
            status["message"] = result.msg
        response: dict[str, Any] = {
            "uid": request.uid,
            "allowed": result.allowed,
            "status": status,
        }

        if result.patch_ops:
            try:
                patch = json.dumps(
                    [op.to_dict() for op in result.patch_ops], separators=(",", ":")
                ).encode("utf-8")
            except (TypeError, ValueError):
                log.exception("Unable to marshall the json patch")
                return _error(500, "unable to marshall the json patch")
            response["patch"] = base64.b64encode(patch).decode("ascii")
            response["patchType"] = "JSONPatch"
            log.debug("PATCH: %s", patch.decode("utf-8"))

        admission_review = {
            "kind": "AdmissionReview",
            "apiVersion": ADMISSION_API_VERSION,
            "response": response,
        }
        try:
            encoded = json.dumps(admission_review, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError):
            log.exception("Unable to marshal the admission response")
            return _error(500, "unable to marshal the admission response")

        log.debug("RESPONSE: %s", encoded.decode("utf-8"))
        log.info(
            "Webhook [%s] - Allowed: %s", request.operation, result.allowed
        )
        return WebhookResponse(200, encoded, _JSON)


def healthz() -> WebhookResponse:
    """The health check reply."""
    return WebhookResponse(200, b"ok", _TEXT)


RouteHandler = Callable[[str, str, bytes], WebhookResponse]


class WebhookRouter:
    """Maps exact request paths to route handlers."""

    def __init__(self, routes: Mapping[str, RouteHandler]) -> None:
        self.routes = dict(routes)

    def dispatch(self, path: str, method: str, content_type: str, body: bytes) -> WebhookResponse:
        """Send a request to the handler registered for its path."""
        handler = self.routes.get(path)
        if handler is None:
            return _error(404, "404 page not found")
        return handler(method, content_type, body)


def _build_router(pod_hook: Hook, flux_hook: Hook) -> WebhookRouter:
    admission = AdmissionHandler()
    return WebhookRouter(
        {
            "/healthz": lambda method, content_type, body: healthz(),
            "/mutate/pod": lambda method, content_type, body: admission.handle(
                pod_hook, method, content_type, body
            ),
            "/mutate/flux-gitrepository": lambda method, content_type, body: admission.handle(
                flux_hook, method, content_type, body
            ),
        }
    )


def _make_request_handler(router: WebhookRouter) -> type[BaseHTTPRequestHandler]:
    class _Handler(BaseHTTPRequestHandler):
        def _serve(self) -> None:
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length) if length > 0 else b""
            reply = router.dispatch(
                urlsplit(self.path).path,
                self.command,
                self.headers.get("Content-Type", ""),
                body,
            )
            self.send_response(reply.status)
            self.send_header("Content-Type", reply.content_type)
            self.send_header("Content-Length", str(len(reply.body)))
            self.end_headers()
            if self.command != "HEAD":
                self.wfile.write(reply.body)

        do_GET = do_POST = do_PUT = do_DELETE = do_PATCH = do_HEAD = _serve

        def log_message(self, format: str, *args: Any) -> None:
            log.debug("%s - %s", self.address_string(), format % args)

    return _Handler


def new_server(port: str, pod_hook: Hook, flux_hook: Hook) -> ThreadingHTTPServer:
    """An HTTP server bound to the port that serves the webhook routes."""
    log.debug("webhook.new_server(%s)", port)
    router = _build_router(pod_hook, flux_hook)
    server = ThreadingHTTPServer(("", int(port)), _make_request_handler(router))
    server.router = router  # type: ignore[attr-defined]
    return server


def start_webhook(port: str, certfile: str, keyfile: str, pod_hook: Hook, flux_hook: Hook) -> None:
    """Serve the webhook over TLS until SIGINT or SIGTERM arrives."""
    log.debug("webhook.start_webhook()")
    server = new_server(port, pod_hook, flux_hook)
    try:
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.load_cert_chain(certfile, keyfile)
        server.socket = context.wrap_socket(server.socket, server_side=True)
    except Exception:
        server.server_close()
        raise

    stop = threading.Event()
    previous = {
        sig: signal.signal(sig, lambda *_: stop.set())
        for sig in (signal.SIGINT, signal.SIGTERM)
    }
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    log.info("Starting the webhook server on port %s", port)
    try:
        while not stop.wait(0.5):
            pass
    finally:
        log.info("Shutting down the webhook server")
        server.shutdown()
        server.server_close()
        for sig, handler in previous.items():
            signal.signal(sig, handler)