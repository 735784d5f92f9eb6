"""HTTP server: error mapping, middleware and application assembly."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from socketserver import ThreadingMixIn
from typing import Any, Callable
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from flask import Blueprint, Flask, g, jsonify, request

from shortlink.errors import ErrorType, SlugError
from shortlink.web import get_title_by_url

__all__ = [
    "HttpError",
    "RunningServer",
    "error_response",
    "register_uri_title",
    "create_app",
    "run_http_server",
]

logger = logging.getLogger(__name__)

_INTERNAL = (500, {"status": "Internal server error", "msg": "系统异常"})
_LIMIT_WINDOW = 60.0


class HttpError(Exception):
    """An error that maps directly to an HTTP status."""

    def __init__(self, code: int, name: str) -> None:
        super().__init__(name)
        self.code = code
        self.name = name


def error_response(err: BaseException) -> tuple[int, dict[str, str]]:
    """HTTP status and JSON body for an error raised while handling a request."""
    code = getattr(err, "code", None)
    name = getattr(err, "name", None)
    if isinstance(code, int) and isinstance(name, str):
        return code, {"status": "error", "msg": name}
    if not isinstance(err, SlugError):
        return _INTERNAL[0], dict(_INTERNAL[1])
    if err.error_type is ErrorType.AUTHORIZATION:
        return 401, {"status": "Unauthorized", "msg": str(err)}
    if err.error_type is ErrorType.REQUEST_PARAM:
        return 400, {"status": "Bad request", "msg": str(err)}
    if err.error_type is ErrorType.RESOURCE_NOT_FOUND:
        return 404, {"status": "Not found", "msg": str(err)}
    if err.error_type is ErrorType.SERVICE_ERROR:
        return 200, {"status": "Business error", "msg": str(err)}
    return _INTERNAL[0], dict(_INTERNAL[1])


def register_uri_title(router: Blueprint | Flask) -> None:
    """Add ``GET /get-title?url=...`` returning the page title."""

    def get_title():
        return jsonify(title=get_title_by_url(request.args.get("url", "")))

    router.add_url_rule("/get-title", "get_title", get_title, methods=["GET"])


def create_app(
    register: Callable[[Blueprint], Any] | None = None,
    base_path: str = "",
    app_name: str = "",
    max_requests: int = 1000,
) -> Flask:
    """Build the application; ``register`` adds routes under ``base_path``."""
    app = Flask(__name__)
    app.config["APP_NAME"] = app_name
    hits: dict[str, tuple[float, int]] = {}
    hits_lock = threading.Lock()
    started = time.monotonic()

    @app.before_request
    def _middleware():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        g.start = time.monotonic()
        client = request.remote_addr or ""
        now = time.monotonic()
        with hits_lock:
            window_start, count = hits.get(client, (now, 0))
            if now - window_start >= _LIMIT_WINDOW:
                window_start, count = now, 0
            count += 1
            hits[client] = (window_start, count)
        if count > max_requests:
            status, body = error_response(HttpError(429, "Too Many Requests"))
            return jsonify(body), status
        g.username = "default"
        return None

    @app.after_request
    def _decorate(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["X-Request-ID"] = getattr(g, "request_id", "")
        elapsed = time.monotonic() - getattr(g, "start", time.monotonic())
        logger.info("%s %s %s %.3fs", request.method, request.path, response.status_code, elapsed)
        return response

    @app.errorhandler(Exception)
    def _on_error(err):
        status, body = error_response(err)
        return jsonify(body), status

    @app.get("/metrics")
    def _metrics():
        return jsonify(title="Metrics Page", uptime=time.monotonic() - started)

    blueprint = Blueprint("api", __name__, url_prefix=base_path or None)
    if register is not None:
        register(blueprint)
    app.register_blueprint(blueprint)
    return app


class _ThreadingServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _QuietHandler(WSGIRequestHandler):
    """Request handler that sends access lines to the module logger at debug level."""

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


@dataclass
class RunningServer:
    """A server running in the background; call it to shut it down."""

    port: int
    _server: Any
    _thread: threading.Thread

    def __call__(self) -> None:
        logger.info("HTTP server is shutting down")
        self._server.shutdown()
        self._server.server_close()
        self._thread.join()


def run_http_server(app: Flask, port: int | str = 8080) -> RunningServer:
    """Serve ``app`` on ``port`` in a background thread."""
    server = make_server(
        "", int(port), app, server_class=_ThreadingServer, handler_class=_QuietHandler
    )
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    logger.info("HTTP server is running on port %s", server.server_port)
    return RunningServer(server.server_port, server, thread)