"""Small threaded HTTP server with GET routes and a health check."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlsplit

from pgwsim.logger import get_logger

_IO_TIMEOUT = 5
_POLL_INTERVAL = 0.1


@dataclass(frozen=True)
class HttpRequest:
    """An incoming GET request."""

    method: str
    path: str
    params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class HttpResponse:
    """What a handler sends back."""

    body: str = ""
    content_type: str = "text/plain"
    status: int = 200


RequestHandler = Callable[[HttpRequest], HttpResponse]


def _health_check(request: HttpRequest) -> HttpResponse:
    return HttpResponse('{"status":"ok"}', "application/json")


class HttpServer:
    """Serve registered GET handlers on a background thread."""

    def __init__(self, port: int, host: str = "0.0.0.0") -> None:
        self.port = port
        self.host = host
        self.request_count = 0
        self._count_lock = threading.Lock()
        self._routes: dict[str, RequestHandler] = {"/health": _health_check}
        self._httpd: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Bind the port and start serving; does nothing if already running."""
        if self._httpd is not None:
            return
        get_logger().info("Starting HTTP server on %s:%d", self.host, self.port)
        try:
            httpd = ThreadingHTTPServer((self.host, self.port), self._handler_class())
        except OSError:
            get_logger().error("HTTP server failed to start on port %d", self.port)
            raise
        httpd.daemon_threads = True
        self.port = httpd.server_address[1]
        self._httpd = httpd
        self._thread = threading.Thread(
            target=httpd.serve_forever,
            kwargs={"poll_interval": _POLL_INTERVAL},
            name="http-server",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop serving and release the port."""
        if self._httpd is None:
            return
        httpd, self._httpd = self._httpd, None
        httpd.shutdown()
        httpd.server_close()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        get_logger().info("HTTP server stopped")

    def is_running(self) -> bool:
        """Return True while the server is serving."""
        return self._httpd is not None

    def add_get_handler(self, path: str, handler: RequestHandler) -> None:
        """Route GET requests for *path* to *handler*."""

        def counted(request: HttpRequest) -> HttpResponse:
            with self._count_lock:
                self.request_count += 1
            return handler(request)

        self._routes[path] = counted

    def _handle(self, method: str, target: str, headers: dict[str, str]) -> HttpResponse:
        split = urlsplit(target)
        route = self._routes.get(split.path)
        if route is None:
            return HttpResponse(status=404)
        params = {
            key: values[0]
            for key, values in parse_qs(split.query, keep_blank_values=True).items()
        }
        request = HttpRequest(method, split.path, params, headers)
        try:
            return route(request)
        except Exception as exc:
            get_logger().error("HTTP handler error on %s: %s", split.path, exc)
            return HttpResponse(status=500)

    def _handler_class(self) -> type[BaseHTTPRequestHandler]:
        owner = self

        class _Handler(BaseHTTPRequestHandler):
            timeout = _IO_TIMEOUT
            protocol_version = "HTTP/1.1"

            def do_GET(self) -> None:
                response = owner._handle(self.command, self.path, dict(self.headers))
                body = response.body.encode("utf-8")
                self.send_response(response.status)
                self.send_header("Content-Type", response.content_type)
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def log_request(self, code: int | str = "-", size: int | str = "-") -> None:
                get_logger().debug(
                    "HTTP %s %s -> %s", self.command, urlsplit(self.path).path, code
                )

            def log_message(self, format: str, *args: object) -> None:
                get_logger().debug(format, *args)

        return _Handler