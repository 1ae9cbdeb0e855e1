"""PGW server: session requests over UDP, status endpoints over HTTP, CDR output."""

from __future__ import annotations

import os
import signal
import sys
import threading
from collections.abc import Sequence
from pathlib import Path
from types import FrameType

from pgwsim.bcd import bcd_to_imsi, validate_imsi
from pgwsim.cdr import CdrManager
from pgwsim.config import ConfigError, ServerConfig, load_server_config
from pgwsim.httpserver import HttpRequest, HttpResponse, HttpServer
from pgwsim.logger import get_logger, init_logger
from pgwsim.session import SessionManager
from pgwsim.udp import Address, UdpServer

CLEANUP_INTERVAL = 5.0
_PROG = "pgw_server"


def _check_config_path(config_file: str | os.PathLike[str]) -> Path:
    text = os.fspath(config_file)
    if not text:
        raise ConfigError("Config file path cannot be empty")
    path = Path(text)
    if not path.exists():
        raise ConfigError(f"Config file not found: {text}")
    if not path.is_file():
        raise ConfigError(f"Config file is not a regular file: {text}")
    return path


class PgwServer:
    """Ties together configuration, sessions, CDRs and the UDP and HTTP servers."""

    def __init__(self, cleanup_interval: float = CLEANUP_INTERVAL) -> None:
        self.cleanup_interval = cleanup_interval
        self.config: ServerConfig | None = None
        self.cdr_manager: CdrManager | None = None
        self.session_manager: SessionManager | None = None
        self.udp_server: UdpServer | None = None
        self.http_server: HttpServer | None = None
        self._shutdown = threading.Event()

    def init(self, config_file: str | os.PathLike[str]) -> None:
        """Load the configuration and build every server component."""
        path = _check_config_path(config_file)
        config = load_server_config(path)
        if config.log_file:
            init_logger(
                config.log_file, "server_logger", config.log_level, config.console_output
            )
        get_logger().info("=== New process started (PID: %d) ===", os.getpid())

        cdr_manager = CdrManager(config.cdr_file)
        try:
            session_manager = SessionManager(
                cdr_manager, config.session_timeout_sec, config.blacklist
            )
            udp_server = UdpServer(config.udp_ip, config.udp_port, self.handle_udp_message)
        except Exception:
            cdr_manager.close()
            raise

        self.config = config
        self.cdr_manager = cdr_manager
        self.session_manager = session_manager
        self.udp_server = udp_server
        self.http_server = HttpServer(config.http_port)
        self._setup_http_server(self.http_server)

    def run(self) -> None:
        """Serve until a shutdown is requested, then wind everything down."""
        if (
            self.config is None
            or self.cdr_manager is None
            or self.session_manager is None
            or self.udp_server is None
            or self.http_server is None
        ):
            raise RuntimeError("Server is not initialized")
        config = self.config
        sessions = self.session_manager
        udp, http, cdr = self.udp_server, self.http_server, self.cdr_manager

        previous = self._install_signal_handlers()
        cleanup = threading.Thread(target=self._cleanup_loop, name="session-cleanup", daemon=True)
        try:
            udp.start()
            http.start()
            cleanup.start()
            get_logger().info("PGW Server started successfully")

            self._shutdown.wait()

            get_logger().info("Shutting down server...")
            cleanup.join()
            sessions.graceful_shutdown(config.graceful_shutdown_rate)
        finally:
            self._shutdown.set()
            if cleanup.ident is not None:
                cleanup.join()
            http.stop()
            udp.close()
            cdr.close()
            for signum, handler in previous.items():
                if handler is not None:
                    signal.signal(signum, handler)

    def request_shutdown(self) -> None:
        """Ask a running server to stop."""
        self._shutdown.set()

    def handle_udp_message(self, message: bytes, client_addr: Address) -> None:
        """Decode a BCD IMSI, open or prolong its session and reply to the sender."""
        if self.session_manager is None or self.udp_server is None:
            raise RuntimeError("Server is not initialized")
        try:
            imsi = bcd_to_imsi(message)
            if not validate_imsi(imsi):
                get_logger().warning("Invalid IMSI received")
                response = "rejected"
            else:
                created = self.session_manager.create_session(imsi)
                response = "created" if created else "rejected"
        except Exception as exc:
            get_logger().error("Message processing error: %s", exc)
            response = "error"
        self.udp_server.send(response, client_addr)

    def _setup_http_server(self, http: HttpServer) -> None:
        http.add_get_handler("/check_subscriber", self._check_subscriber)
        http.add_get_handler("/stop", self._stop_endpoint)

    def _check_subscriber(self, request: HttpRequest) -> HttpResponse:
        imsi = request.params.get("imsi")
        if imsi is None:
            return HttpResponse("IMSI parameter missing", "text/plain", 400)
        assert self.session_manager is not None
        active = self.session_manager.session_exists(imsi)
        return HttpResponse("active" if active else "not active", "text/plain")

    def _stop_endpoint(self, request: HttpRequest) -> HttpResponse:
        self._shutdown.set()
        return HttpResponse("Shutting down server...", "text/plain")

    def _cleanup_loop(self) -> None:
        assert self.session_manager is not None
        while True:
            self.session_manager.cleanup_expired_sessions()
            if self._shutdown.wait(self.cleanup_interval):
                break

    def _on_signal(self, signum: int, frame: FrameType | None) -> None:
        self._shutdown.set()

    def _install_signal_handlers(self) -> dict[int, object]:
        if threading.current_thread() is not threading.main_thread():
            return {}
        return {
            signum: signal.signal(signum, self._on_signal)
            for signum in (signal.SIGINT, signal.SIGTERM)
        }


def main(argv: Sequence[str] | None = None) -> int:
    """Run the server with the configuration file named on the command line."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(
            f"Usage: {_PROG} [config_file]\n"
            "Example:\n"
            f"  {_PROG} config.json         # Interactive mode with custom config",
            file=sys.stderr,
        )
        return 1

    server = PgwServer()
    try:
        server.init(args[0])
    except Exception as exc:
        print(f"Failed to initialize server: {exc}", file=sys.stderr)
        return 1

    try:
        server.run()
    except Exception as exc:
        print(f"Server runtime error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())