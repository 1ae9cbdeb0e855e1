"""UDP request/response transport for the PGW client and server."""

from __future__ import annotations

import selectors
import socket
import threading
from collections.abc import Callable
from types import TracebackType

from pgwsim.logger import get_logger

Address = tuple[str, int]
MessageHandler = Callable[[bytes, Address], None]

_RESPONSE_LIMIT = 1023
_DATAGRAM_LIMIT = 65536
_RECV_BUFFER_SIZE = 1024 * 1024
_POLL_INTERVAL = 0.01


class UdpError(OSError):
    """Raised when a UDP socket cannot be set up or a request fails."""


def _check_address(ip: str, port: int) -> None:
    try:
        socket.inet_pton(socket.AF_INET, ip)
    except (OSError, ValueError, TypeError) as exc:
        raise UdpError(f"Invalid IP address: {ip}") from exc
    if not 0 <= port <= 65535:
        raise UdpError(f"Invalid port number: {port}")


def _to_bytes(message: bytes | bytearray | str) -> bytes:
    return message.encode("utf-8") if isinstance(message, str) else bytes(message)


class UdpClient:
    """Send one datagram to a server and wait for its reply."""

    def __init__(self, server_ip: str, server_port: int, timeout: float = 2.0) -> None:
        try:
            _check_address(server_ip, server_port)
        except UdpError:
            get_logger().error("Invalid server address: %s", server_ip)
            raise
        self._server_addr: Address = (server_ip, server_port)
        try:
            self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as exc:
            get_logger().error("Socket creation failed: %s", exc)
            raise UdpError(f"Socket creation failed: {exc}") from exc
        self._sock.settimeout(timeout)

    def send(self, message: bytes | bytearray | str) -> str:
        """Send *message* and return the server's reply as text."""
        payload = _to_bytes(message)
        try:
            sent = self._sock.sendto(payload, self._server_addr)
        except OSError as exc:
            get_logger().error("Send failed: %s", exc)
            raise UdpError(f"Send failed: {exc}") from exc
        get_logger().info("Sent %d bytes to server", sent)

        try:
            data, _ = self._sock.recvfrom(_RESPONSE_LIMIT)
        except OSError as exc:
            get_logger().error("Receive failed: %s", exc)
            raise UdpError(f"Receive failed: {exc}") from exc
        if not data:
            get_logger().error("Receive failed: connection closed")
            raise UdpError("Receive failed: connection closed")

        response = data.split(b"\0", 1)[0].decode("utf-8", errors="replace")
        get_logger().info("Received %d bytes from server: %s", len(data), response)
        return response

    def close(self) -> None:
        """Close the socket."""
        self._sock.close()

    def __enter__(self) -> UdpClient:
        return self

    def __exit__(
        self,
        *args: type[BaseException] | BaseException | TracebackType | None,
    ) -> None:
        self.close()


class UdpServer:
    """Receive datagrams on a background thread and pass them to a handler."""

    def __init__(self, ip: str, port: int, handler: MessageHandler) -> None:
        self._handler = handler
        self._running = threading.Event()
        self._worker: threading.Thread | None = None
        self._send_lock = threading.Lock()
        try:
            _check_address(ip, port)
            self._sock = self._open_socket(ip, port)
        except UdpError as exc:
            get_logger().critical("%s", exc)
            raise UdpError("Failed to initialize UDP server") from exc
        self.address: Address = self._sock.getsockname()

    @staticmethod
    def _open_socket(ip: str, port: int) -> socket.socket:
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as exc:
            raise UdpError(f"Socket creation failed: {exc}") from exc
        try:
            sock.bind((ip, port))
        except OSError as exc:
            sock.close()
            raise UdpError(f"Bind failed: {exc}") from exc
        sock.setblocking(False)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, _RECV_BUFFER_SIZE)
        except OSError:
            pass
        get_logger().debug("UDP socket configured successfully")
        return sock

    def start(self) -> bool:
        """Start the receive thread; return True once it is running."""
        if self._running.is_set():
            return True
        if self._sock.fileno() == -1:
            raise UdpError("UDP server socket is closed")
        self._running.set()
        self._worker = threading.Thread(target=self._serve, name="udp-server", daemon=True)
        self._worker.start()
        get_logger().info("UDP server started on %s:%d", *self.address)
        return True

    def stop(self) -> None:
        """Stop the receive thread and wait for it to finish."""
        if not self._running.is_set():
            return
        self._running.clear()
        if self._worker is not None and self._worker is not threading.current_thread():
            self._worker.join()
        self._worker = None
        get_logger().info("UDP server stopped.")

    def is_running(self) -> bool:
        """Return True while the receive thread is active."""
        return self._running.is_set()

    def send(self, message: bytes | bytearray | str, addr: Address) -> None:
        """Send *message* to *addr*; failures are logged."""
        payload = _to_bytes(message)
        with self._send_lock:
            try:
                sent = self._sock.sendto(payload, addr)
            except OSError as exc:
                get_logger().error("UDP send failed: %s", exc)
                return
        get_logger().debug("Sent %d bytes to %s:%d", sent, addr[0], addr[1])

    def close(self) -> None:
        """Stop the server and release its socket."""
        self.stop()
        self._sock.close()

    def _serve(self) -> None:
        with selectors.DefaultSelector() as selector:
            selector.register(self._sock, selectors.EVENT_READ)
            while self._running.is_set():
                try:
                    events = selector.select(timeout=_POLL_INTERVAL)
                except OSError as exc:
                    get_logger().error("select error: %s", exc)
                    break
                if events:
                    self._drain()
                    get_logger().info("Server received data")

    def _drain(self) -> None:
        while self._running.is_set():
            try:
                message, addr = self._sock.recvfrom(_DATAGRAM_LIMIT)
            except BlockingIOError:
                break
            except OSError as exc:
                get_logger().error("Receive error: %s", exc)
                break
            get_logger().debug("Received %d bytes from %s:%d", len(message), addr[0], addr[1])
            try:
                self._handler(message, addr)
            except Exception as exc:  # a bad message must not stop the server
                get_logger().error("Message handling error: %s", exc)