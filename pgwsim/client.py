"""PGW client: sends BCD-encoded IMSIs to the server and reports its replies."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from pgwsim.bcd import imsi_to_bcd, validate_imsi
from pgwsim.config import ClientConfig, ConfigError, load_client_config
from pgwsim.logger import get_logger, init_logger
from pgwsim.udp import UdpClient, UdpError

_PROG = "pgw_client"


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


class PgwClient:
    """Sends session requests to a PGW server."""

    def __init__(self) -> None:
        self.config: ClientConfig | None = None
        self._udp: UdpClient | None = None

    def init(self, config_file: str | os.PathLike[str]) -> None:
        """Load the configuration and open the UDP transport."""
        path = _check_config_path(config_file)
        config = load_client_config(path)
        self.config = config
        if config.log_file:
            init_logger(
                config.log_file, "client_logger", config.log_level, config.console_output
            )
        try:
            self._udp = UdpClient(config.server_ip, config.server_port)
        except UdpError as exc:
            get_logger().error("Failed to initialize UDP client: %s", exc)
            self._udp = None
        get_logger().info(
            "PGW Client initialized for server %s:%d", config.server_ip, config.server_port
        )

    def send_imsi(self, imsi: str) -> str:
        """Send one IMSI and return the server's reply or an error word."""
        if self._udp is None:
            get_logger().error("UDP client not initialized")
            return "client_error"
        if not validate_imsi(imsi):
            get_logger().error("Invalid IMSI format: %s", imsi)
            return "invalid_imsi"

        get_logger().debug("Sending IMSI: %s", imsi)
        try:
            payload = imsi_to_bcd(imsi)
        except ValueError as exc:
            get_logger().error("BCD conversion failed: %s", exc)
            return "bcd_error"

        try:
            response = self._udp.send(payload)
        except UdpError:
            get_logger().error("Failed to send/receive data")
            return "network_error"
        get_logger().info("Received server response: %s", response)
        return response

    def interactive_mode(
        self, stdin: TextIO | None = None, stdout: TextIO | None = None
    ) -> None:
        """Read IMSIs line by line and print each reply, until 'q', 'quit' or end of input."""
        source = sys.stdin if stdin is None else stdin
        sink = sys.stdout if stdout is None else stdout
        if self._udp is None:
            print("Client not initialized", file=sys.stderr)
            return

        print("PGW Client Interactive Mode", file=sink)
        print("Enter IMSI (10 - 15 digits) or 'q' to quit", file=sink)
        while True:
            print("IMSI> ", end="", file=sink, flush=True)
            line = source.readline()
            if not line:
                break
            entry = line.rstrip("\r\n")
            if entry in ("q", "quit"):
                break
            print(f"Response: {self.send_imsi(entry)}", file=sink)


def main(argv: Sequence[str] | None = None) -> int:
    """Send one IMSI, or run interactively, using the given configuration file."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not 1 <= len(args) <= 2:
        print(
            f"Usage: {_PROG} [config_file] [IMSI]\n"
            "Examples:\n"
            f"  {_PROG} config.json         # Interactive mode with config\n"
            f"  {_PROG} config.json 123456  # Single request mode",
            file=sys.stderr,
        )
        return 1

    try:
        client = PgwClient()
        try:
            client.init(args[0])
        except Exception as exc:
            print(f"Failed to initialize client: {exc}", file=sys.stderr)
            return 1

        if len(args) == 2:
            print(client.send_imsi(args[1]))
        else:
            client.interactive_mode()
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())