"""Client and server configuration loaded from JSON files."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

ALLOWED_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "WARN", "ERROR", "CRITICAL", "OFF")


class ConfigError(RuntimeError):
    """Raised when a configuration file is missing, malformed or invalid."""


def _check_port(port: int, message: str) -> None:
    if port <= 0 or port > 65535:
        raise ConfigError(message)


def _check_log_level(level: str) -> None:
    if level not in ALLOWED_LOG_LEVELS:
        raise ConfigError("Invalid log level")


@dataclass(frozen=True)
class ClientConfig:
    """Settings of the PGW client."""

    server_ip: str
    server_port: int
    log_file: str = ""
    log_level: str = "INFO"
    console_output: bool = False

    def __post_init__(self) -> None:
        if not self.server_ip:
            raise ConfigError("Server IP cannot be empty")
        _check_port(self.server_port, "Invalid server port number")
        _check_log_level(self.log_level)


@dataclass(frozen=True)
class ServerConfig:
    """Settings of the PGW server."""

    udp_ip: str
    udp_port: int
    session_timeout_sec: int
    cdr_file: str
    http_port: int
    graceful_shutdown_rate: int
    log_file: str
    log_level: str
    console_output: bool = False
    blacklist: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "blacklist", tuple(self.blacklist))
        if not self.udp_ip:
            raise ConfigError("UDP IP cannot be empty")
        _check_port(self.udp_port, "Invalid UDP port number")
        _check_port(self.http_port, "Invalid HTTP port number")
        if self.session_timeout_sec <= 0:
            raise ConfigError("Session timeout must be positive")
        if self.graceful_shutdown_rate < 0:
            raise ConfigError("Graceful shutdown rate cannot be negative")
        _check_log_level(self.log_level)
        for imsi in self.blacklist:
            if not imsi or len(imsi) > 15 or not all(c in "0123456789" for c in imsi):
                raise ConfigError(f"Invalid IMSI in blacklist: {imsi}")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unsupported JSON constant: {name}")


def _read_json(path: str | os.PathLike[str]) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.exists():
        raise ConfigError(f"Config file does not exist: {path}")
    try:
        with file_path.open(encoding="utf-8") as handle:
            text = handle.read()
    except OSError as exc:
        raise ConfigError(f"Could not open config file: {path}") from exc
    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise ConfigError(f"JSON parse error: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a JSON object")
    return data


def _get(data: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    if key not in data:
        return default
    value = data[key]
    if kind is bool:
        if isinstance(value, bool):
            return value
    elif kind is int:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return int(value)
    elif isinstance(value, kind):
        return value
    raise ConfigError(f"Config key '{key}' must be of type {kind.__name__}")


def load_client_config(path: str | os.PathLike[str]) -> ClientConfig:
    """Read and validate a client configuration file."""
    data = _read_json(path)
    return ClientConfig(
        server_ip=_get(data, "server_ip", str, ""),
        server_port=_get(data, "server_port", int, 0),
        log_file=_get(data, "log_file", str, ""),
        log_level=_get(data, "log_level", str, "INFO"),
        console_output=_get(data, "console_output", bool, False),
    )


def load_server_config(path: str | os.PathLike[str]) -> ServerConfig:
    """Read and validate a server configuration file."""
    data = _read_json(path)
    blacklist: list[str] = []
    raw_blacklist = data.get("blacklist")
    if isinstance(raw_blacklist, list):
        for item in raw_blacklist:
            if not isinstance(item, str):
                raise ConfigError("Blacklist entries must be strings")
            blacklist.append(item)
    return ServerConfig(
        udp_ip=_get(data, "udp_ip", str, ""),
        udp_port=_get(data, "udp_port", int, 0),
        session_timeout_sec=_get(data, "session_timeout_sec", int, 0),
        cdr_file=_get(data, "cdr_file", str, ""),
        http_port=_get(data, "http_port", int, 0),
        graceful_shutdown_rate=_get(data, "graceful_shutdown_rate", int, 0),
        log_file=_get(data, "log_file", str, ""),
        log_level=_get(data, "log_level", str, ""),
        console_output=_get(data, "console_output", bool, False),
        blacklist=tuple(blacklist),
    )