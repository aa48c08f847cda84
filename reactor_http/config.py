from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class ServerConfig:
    host: str
    port: int
    request_timeout: float
    log_level: str


def load_config() -> ServerConfig:
    host = os.environ.get("REACTOR_HOST", "0.0.0.0")
    port = _coerce_port(os.environ.get("REACTOR_PORT", "8080"))
    request_timeout = _coerce_timeout(os.environ.get("REACTOR_REQUEST_TIMEOUT", "30"))
    log_level = os.environ.get("REACTOR_LOG_LEVEL", "INFO").upper()
    return ServerConfig(host=host, port=port, request_timeout=request_timeout, log_level=log_level)


def _coerce_port(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"invalid port number: {raw}") from exc
    # 0 lets the OS pick a free port
    if value < 0 or value > 65535:
        raise ValueError(f"invalid port number: {raw}")
    return value


def _coerce_timeout(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"invalid request timeout: {raw}") from exc
    if value <= 0:
        raise ValueError(f"request timeout must be positive: {raw}")
    return value


__all__ = ["ServerConfig", "load_config"]
