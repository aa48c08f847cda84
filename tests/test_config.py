from __future__ import annotations

import pytest

from reactor_http.config import load_config


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("REACTOR_HOST", "REACTOR_PORT", "REACTOR_REQUEST_TIMEOUT", "REACTOR_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    cfg = load_config()
    assert cfg.host == "0.0.0.0"
    assert cfg.port == 8080
    assert cfg.request_timeout == 30.0
    assert cfg.log_level == "INFO"


def test_values_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("REACTOR_HOST", "127.0.0.1")
    monkeypatch.setenv("REACTOR_PORT", "0")
    monkeypatch.setenv("REACTOR_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("REACTOR_LOG_LEVEL", "debug")
    cfg = load_config()
    assert cfg.host == "127.0.0.1"
    assert cfg.port == 0
    assert cfg.request_timeout == 2.5
    assert cfg.log_level == "DEBUG"


@pytest.mark.parametrize("raw", ["-1", "65536", "http"])
def test_invalid_port_raises(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("REACTOR_PORT", raw)
    with pytest.raises(ValueError):
        load_config()


@pytest.mark.parametrize("raw", ["0", "-3", "soon"])
def test_invalid_timeout_raises(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("REACTOR_REQUEST_TIMEOUT", raw)
    with pytest.raises(ValueError):
        load_config()
