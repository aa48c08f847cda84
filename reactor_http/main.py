from __future__ import annotations

import contextlib
import logging
import sys
from typing import Iterator
from xml.etree import ElementTree

from .config import load_config
from .dispatch import ReactorRegistry, get_path
from .http import ResourceRequest
from .resources import (
    CharacterStream,
    ResourceNotRepresentable,
    ResourceRepresentation,
    ResourceUnauthorized,
    Text,
    Xml,
)
from .server import ReactorServer

MAX_NUMBERS = 10_000


def _numbers(count: int) -> Iterator[str]:
    for value in range(1, count + 1):
        yield f"{value}\n"


def build_registry() -> ReactorRegistry:
    """Sample reactors served by ``main``."""

    registry = ReactorRegistry()

    @registry.react(get_path("/health"))
    def health(_: ResourceRequest) -> ResourceRepresentation:
        return Text("ok")

    @registry.react(get_path("/hello"))
    def hello(request: ResourceRequest) -> ResourceRepresentation:
        name = request.param("name") or "world"
        return Text(f"Hello, {name}!")

    @registry.react(get_path("/about.xml"))
    def about(_: ResourceRequest) -> ResourceRepresentation:
        root = ElementTree.Element("server", name="reactor-http")
        ElementTree.SubElement(root, "status").text = "running"
        return Xml(root)

    @registry.react(get_path("/numbers"))
    def numbers(request: ResourceRequest) -> ResourceRepresentation:
        raw = request.param("count", "10")
        try:
            count = int(raw)
        except ValueError:
            count = -1
        if count < 0 or count > MAX_NUMBERS:
            return ResourceNotRepresentable(400, Text(f"count must be between 0 and {MAX_NUMBERS}"))
        return CharacterStream("text/plain", _numbers(count))

    @registry.react(get_path("/private"))
    def private(_: ResourceRequest) -> ResourceRepresentation:
        return ResourceUnauthorized()

    return registry


def main() -> None:
    config = load_config()
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    server = ReactorServer(config.port, config.host, build_registry(), config.request_timeout)
    server.bind()
    print(f"[reactor-http] listening on {config.host}:{server.port}")
    with contextlib.suppress(KeyboardInterrupt):
        server.serve_forever()
    server.stop()
    print("[reactor-http] shutting down")


def run() -> None:  # pragma: no cover - cli entry point
    try:
        main()
    except Exception as exc:  # noqa: BLE001
        print(f"[reactor-http] fatal error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover - cli entry point
    run()
