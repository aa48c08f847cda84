"""Socket transport: parses requests, dispatches them and streams responses back."""

from __future__ import annotations

import json
import logging
import socket
import socketserver
import struct
import threading
from contextlib import suppress
from http import HTTPStatus
from typing import Dict, Optional, Tuple
from urllib.parse import parse_qsl, urlsplit

from .dispatch import Predicate, ReactorRegistry, Transform
from .errors import ResponseAbortedError, ResponseCommittedError
from .http import BODY_ENCODING, Get, HttpRequest, Post, ResourceRequest, encode_body
from .materialize import materialize
from .resources import ResourceNotRepresentable

MAX_HEADER_BYTES = 16 * 1024
MAX_BODY_BYTES = 5 * 1024 * 1024
DEFAULT_PORT = 8080
DEFAULT_TIMEOUT = 30.0
ALLOWED_METHODS = "GET, HEAD, POST"

logger = logging.getLogger("reactor_http.server")


def read_request(conn: socket.socket, addr: Tuple[str, int]) -> HttpRequest | None:
    """Read one request from ``conn``; ``None`` if the peer closed first."""

    buffer = bytearray()
    while b"\r\n\r\n" not in buffer:
        chunk = conn.recv(4096)
        if not chunk:
            return None
        buffer.extend(chunk)
        if len(buffer) > MAX_HEADER_BYTES:
            raise ValueError("header section too large")

    header_part, body_part = buffer.split(b"\r\n\r\n", 1)
    lines = header_part.split(b"\r\n")
    request_line = lines[0].decode("iso-8859-1").strip()
    parts = request_line.split()
    if len(parts) != 3:
        raise ValueError("invalid request line")
    method, target, version = parts
    if version not in {"HTTP/1.1", "HTTP/1.0"}:
        raise ValueError("unsupported HTTP version")

    headers: Dict[str, str] = {}
    for raw in lines[1:]:
        if not raw:
            continue
        if b":" not in raw:
            raise ValueError("invalid header")
        name, value = raw.split(b":", 1)
        headers[name.decode("ascii", "ignore").strip().lower()] = value.decode("iso-8859-1").strip()

    content_length = 0
    if headers.get("content-length"):
        try:
            content_length = int(headers["content-length"])
        except ValueError as exc:
            raise ValueError("invalid content-length") from exc
    if content_length < 0 or content_length > MAX_BODY_BYTES:
        raise ValueError("invalid content-length")

    # POST bodies are drained so the socket stays in sync; reactors never see them.
    body = bytearray(body_part[:content_length])
    while len(body) < content_length:
        chunk = conn.recv(min(65536, content_length - len(body)))
        if not chunk:
            break
        body.extend(chunk)

    parsed = urlsplit(target)
    return HttpRequest(
        method=method.upper(),
        target=target,
        path=parsed.path or "/",
        query=parsed.query,
        headers=headers,
        body=bytes(body),
        client=addr,
    )


def parse_parameters(query: str) -> Dict[str, str]:
    """Decode a query string keeping the first value of repeated names."""

    params: Dict[str, str] = {}
    for name, value in parse_qsl(query, keep_blank_values=True):
        params.setdefault(name, value)
    return params


def to_resource_request(request: HttpRequest) -> Optional[ResourceRequest]:
    """Classify ``request`` as :class:`Get` or :class:`Post`; ``None`` for other methods."""

    parameters = parse_parameters(request.query)
    if request.method in ("GET", "HEAD"):
        return Get(request.path, parameters)
    if request.method == "POST":
        return Post(request.path, parameters)
    return None


class SocketResponseSink:
    """Writes a response to a client socket.

    Status and headers are held back until the first body write. A body given
    to :meth:`write_body` is framed with ``Content-Length``; streamed chunks
    are not, and the closing connection marks the end of the body.
    """

    def __init__(self, conn: socket.socket, method: str = "GET") -> None:
        self._conn = conn
        self._out = conn.makefile("wb")
        self._head_only = method == "HEAD"
        self.status = int(HTTPStatus.OK)
        self.headers: Dict[str, str] = {}
        self.committed = False
        self.finished = False

    def set_status(self, code: int) -> None:
        self._ensure_open()
        self.status = int(code)

    def set_header(self, name: str, value: str) -> None:
        self._ensure_open()
        self.headers[name] = value

    def write_body(self, data: str | bytes) -> None:
        payload = encode_body(data)
        if not self.committed:
            self.headers["Content-Length"] = str(len(payload))
            self._commit()
        elif "Content-Length" in self.headers:
            raise ResponseCommittedError("body already written")
        self._send(payload)

    def write_bytes(self, chunk: bytes) -> None:
        if not self.committed:
            self._commit()
        self._send(chunk)

    def write_chars(self, chunk: str) -> None:
        self.write_bytes(chunk.encode(BODY_ENCODING))

    def reset(self) -> None:
        """Forget status and headers that have not been sent yet."""

        self._ensure_open()
        self.status = int(HTTPStatus.OK)
        self.headers.clear()

    def finish(self) -> None:
        if self.finished:
            return
        if not self.committed:
            self.headers.setdefault("Content-Length", "0")
            self._commit()
        self._out.flush()
        self.finished = True

    def abort(self) -> None:
        """Make the eventual close reset the connection instead of ending it cleanly."""

        with suppress(OSError):
            self._conn.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))

    def close(self) -> None:
        with suppress(OSError):
            self._out.close()

    def _ensure_open(self) -> None:
        if self.committed:
            raise ResponseCommittedError("response head already sent")

    def _commit(self) -> None:
        self.headers.setdefault("Connection", "close")
        try:
            reason = HTTPStatus(self.status).phrase
        except ValueError:
            reason = ""
        status_line = f"HTTP/1.1 {self.status} {reason}\r\n"
        header_lines = "".join(f"{name.title()}: {value}\r\n" for name, value in self.headers.items())
        self._out.write(status_line.encode("iso-8859-1"))
        self._out.write(header_lines.encode("iso-8859-1"))
        self._out.write(b"\r\n")
        self.committed = True

    def _send(self, payload: bytes) -> None:
        if payload and not self._head_only:
            self._out.write(payload)


def handle_request(request: HttpRequest, registry: ReactorRegistry, sink: SocketResponseSink) -> None:
    """Dispatch ``request`` and materialize the outcome into ``sink``.

    Raises :class:`ResponseAbortedError` when the body failed after the head
    was already sent; the connection cannot carry a clean response anymore.
    """

    resource_request = to_resource_request(request)
    if resource_request is None:
        sink.set_header("Allow", ALLOWED_METHODS)
        result = ResourceNotRepresentable(int(HTTPStatus.METHOD_NOT_ALLOWED))
    else:
        try:
            result = registry.dispatch(resource_request)
        except Exception:  # noqa: BLE001
            logger.exception("reactor failed for %s %s", request.method, request.path)
            result = ResourceNotRepresentable(int(HTTPStatus.INTERNAL_SERVER_ERROR))

    try:
        materialize(result, sink)
    except Exception as exc:  # noqa: BLE001
        if sink.committed:
            logger.exception("response to %s %s failed mid-stream", request.method, request.path)
            raise ResponseAbortedError(str(exc)) from exc
        logger.exception("could not produce response for %s %s", request.method, request.path)
        sink.reset()
        sink.set_status(int(HTTPStatus.INTERNAL_SERVER_ERROR))

    logger.info("%s %s -> %s", request.method, request.target, sink.status)


def serve_connection(
    conn: socket.socket,
    addr: Tuple[str, int],
    registry: ReactorRegistry,
    timeout: float = DEFAULT_TIMEOUT,
) -> None:
    with conn:
        conn.settimeout(timeout)
        try:
            request = read_request(conn, addr)
            if request is None:
                return
        except ValueError as exc:
            logger.warning("malformed request from %s: %s", addr[0], exc)
            _send_simple_response(conn, HTTPStatus.BAD_REQUEST, str(exc))
            return
        except OSError as exc:
            logger.warning("could not read request from %s: %s", addr[0], exc)
            return

        sink = SocketResponseSink(conn, request.method)
        try:
            handle_request(request, registry, sink)
            sink.finish()
        except ResponseAbortedError:
            sink.abort()
        except OSError as exc:
            logger.warning("connection to %s lost: %s", addr[0], exc)
        finally:
            sink.close()


def _send_simple_response(conn: socket.socket, status: HTTPStatus, message: str) -> None:
    payload = json.dumps({"error": message}).encode()
    status_line = f"HTTP/1.1 {int(status)} {status.phrase}\r\n"
    headers = (
        "Content-Type: application/json\r\n"
        f"Content-Length: {len(payload)}\r\n"
        "Connection: close\r\n"
    )
    with suppress(OSError):
        conn.sendall(status_line.encode("iso-8859-1"))
        conn.sendall(headers.encode("iso-8859-1"))
        conn.sendall(b"\r\n")
        conn.sendall(payload)


class ConnectionHandler(socketserver.BaseRequestHandler):
    registry: ReactorRegistry
    timeout: float = DEFAULT_TIMEOUT

    def handle(self) -> None:
        serve_connection(self.request, self.client_address, self.registry, self.timeout)


class ThreadingTCPServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
    daemon_threads = True
    allow_reuse_address = True


class ReactorServer:
    """HTTP server routing every request through a :class:`ReactorRegistry`."""

    def __init__(
        self,
        port: int = DEFAULT_PORT,
        host: str = "0.0.0.0",
        registry: Optional[ReactorRegistry] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.host = host
        self.registry = registry if registry is not None else ReactorRegistry()
        self.timeout = timeout
        self._port = port
        self._server: Optional[ThreadingTCPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._serving = False

    @property
    def port(self) -> int:
        if self._server is not None:
            return self._server.server_address[1]
        return self._port

    @property
    def running(self) -> bool:
        return self._server is not None

    def react(self, predicate: Predicate, transform: Optional[Transform] = None, *, name: Optional[str] = None):
        return self.registry.react(predicate, transform, name=name)

    def bind(self) -> ThreadingTCPServer:
        if self._server is not None:
            raise RuntimeError("server already started")
        handler_cls = type("ConfiguredConnectionHandler", (ConnectionHandler,), {})
        handler_cls.registry = self.registry
        handler_cls.timeout = self.timeout
        self._server = ThreadingTCPServer((self.host, self._port), handler_cls)
        logger.info("listening on %s:%s", self.host, self.port)
        return self._server

    def start(self) -> None:
        """Serve on a background thread."""

        server = self.bind()
        self._thread = threading.Thread(target=server.serve_forever, name="reactor-http", daemon=True)
        self._thread.start()

    def serve_forever(self) -> None:
        """Serve on the calling thread until :meth:`stop` is called from elsewhere."""

        server = self._server or self.bind()
        self._serving = True
        server.serve_forever()

    def stop(self) -> None:
        server, self._server = self._server, None
        if server is None:
            return
        # shutdown() waits for a serve loop, so it is only valid once one was entered
        if self._serving or self._thread is not None:
            server.shutdown()
        self._serving = False
        server.server_close()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        logger.info("stopped")

    def __enter__(self) -> "ReactorServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def create_server(port: int = DEFAULT_PORT, host: str = "0.0.0.0") -> ReactorServer:
    return ReactorServer(port, host)


def run_server(registry: ReactorRegistry, port: int = DEFAULT_PORT, host: str = "0.0.0.0") -> None:
    """Serve ``registry`` on the calling thread until interrupted."""

    server = ReactorServer(port, host, registry)
    server.bind()
    print(f"[server] Listening on {host}:{server.port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\n[server] Shutting down...")
    finally:
        server.stop()


__all__ = [
    "ReactorServer",
    "SocketResponseSink",
    "create_server",
    "handle_request",
    "parse_parameters",
    "read_request",
    "run_server",
    "serve_connection",
    "to_resource_request",
]
