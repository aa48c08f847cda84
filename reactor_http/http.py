"""HTTP primitives shared by the dispatcher, the materializer and the server.

``HttpRequest`` is the request as read off the wire. Reactors never see it:
the transport turns it into a :class:`Get` or :class:`Post` value first.
Responses are written into a :class:`ResponseSink`; :class:`HttpResponse` is
the in-memory implementation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Mapping, Optional, Protocol, Tuple

from .paths import normalize_path

BODY_ENCODING = "utf-8"


@dataclass(slots=True)
class HttpRequest:
    """Represents an HTTP/1.1 request received by the server."""

    method: str
    target: str
    path: str
    query: str
    headers: Dict[str, str]
    body: bytes
    client: Optional[Tuple[str, int]] = None


@dataclass(frozen=True)
class ResourceRequest:
    """Request handed to reactor predicates and transforms."""

    method: ClassVar[str] = ""

    path: str = "/"
    parameters: Mapping[str, str] = field(default_factory=dict)

    @property
    def segments(self) -> List[str]:
        return normalize_path(self.path)

    def param(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.parameters.get(name, default)


@dataclass(frozen=True)
class Get(ResourceRequest):
    method: ClassVar[str] = "GET"


@dataclass(frozen=True)
class Post(ResourceRequest):
    method: ClassVar[str] = "POST"


class ResponseSink(Protocol):
    """Destination a response is materialized into."""

    def set_status(self, code: int) -> None:
        ...

    def set_header(self, name: str, value: str) -> None:
        ...

    def write_body(self, data: str | bytes) -> None:
        """Write a complete in-memory body."""

    def write_bytes(self, chunk: bytes) -> None:
        """Write the next chunk of a streamed byte body."""

    def write_chars(self, chunk: str) -> None:
        """Write the next chunk of a streamed character body."""


def encode_body(data: str | bytes) -> bytes:
    if isinstance(data, str):
        return data.encode(BODY_ENCODING)
    return bytes(data)


@dataclass(slots=True)
class HttpResponse:
    """Buffered response; collects everything written to it in memory."""

    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def ensure_content_length(self) -> None:
        """Guarantee the ``Content-Length`` header is present."""

        if "Content-Length" not in self.headers:
            self.headers["Content-Length"] = str(len(self.body))

    @property
    def text(self) -> str:
        return self.body.decode(BODY_ENCODING)

    def set_status(self, code: int) -> None:
        self.status = int(code)

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def write_body(self, data: str | bytes) -> None:
        self.body += encode_body(data)

    def write_bytes(self, chunk: bytes) -> None:
        self.body += bytes(chunk)

    def write_chars(self, chunk: str) -> None:
        self.body += chunk.encode(BODY_ENCODING)


__all__ = [
    "BODY_ENCODING",
    "Get",
    "HttpRequest",
    "HttpResponse",
    "Post",
    "ResourceRequest",
    "ResponseSink",
    "encode_body",
]
