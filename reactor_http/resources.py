"""Values a reactor answers a request with.

Every response is exactly one of:

* a :class:`MimeResource` payload (:class:`Text`, :class:`Xml`,
  :class:`CharacterStream` or :class:`ByteStream`), sent with status 200;
* a :class:`ResourceNotRepresentable` outcome carrying the status to send and
  an optional payload that is still written as the body.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Union
from xml.etree import ElementTree

from .errors import StreamConsumedError

XmlDocument = Union[ElementTree.Element, ElementTree.ElementTree]


class ResourceRepresentation:
    """Base of the response hierarchy."""


@dataclass
class MimeResource(ResourceRepresentation):
    """A payload tagged with its MIME type."""

    mime_type: str

    def __post_init__(self) -> None:
        if type(self) is MimeResource:
            raise TypeError("MimeResource is abstract; use Text, Xml, CharacterStream or ByteStream")


@dataclass
class Text(MimeResource):
    mime_type: str = field(default="text/plain", init=False)
    text: str


@dataclass
class Xml(MimeResource):
    mime_type: str = field(default="text/xml", init=False)
    document: XmlDocument

    @classmethod
    def parse(cls, markup: str) -> "Xml":
        return cls(ElementTree.fromstring(markup))

    def serialize(self) -> str:
        root = self.document
        if isinstance(root, ElementTree.ElementTree):
            root = root.getroot()
        return ElementTree.tostring(root, encoding="unicode")


@dataclass
class _SinglePassResource(MimeResource):
    _consumed: bool = field(default=False, init=False, repr=False, compare=False)

    @property
    def consumed(self) -> bool:
        return self._consumed

    def _claim(self) -> None:
        if self._consumed:
            raise StreamConsumedError(f"{type(self).__name__} ({self.mime_type}) was already consumed")
        self._consumed = True


@dataclass
class CharacterStream(_SinglePassResource):
    """Lazily produced characters; ``source`` may yield single characters or chunks."""

    source: Iterable[str]

    def consume(self) -> Iterator[str]:
        self._claim()
        return iter(self.source)


@dataclass
class ByteStream(_SinglePassResource):
    """Lazily produced bytes; ``stream`` may yield ``bytes`` chunks or ``int`` values."""

    stream: Iterable[Union[bytes, int]]

    def consume(self) -> Iterator[bytes]:
        self._claim()
        return (_as_bytes(unit) for unit in self.stream)


def _as_bytes(unit: Union[bytes, bytearray, memoryview, int]) -> bytes:
    if isinstance(unit, int):
        return bytes((unit,))
    return bytes(unit)


@dataclass
class ResourceNotRepresentable(ResourceRepresentation):
    """Non-success outcome: ``http_code`` is sent, ``details`` (if any) becomes the body."""

    http_code: int
    details: Optional[MimeResource] = None

    def __post_init__(self) -> None:
        if not 100 <= int(self.http_code) <= 599:
            raise ValueError(f"invalid HTTP status code: {self.http_code}")
        if self.details is not None and not isinstance(self.details, MimeResource):
            raise TypeError("details must be a MimeResource or None")


@dataclass
class ResourceNotFound(ResourceNotRepresentable):
    http_code: int = field(default=404, init=False)
    details: Optional[MimeResource] = field(default=None, init=False)


@dataclass
class ResourceUnauthorized(ResourceNotRepresentable):
    http_code: int = field(default=401, init=False)
    details: Optional[MimeResource] = field(default=None, init=False)


__all__ = [
    "ByteStream",
    "CharacterStream",
    "MimeResource",
    "ResourceNotFound",
    "ResourceNotRepresentable",
    "ResourceRepresentation",
    "ResourceUnauthorized",
    "Text",
    "Xml",
]
