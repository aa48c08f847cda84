from __future__ import annotations

from http import HTTPStatus
from typing import Callable

from .http import ResponseSink
from .resources import (
    ByteStream,
    CharacterStream,
    MimeResource,
    ResourceNotRepresentable,
    ResourceRepresentation,
    Text,
    Xml,
)


def materialize(result: ResourceRepresentation, sink: ResponseSink) -> None:
    """Write ``result`` into ``sink`` as status, ``Content-Type`` and body.

    Payloads are sent with 200. A not-representable outcome sends its own
    code, followed by its details payload when there is one; without details
    neither a content type nor a body is written.
    """

    if isinstance(result, MimeResource):
        write_payload = _payload_writer(result)
        sink.set_status(int(HTTPStatus.OK))
        write_payload(sink)
    elif isinstance(result, ResourceNotRepresentable):
        write_payload = _payload_writer(result.details) if result.details is not None else None
        sink.set_status(int(result.http_code))
        if write_payload is not None:
            write_payload(sink)
    else:
        raise TypeError(f"cannot materialize {type(result).__name__}")


def _payload_writer(resource: MimeResource) -> Callable[[ResponseSink], None]:
    if isinstance(resource, Text):
        body = resource.text

        def write(sink: ResponseSink) -> None:
            sink.set_header("Content-Type", resource.mime_type)
            sink.write_body(body)

    elif isinstance(resource, Xml):

        def write(sink: ResponseSink) -> None:
            sink.set_header("Content-Type", resource.mime_type)
            sink.write_body(resource.serialize())

    elif isinstance(resource, CharacterStream):

        def write(sink: ResponseSink) -> None:
            sink.set_header("Content-Type", resource.mime_type)
            for chunk in resource.consume():
                sink.write_chars(chunk)

    elif isinstance(resource, ByteStream):

        def write(sink: ResponseSink) -> None:
            sink.set_header("Content-Type", resource.mime_type)
            for chunk in resource.consume():
                sink.write_bytes(chunk)

    else:
        raise TypeError(f"unsupported payload type: {type(resource).__name__}")

    return write


__all__ = ["materialize"]
