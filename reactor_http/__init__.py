"""Minimal HTTP server routing requests to ordered reactors."""

from .dispatch import Reactor, ReactorRegistry, any_request, get_path, post_path, route
from .errors import ReactorHttpError, ResponseAbortedError, ResponseCommittedError, StreamConsumedError
from .http import Get, HttpRequest, HttpResponse, Post, ResourceRequest, ResponseSink
from .materialize import materialize
from .paths import normalize_path
from .resources import (
    ByteStream,
    CharacterStream,
    MimeResource,
    ResourceNotFound,
    ResourceNotRepresentable,
    ResourceRepresentation,
    ResourceUnauthorized,
    Text,
    Xml,
)
from .server import ReactorServer, create_server, run_server

__all__ = [
    "ByteStream",
    "CharacterStream",
    "Get",
    "HttpRequest",
    "HttpResponse",
    "MimeResource",
    "Post",
    "Reactor",
    "ReactorHttpError",
    "ReactorRegistry",
    "ReactorServer",
    "ResourceNotFound",
    "ResourceNotRepresentable",
    "ResourceRepresentation",
    "ResourceRequest",
    "ResourceUnauthorized",
    "ResponseAbortedError",
    "ResponseCommittedError",
    "ResponseSink",
    "StreamConsumedError",
    "Text",
    "Xml",
    "any_request",
    "create_server",
    "get_path",
    "materialize",
    "normalize_path",
    "post_path",
    "route",
    "run_server",
]
