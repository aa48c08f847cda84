from __future__ import annotations


class ReactorHttpError(Exception):
    """Base class for errors raised by :mod:`reactor_http`."""


class StreamConsumedError(ReactorHttpError, RuntimeError):
    """A single-pass stream was consumed a second time."""


class ResponseCommittedError(ReactorHttpError, RuntimeError):
    """Status or headers were changed after the response head was sent."""


class ResponseAbortedError(ReactorHttpError):
    """The response failed after transmission started and cannot be completed."""


__all__ = [
    "ReactorHttpError",
    "StreamConsumedError",
    "ResponseCommittedError",
    "ResponseAbortedError",
]
