from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .http import ResourceRequest
from .paths import normalize_path
from .resources import ResourceNotFound, ResourceRepresentation

Predicate = Callable[[ResourceRequest], bool]
Transform = Callable[[ResourceRequest], ResourceRepresentation]

ROUTABLE_METHODS = ("GET", "POST")

logger = logging.getLogger("reactor_http.dispatch")


@dataclass(frozen=True, slots=True)
class Reactor:
    """A predicate deciding applicability paired with the transform answering it."""

    predicate: Predicate
    transform: Transform
    name: str = ""

    def matches(self, request: ResourceRequest) -> bool:
        return bool(self.predicate(request))

    def __call__(self, request: ResourceRequest) -> ResourceRepresentation:
        return self.transform(request)


class ReactorRegistry:
    """Ordered reactors; the most recently registered one is tried first.

    The reactors live in an immutable tuple that ``register`` replaces under a
    lock, so dispatching threads iterate a consistent snapshot without locking.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reactors: Tuple[Reactor, ...] = ()

    def __len__(self) -> int:
        return len(self._reactors)

    def register(self, reactor: Reactor) -> None:
        with self._lock:
            self._reactors = (reactor,) + self._reactors
            total = len(self._reactors)
        logger.debug("registered reactor %s (%d total)", reactor.name or "<anonymous>", total)

    def react(
        self,
        predicate: Predicate,
        transform: Optional[Transform] = None,
        *,
        name: Optional[str] = None,
    ):
        """Register ``transform`` for requests accepted by ``predicate``.

        Without ``transform`` this returns a decorator registering the
        decorated function and handing it back unchanged.
        """

        if transform is None:

            def decorator(func: Transform) -> Transform:
                self.react(predicate, func, name=name)
                return func

            return decorator

        self.register(Reactor(predicate, transform, name or getattr(transform, "__name__", "")))
        return None

    def snapshot(self) -> Tuple[Reactor, ...]:
        """Reactors in matching order."""

        return self._reactors

    def find(self, request: ResourceRequest) -> Optional[Reactor]:
        for reactor in self._reactors:
            if reactor.matches(request):
                return reactor
        return None

    def dispatch(self, request: ResourceRequest) -> ResourceRepresentation:
        reactor = self.find(request)
        if reactor is None:
            logger.debug("no reactor for %s %s", request.method, request.path)
            return ResourceNotFound()
        result = reactor(request)
        if not isinstance(result, ResourceRepresentation):
            raise TypeError(
                f"reactor {reactor.name or '<anonymous>'!r} returned {type(result).__name__}, "
                "expected a ResourceRepresentation"
            )
        return result


def route(method: str, path: str) -> Predicate:
    """Predicate matching ``method`` and ``path`` compared segment-wise, ignoring case."""

    method = method.upper()
    if method not in ROUTABLE_METHODS:
        raise ValueError(f"unsupported method for routing: {method}")
    expected = normalize_path(path)

    def predicate(request: ResourceRequest) -> bool:
        return request.method == method and request.segments == expected

    return predicate


def get_path(path: str) -> Predicate:
    return route("GET", path)


def post_path(path: str) -> Predicate:
    return route("POST", path)


def any_request(request: ResourceRequest) -> bool:
    return True


__all__ = [
    "Predicate",
    "Reactor",
    "ReactorRegistry",
    "Transform",
    "any_request",
    "get_path",
    "post_path",
    "route",
]
