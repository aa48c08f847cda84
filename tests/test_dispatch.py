from __future__ import annotations

import threading

import pytest

from reactor_http.dispatch import Reactor, ReactorRegistry, any_request, get_path, post_path, route
from reactor_http.http import Get, Post, ResourceRequest
from reactor_http.resources import ResourceNotFound, ResourceRepresentation, Text


class CountingTransform:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.calls = 0

    def __call__(self, request: ResourceRequest) -> ResourceRepresentation:
        self.calls += 1
        return Text(self.reply)


def test_dispatch_without_reactors_is_not_found() -> None:
    assert ReactorRegistry().dispatch(Get("/anything")) == ResourceNotFound()


def test_dispatch_without_matching_reactor_is_not_found() -> None:
    registry = ReactorRegistry()
    transform = CountingTransform("a")
    registry.react(get_path("/a"), transform)

    assert registry.dispatch(Get("/b")) == ResourceNotFound()
    assert transform.calls == 0


def test_last_registered_reactor_wins() -> None:
    registry = ReactorRegistry()
    first = CountingTransform("first")
    second = CountingTransform("second")
    registry.react(any_request, first)
    registry.react(any_request, second)

    assert registry.dispatch(Get("/x")) == Text("second")
    assert first.calls == 0
    assert second.calls == 1


def test_only_the_matching_transform_runs_once() -> None:
    registry = ReactorRegistry()
    transforms = {name: CountingTransform(name) for name in ("a", "b", "c")}
    for name, transform in transforms.items():
        registry.react(get_path(f"/{name}"), transform)

    assert registry.dispatch(Get("/b")) == Text("b")
    assert {name: t.calls for name, t in transforms.items()} == {"a": 0, "b": 1, "c": 0}


def test_predicates_after_the_first_match_are_not_evaluated() -> None:
    registry = ReactorRegistry()
    evaluated: list[str] = []

    def tracking(name: str, result: bool):
        def predicate(request: ResourceRequest) -> bool:
            evaluated.append(name)
            return result

        return predicate

    registry.react(tracking("oldest", True), CountingTransform("oldest"))
    registry.react(tracking("middle", True), CountingTransform("middle"))
    registry.react(tracking("newest", False), CountingTransform("newest"))

    assert registry.dispatch(Get("/")) == Text("middle")
    assert evaluated == ["newest", "middle"]


def test_registering_same_reactor_twice_creates_two_entries() -> None:
    registry = ReactorRegistry()
    reactor = Reactor(any_request, CountingTransform("x"), "x")
    registry.register(reactor)
    registry.register(reactor)
    assert len(registry) == 2
    assert registry.snapshot() == (reactor, reactor)


def test_snapshot_is_in_matching_order() -> None:
    registry = ReactorRegistry()
    registry.react(any_request, CountingTransform("a"), name="a")
    registry.react(any_request, CountingTransform("b"), name="b")
    assert [reactor.name for reactor in registry.snapshot()] == ["b", "a"]


def test_react_as_decorator_returns_function() -> None:
    registry = ReactorRegistry()

    @registry.react(get_path("/hello"))
    def hello(request: ResourceRequest) -> ResourceRepresentation:
        return Text("hello")

    assert hello(Get("/")) == Text("hello")
    assert registry.snapshot()[0].name == "hello"
    assert registry.dispatch(Get("/HELLO/")) == Text("hello")


def test_transform_errors_propagate() -> None:
    registry = ReactorRegistry()

    def broken(request: ResourceRequest) -> ResourceRepresentation:
        raise RuntimeError("boom")

    registry.react(any_request, broken)
    with pytest.raises(RuntimeError, match="boom"):
        registry.dispatch(Get("/"))


def test_transform_must_return_a_representation() -> None:
    registry = ReactorRegistry()
    registry.react(any_request, lambda request: "plain string")
    with pytest.raises(TypeError):
        registry.dispatch(Get("/"))


def test_route_matches_method_and_normalized_path() -> None:
    predicate = route("get", "/Users/Me")
    assert predicate(Get("/users//me/"))
    assert not predicate(Post("/users/me"))
    assert not predicate(Get("/users"))
    assert post_path("/submit")(Post("/SUBMIT"))


def test_route_rejects_unsupported_methods() -> None:
    with pytest.raises(ValueError):
        route("PUT", "/x")


def test_registration_during_dispatch_sees_consistent_snapshots() -> None:
    registry = ReactorRegistry()
    registry.react(any_request, CountingTransform("base"))
    errors: list[BaseException] = []
    stop = threading.Event()

    def dispatch_loop() -> None:
        try:
            while not stop.is_set():
                result = registry.dispatch(Get("/"))
                assert isinstance(result, Text)
        except BaseException as exc:  # noqa: BLE001
            errors.append(exc)

    workers = [threading.Thread(target=dispatch_loop) for _ in range(4)]
    for worker in workers:
        worker.start()
    for index in range(200):
        registry.react(get_path(f"/r{index}"), CountingTransform(str(index)))
    stop.set()
    for worker in workers:
        worker.join()

    assert errors == []
    assert len(registry) == 201
