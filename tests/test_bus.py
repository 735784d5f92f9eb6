from dataclasses import dataclass

import pytest

from shortlink.bus import CommandBus, HandlerNotFoundError, QueryBus


@dataclass
class CreateLink:
    url: str


@dataclass
class FindLink:
    short: str


class RecordingHandler:
    def __init__(self):
        self.seen = []

    def handle(self, message):
        self.seen.append(message)


class EchoQueryHandler:
    def handle(self, query):
        return f"found:{query.short}"


def test_command_dispatch_reaches_handler():
    bus = CommandBus()
    handler = RecordingHandler()
    bus.register("CreateLink", handler)
    cmd = CreateLink("http://example.com")
    bus.dispatch(cmd)
    assert handler.seen == [cmd]


def test_command_without_handler_raises():
    bus = CommandBus()
    with pytest.raises(HandlerNotFoundError, match="no command handler for CreateLink"):
        bus.dispatch(CreateLink("x"))


def test_command_unregister():
    bus = CommandBus()
    bus.register("CreateLink", RecordingHandler())
    bus.unregister("CreateLink")
    with pytest.raises(HandlerNotFoundError):
        bus.dispatch(CreateLink("x"))


def test_command_handler_error_propagates():
    class Failing:
        def handle(self, cmd):
            raise ValueError("bad command")

    bus = CommandBus()
    bus.register("CreateLink", Failing())
    with pytest.raises(ValueError, match="bad command"):
        bus.dispatch(CreateLink("x"))


def test_query_dispatch_returns_result():
    bus = QueryBus()
    bus.register("FindLink", EchoQueryHandler())
    assert bus.dispatch(FindLink("abc")) == "found:abc"


def test_query_without_handler_raises():
    bus = QueryBus()
    bus.register("FindLink", EchoQueryHandler())
    bus.unregister("FindLink")
    with pytest.raises(HandlerNotFoundError, match="no query handler for FindLink"):
        bus.dispatch(FindLink("abc"))