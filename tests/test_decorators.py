import logging
from dataclasses import dataclass

import pytest

from shortlink.decorators import (
    CommandMetricsDecorator,
    NoOpMetrics,
    QueryMetricsDecorator,
    action_name,
    apply_command_decorators,
    apply_query_decorators,
)


@dataclass
class CreateLink:
    url: str


@dataclass
class FindLink:
    short: str


class RecordingMetrics:
    def __init__(self):
        self.calls = []

    def inc(self, key, value):
        self.calls.append((key, value))


class OkCommandHandler:
    def __init__(self):
        self.seen = []

    def handle(self, cmd):
        self.seen.append(cmd)


class FailingHandler:
    def handle(self, message):
        raise RuntimeError("kaboom")


class EchoQueryHandler:
    def handle(self, query):
        return query.short.upper()


def test_action_name_is_class_name():
    assert action_name(CreateLink("x")) == "CreateLink"


def test_noop_metrics_accepts_calls():
    wrapped = CommandMetricsDecorator(OkCommandHandler(), NoOpMetrics())
    assert wrapped.handle(CreateLink("x")) is None


def test_command_metrics_success():
    metrics = RecordingMetrics()
    handler = OkCommandHandler()
    CommandMetricsDecorator(handler, metrics).handle(CreateLink("x"))
    assert [key for key, _ in metrics.calls] == [
        "commands.createlink.duration",
        "commands.createlink.success",
    ]
    assert metrics.calls[1][1] == 1
    assert len(handler.seen) == 1


def test_command_metrics_failure():
    metrics = RecordingMetrics()
    with pytest.raises(RuntimeError):
        CommandMetricsDecorator(FailingHandler(), metrics).handle(CreateLink("x"))
    assert metrics.calls[-1] == ("commands.createlink.failure", 1)


def test_query_metrics_returns_result():
    metrics = RecordingMetrics()
    result = QueryMetricsDecorator(EchoQueryHandler(), metrics).handle(FindLink("abc"))
    assert result == "ABC"
    assert metrics.calls[-1] == ("querys.findlink.success", 1)


def test_apply_command_decorators_logs_success(caplog):
    metrics = RecordingMetrics()
    handler = OkCommandHandler()
    logger = logging.getLogger("test.commands")
    wrapped = apply_command_decorators(handler, logger, metrics)
    with caplog.at_level(logging.DEBUG, logger="test.commands"):
        wrapped.handle(CreateLink("http://example.com"))
    messages = [record.getMessage() for record in caplog.records]
    assert messages == ["Executing command", "Command executed successfully"]
    assert caplog.records[0].command == "CreateLink"
    assert "http://example.com" in caplog.records[0].command_body
    assert handler.seen == [CreateLink("http://example.com")]
    assert ("commands.createlink.success", 1) in metrics.calls


def test_apply_command_decorators_logs_failure(caplog):
    metrics = RecordingMetrics()
    logger = logging.getLogger("test.commands.fail")
    wrapped = apply_command_decorators(FailingHandler(), logger, metrics)
    with caplog.at_level(logging.DEBUG, logger="test.commands.fail"):
        with pytest.raises(RuntimeError, match="kaboom"):
            wrapped.handle(CreateLink("x"))
    last = caplog.records[-1]
    assert last.getMessage() == "Failed to execute command"
    assert last.levelno == logging.ERROR
    assert last.error == "kaboom"
    assert ("commands.createlink.failure", 1) in metrics.calls


def test_apply_query_decorators(caplog):
    metrics = RecordingMetrics()
    logger = logging.getLogger("test.queries")
    wrapped = apply_query_decorators(EchoQueryHandler(), logger, metrics)
    with caplog.at_level(logging.DEBUG, logger="test.queries"):
        result = wrapped.handle(FindLink("abc"))
    assert result == "ABC"
    assert caplog.records[-1].getMessage() == "Query executed successfully"
    assert caplog.records[-1].query == "FindLink"