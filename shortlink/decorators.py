"""Logging and metrics wrappers around command and query handlers."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol

__all__ = [
    "MetricsClient",
    "NoOpMetrics",
    "action_name",
    "CommandLoggingDecorator",
    "CommandMetricsDecorator",
    "QueryLoggingDecorator",
    "QueryMetricsDecorator",
    "apply_command_decorators",
    "apply_query_decorators",
]

_log = logging.getLogger(__name__)


class MetricsClient(Protocol):
    def inc(self, key: str, value: int) -> None: ...


class _Handler(Protocol):
    def handle(self, message: Any) -> Any: ...


class NoOpMetrics:
    """Metrics client that stores nothing; increments only reach the debug log."""

    def inc(self, key: str, value: int) -> None:
        _log.debug("metric %s += %d", key, value)


def action_name(obj: object) -> str:
    """Name of the object's class, used to label logs and metrics."""
    return type(obj).__name__


@dataclass
class CommandLoggingDecorator:
    base: _Handler
    logger: logging.Logger

    def handle(self, cmd: Any) -> None:
        extra = {"command": action_name(cmd), "command_body": repr(cmd)}
        self.logger.debug("Executing command", extra=extra)
        try:
            self.base.handle(cmd)
        except Exception as exc:
            self.logger.error("Failed to execute command", extra={**extra, "error": str(exc)})
            raise
        self.logger.info("Command executed successfully", extra=extra)


@dataclass
class QueryLoggingDecorator:
    base: _Handler
    logger: logging.Logger

    def handle(self, query: Any) -> Any:
        extra = {"query": action_name(query), "query_body": repr(query)}
        self.logger.debug("Executing query", extra=extra)
        try:
            result = self.base.handle(query)
        except Exception as exc:
            self.logger.error("Failed to execute query", extra={**extra, "error": str(exc)})
            raise
        self.logger.info("Query executed successfully", extra=extra)
        return result


def _run_measured(prefix: str, base: _Handler, client: MetricsClient, message: Any) -> Any:
    start = time.monotonic()
    name = action_name(message).lower()
    succeeded = False
    try:
        result = base.handle(message)
        succeeded = True
        return result
    finally:
        client.inc(f"{prefix}.{name}.duration", int(time.monotonic() - start))
        outcome = "success" if succeeded else "failure"
        client.inc(f"{prefix}.{name}.{outcome}", 1)


@dataclass
class CommandMetricsDecorator:
    base: _Handler
    client: MetricsClient

    def handle(self, cmd: Any) -> None:
        _run_measured("commands", self.base, self.client, cmd)


@dataclass
class QueryMetricsDecorator:
    base: _Handler
    client: MetricsClient

    def handle(self, query: Any) -> Any:
        return _run_measured("querys", self.base, self.client, query)


def apply_command_decorators(
    handler: _Handler, logger: logging.Logger, metrics: MetricsClient
) -> CommandLoggingDecorator:
    """Wrap a command handler with metrics, then logging."""
    return CommandLoggingDecorator(CommandMetricsDecorator(handler, metrics), logger)


def apply_query_decorators(
    handler: _Handler, logger: logging.Logger, metrics: MetricsClient
) -> QueryLoggingDecorator:
    """Wrap a query handler with metrics, then logging."""
    return QueryLoggingDecorator(QueryMetricsDecorator(handler, metrics), logger)