"""Command and query buses that route a message to a handler by its type name."""

from __future__ import annotations

from typing import Any, Protocol

__all__ = [
    "CommandHandler",
    "QueryHandler",
    "HandlerNotFoundError",
    "CommandBus",
    "QueryBus",
]


class CommandHandler(Protocol):
    def handle(self, command: Any) -> None: ...


class QueryHandler(Protocol):
    def handle(self, query: Any) -> Any: ...


class HandlerNotFoundError(LookupError):
    """No handler is registered for the message's type."""


def _type_name(message: object) -> str:
    return type(message).__name__


class CommandBus:
    """Dispatches commands to the handler registered under their class name."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}

    def register(self, name: str, handler: CommandHandler) -> None:
        self._handlers[name] = handler

    def unregister(self, name: str) -> None:
        self._handlers.pop(name, None)

    def dispatch(self, cmd: object) -> None:
        command_type = _type_name(cmd)
        handler = self._handlers.get(command_type)
        if handler is None:
            raise HandlerNotFoundError(f"no command handler for {command_type}")
        handler.handle(cmd)


class QueryBus:
    """Dispatches queries to the handler registered under their class name."""

    def __init__(self) -> None:
        self._handlers: dict[str, QueryHandler] = {}

    def register(self, query_type: str, handler: QueryHandler) -> None:
        self._handlers[query_type] = handler

    def unregister(self, query_type: str) -> None:
        self._handlers.pop(query_type, None)

    def dispatch(self, query: object) -> Any:
        query_type = _type_name(query)
        handler = self._handlers.get(query_type)
        if handler is None:
            raise HandlerNotFoundError(f"no query handler for {query_type}")
        return handler.handle(query)