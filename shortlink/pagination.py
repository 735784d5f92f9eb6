"""Paging requests and responses and the generic API response envelope."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Generic, TypeVar

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "SUCCESS_CODE",
    "PageReq",
    "PageResp",
    "Response",
    "convert_records",
]

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
SUCCESS_CODE = 10000

S = TypeVar("S")
D = TypeVar("D")
T = TypeVar("T")


@dataclass(frozen=True)
class PageReq:
    """A page request; ``current`` counts from 1."""

    current: int = 0
    size: int = 0

    def limit(self) -> int:
        if self.size <= 0:
            return DEFAULT_PAGE_SIZE
        return self.size

    def offset(self) -> int:
        if self.current <= 0:
            return 0
        return (self.current - 1) * self.size


@dataclass(frozen=True)
class PageResp(Generic[T]):
    """One page of records plus paging information."""

    total: int = 0
    current: int = 0
    size: int = 0
    records: list[T] = field(default_factory=list)

    def with_total(self, total: int) -> PageResp[T]:
        return replace(self, total=total)

    def with_current(self, current: int) -> PageResp[T]:
        return replace(self, current=current)

    def with_size(self, size: int) -> PageResp[T]:
        return replace(self, size=size)

    def with_records(self, records) -> PageResp[T]:
        return replace(self, records=list(records))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "current": self.current,
            "size": self.size,
            "records": list(self.records),
        }


def convert_records(page: PageResp[S], fn: Callable[[S], D]) -> PageResp[D]:
    """Map every record through ``fn``; records that fail to convert are logged and dropped."""
    records: list[D] = []
    for before in page.records:
        try:
            records.append(fn(before))
        except Exception as exc:
            logger.error("convert records failed", extra={"record": before, "error": str(exc)})
    return PageResp(total=page.total, current=page.current, size=page.size, records=records)


@dataclass(frozen=True)
class Response:
    """API response envelope; ``msg`` and ``data`` are left out when empty."""

    code: int
    msg: str = ""
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"code": self.code}
        if self.msg:
            out["msg"] = self.msg
        if self.data is not None:
            out["data"] = self.data
        return out