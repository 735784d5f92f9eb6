"""Rule-based validation of dataclass fields declared through field metadata."""

from __future__ import annotations

import dataclasses
import re
from typing import Any, Callable
from urllib.parse import urlsplit

from shortlink.errors import new_request_error

__all__ = ["Validator", "get_validator"]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _is_zero(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    if isinstance(value, (int, float)):
        return value == 0
    return False


def _size(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return len(value)


def _url(value: Any, _: str) -> bool:
    try:
        parts = urlsplit(str(value))
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc or parts.path)


_RULES: dict[str, Callable[[Any, str], bool]] = {
    "required": lambda v, _: not _is_zero(v),
    "min": lambda v, p: _size(v) >= float(p),
    "max": lambda v, p: _size(v) <= float(p),
    "len": lambda v, p: _size(v) == float(p),
    "email": lambda v, _: _EMAIL_RE.match(str(v)) is not None,
    "url": _url,
    "oneof": lambda v, p: str(v) in p.split(),
}


class Validator:
    """Checks ``field(metadata={"validate": "required,min=3"})`` rules on a dataclass."""

    def validate(self, data: Any) -> None:
        """Raise a request error listing every field that breaks a rule."""
        if not dataclasses.is_dataclass(data) or isinstance(data, type):
            raise TypeError("validate expects a dataclass instance")
        messages = []
        for f in dataclasses.fields(data):
            spec = f.metadata.get("validate", "")
            if not spec:
                continue
            value = getattr(data, f.name)
            failed = self._first_failure(value, spec)
            if failed is not None:
                messages.append(f"[{f.name}]: '{value}' | Needs to implement '{failed}'")
        if messages:
            raise new_request_error(" and ".join(messages))

    @staticmethod
    def _first_failure(value: Any, spec: str) -> str | None:
        for rule in spec.split(","):
            tag, _, param = rule.strip().partition("=")
            if tag == "omitempty":
                if _is_zero(value):
                    return None
                continue
            check = _RULES.get(tag)
            if check is None:
                raise ValueError(f"unknown validation rule {tag!r}")
            try:
                ok = check(value, param)
            except (TypeError, ValueError):
                ok = False
            if not ok:
                return tag
        return None


_validator = Validator()


def get_validator() -> Validator:
    return _validator