"""Hex digests and base-62 encoding of string hashes."""

from __future__ import annotations

import hashlib

__all__ = ["CHARS", "md5", "sha1", "sha256", "sha512", "to_base62", "hash_to_base62"]

CHARS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

_FNV32_OFFSET = 2166136261
_FNV32_PRIME = 16777619


def md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def sha1(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def sha512(text: str) -> str:
    return hashlib.sha512(text.encode("utf-8")).hexdigest()


def to_base62(num: int) -> str:
    """Encode a non-negative integer in base 62, most significant digit first."""
    if num < 0:
        raise ValueError("number must not be negative")
    if num == 0:
        return CHARS[0]
    digits = []
    base = len(CHARS)
    while num > 0:
        num, remainder = divmod(num, base)
        digits.append(CHARS[remainder])
    return "".join(reversed(digits))


def _fnv1a_32(data: bytes) -> int:
    value = _FNV32_OFFSET
    for byte in data:
        value = ((value ^ byte) * _FNV32_PRIME) & 0xFFFFFFFF
    return value


def hash_to_base62(text: str) -> str:
    """32-bit FNV-1a hash of the text, in base 62."""
    return to_base62(_fnv1a_32(text.encode("utf-8")))