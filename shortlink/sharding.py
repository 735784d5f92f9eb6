"""Hash-based table sharding: 16 shards chosen from a SHA-256 of the key."""

from __future__ import annotations

from shortlink.hashing import sha256

__all__ = ["NUMBER_OF_SHARDS", "shard_suffixes", "hash_mod_shard"]

NUMBER_OF_SHARDS = 16


def shard_suffixes(number_of_shards: int) -> list[str]:
    """Table-name suffixes ``_0`` .. ``_{n-1}``."""
    return [f"_{i}" for i in range(number_of_shards)]


def hash_mod_shard(value: object) -> str:
    """Suffix of the shard that holds ``value``."""
    if value == "":
        raise ValueError("invalid username")
    text = "" if value is None else str(value)
    shard = int(sha256(text)[:8], 16)
    return f"_{shard % NUMBER_OF_SHARDS}"