"""Building blocks for a URL-shortening service: errors, paging, buses, hashing,
sharding, Redis cache, lock and idempotency helpers, link metadata, validation,
logging, shutdown handling and a Flask HTTP server."""

__version__ = "0.1.0"