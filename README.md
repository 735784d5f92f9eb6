# shortlink

Building blocks for a URL-shortening service, for Python 3.11 and later.

## What is in the package

| Module | What it provides |
| --- | --- |
| `shortlink.errors` | `SlugError`, an exception with an `ErrorType` and a message. Also `new_request_error(msg)` and predefined errors such as `LINK_NOT_EXISTS` and `REDIS_KEY_NOT_EXIST`. |
| `shortlink.pagination` | `PageReq` with `limit()` and `offset()`. An immutable `PageResp` with `with_total` / `with_current` / `with_size` / `with_records`. `convert_records(page, fn)` and the `Response` envelope. |
| `shortlink.json_time` | `marshal_json_time`, `unmarshal_json_time` and `scan_json_time`, for timestamps in `YYYY-MM-DD HH:MM:SS` form. |
| `shortlink.bus` | `CommandBus` and `QueryBus`. Each routes a message to the handler registered under the message's class name and raises `HandlerNotFoundError` when there is none. |
| `shortlink.decorators` | Logging and metrics wrappers for handlers: `apply_command_decorators`, `apply_query_decorators` and `NoOpMetrics`. |
| `shortlink.hashing` | The hex digests `md5`, `sha1`, `sha256` and `sha512`. `to_base62`, and `hash_to_base62`, which is a 32-bit FNV-1a hash written in base 62. |
| `shortlink.dates` | `date_range(start, end)`, every day from start to end inclusive. |
| `shortlink.sharding` | `shard_suffixes(n)` and `hash_mod_shard(value)`, which picks one of 16 shards from a SHA-256 of the key. |
| `shortlink.lock` | `RedisLock`, a token-based Redis lock with fixed-interval retries. It raises `LockNotHeldError` on release or refresh of a lock it does not hold. |
| `shortlink.cache` | `RedisDistributedCache`, a JSON cache with bloom-filter checks and lock-guarded loading (`safe_get`, `safe_put`, `safe_delete`, `double_delete`, …). Also `connect_to_redis`, `setup_bloom_filter` and `is_nil_or_empty`. |
| `shortlink.idempotency` | `IdempotencyHandler`, which keeps "being consumed" and "consumed" flags for message ids in Redis. |
| `shortlink.web` | `get_title_by_url`, `get_favicon`, `get_favicon_with_default` and `get_title_and_favicon`, which fetch pages with `requests`. Also `is_valid_domain`, `is_valid_url` and `link_cache_expiration`. |
| `shortlink.client_info` | `get_actual_ip`, `get_os`, `get_browser`, `get_device`, `get_network`, `extract_domain` and `link_cache_valid_time`. |
| `shortlink.logging_setup` | `AsyncWriter`, a background-thread buffered writer. `init_logger(log_path)` sets up a rotating file plus stdout at debug level. |
| `shortlink.shutdown` | `ShutdownHook`. It waits for SIGINT/SIGTERM or extra signals, then runs cleanup functions. |
| `shortlink.validation` | `Validator` and `get_validator()`. They check rules declared in dataclass field metadata and raise a request `SlugError`. |
| `shortlink.server` | `create_app`, `register_uri_title`, `run_http_server`, `error_response` and `HttpError`. |

## Installing

Install the package from its source directory with your usual installer. The `test` extra adds `pytest` and `responses`.

## Examples

### Short codes and shards

```python
from shortlink.hashing import hash_to_base62, to_base62
from shortlink.sharding import shard_suffixes, hash_mod_shard

to_base62(0)        # "0"
to_base62(61)       # "z"
code = hash_to_base62("https://example.com/some/long/path")

shard_suffixes(4)   # ["_0", "_1", "_2", "_3"]
table = "t_link" + hash_mod_shard("default-group")
```

### Pagination

```python
from shortlink.pagination import PageReq, PageResp, convert_records

req = PageReq(current=3, size=20)
req.limit()    # 20
req.offset()   # 40

page = PageResp(total=2, current=1, size=10, records=["1", "x"])
convert_records(page, int).records   # [1]; records that fail to convert are dropped
```

### Dispatching commands

```python
from shortlink.bus import CommandBus

class CreateLink:
    def __init__(self, url):
        self.url = url

class CreateLinkHandler:
    def handle(self, cmd):
        print("creating", cmd.url)

bus = CommandBus()
bus.register("CreateLink", CreateLinkHandler())
bus.dispatch(CreateLink("https://example.com"))
```

### Errors

```python
from shortlink.errors import LINK_NOT_EXISTS, new_request_error

try:
    raise new_request_error("invalid original url")
except Exception as err:
    print(err)  # invalid original url

LINK_NOT_EXISTS.error_type   # ErrorType.SERVICE_ERROR
```

### Caching with Redis

```python
from shortlink.cache import connect_to_redis, RedisDistributedCache, SHORT_URI_CREATE_BLOOM_FILTER
from shortlink.lock import RedisLock

client = connect_to_redis("localhost:6379")   # pings and reserves the bloom filter
cache = RedisDistributedCache(client, RedisLock(client), app_name="short-link")

value = cache.safe_get(
    "link:abc",
    dict,
    loader=lambda: {"origin": "https://example.com"},
    expiration=600,
    bloom_filter=SHORT_URI_CREATE_BLOOM_FILTER,
    bloom_key="abc",
)
```

The bloom filter commands (`BF.RESERVE`, `BF.EXISTS`, `BF.ADD`) require a Redis server with the bloom module.

### Describing a visitor

```python
from shortlink.client_info import get_browser, get_network, extract_domain
from shortlink.web import is_valid_domain

get_browser("Mozilla/5.0 ... Firefox/120.0")                  # "Mozilla Firefox"
get_network({"X-Forwarded-For": "192.168.1.4"}, "8.8.8.8")    # "WIFI"
extract_domain("https://www.example.com/path")                # "example.com"
is_valid_domain("localhost:8080")                             # True
```

### Serving HTTP

```python
from shortlink.server import create_app, register_uri_title, run_http_server

def register(bp):
    register_uri_title(bp)

    @bp.get("/ping")
    def ping():
        return {"status": "ok"}

app = create_app(register, "/api/short-link", "short-link", 1000)
stop = run_http_server(app, 8080)
# ... later
stop()
```

`create_app` mounts the routes added by `register` under the base path. It also does the following:

- serves `/metrics`;
- limits each client address to `max_requests` requests per minute, answering 429 when the limit is passed;
- adds `Access-Control-Allow-Origin` and `X-Request-ID` headers;
- turns raised errors into JSON through `error_response`. A `SlugError` is mapped by its type: authorization gives 401, request-param gives 400, resource-not-found gives 404, and service-error gives 200 with a "Business error" status. Anything else gives 500.

`run_http_server` serves the app in a background thread. It returns a `RunningServer`, and calling that shuts the server down.

## What the package does not do

- It has no event bus or message-queue integration.
- It has no IP geolocation lookup.
- It has no configuration-file loading.
- It has no e-mail sending.
- It provides no command-line program. Assembling a running service means wiring these pieces together in your own code: Redis connection, cache, lock, routes via `create_app`, and shutdown via `ShutdownHook`.
- It contains no link or statistics business logic and no database models.