"""Fetching page titles and favicons, plus URL and domain checks."""

from __future__ import annotations

import re
import string
from datetime import datetime, timedelta

import requests
from bs4 import BeautifulSoup

from shortlink.json_time import ZERO_TIME

__all__ = [
    "USER_AGENT",
    "DEFAULT_LINK_CACHE_EXPIRATION",
    "DEFAULT_CACHE_VALID_TIME",
    "REQUEST_TIMEOUT",
    "TITLE_FETCH_FAILED",
    "FetchError",
    "IconNotFoundError",
    "get_title_by_url",
    "get_favicon",
    "get_favicon_with_default",
    "get_title_and_favicon",
    "is_valid_domain",
    "is_valid_url",
    "link_cache_expiration",
]

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36 Edg/130.0.0.0"
)
DEFAULT_LINK_CACHE_EXPIRATION = timedelta(days=30)
DEFAULT_CACHE_VALID_TIME = 86_400_000  # milliseconds
REQUEST_TIMEOUT = 10.0
TITLE_FETCH_FAILED = "Error while fetching title."

_DOMAIN_RE = re.compile(
    r"^((?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,}|(?:\d{1,3}\.){3}\d{1,3}|localhost)(:\d{1,5})?$",
    re.ASCII,
)

_HEX = set(string.hexdigits)
_ALNUM = set(string.ascii_letters + string.digits)
_USERINFO_CHARS = _ALNUM | set("-._:~!$&'()*+,;=%@")
_HOST_CHARS = _ALNUM | set("-_.~!$&'()*+,;=:[]<>\"")


class FetchError(Exception):
    """A page could not be fetched or did not contain what was asked for."""


class IconNotFoundError(FetchError):
    """The page has no favicon link; ``title`` holds the page title if it was read."""

    def __init__(self, title: str = "") -> None:
        super().__init__("icon not found")
        self.title = title


def _fetch(url: str, headers: dict[str, str] | None = None) -> requests.Response:
    try:
        return requests.get(url, headers=headers, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as exc:
        raise FetchError(f"error while fetching Url: {exc}") from exc


def _status(resp: requests.Response) -> str:
    return f"{resp.status_code} {resp.reason or ''}".strip()


def _titles(soup: BeautifulSoup) -> str:
    return "".join(tag.get_text() for tag in soup.find_all("title"))


def _rel_words(tag) -> list[str]:
    rel = tag.get("rel")
    if rel is None:
        return []
    if isinstance(rel, str):
        return rel.split()
    return list(rel)


def get_title_by_url(url: str) -> str:
    """Title of the page at ``url``; a fixed message when the server does not answer 200."""
    with _fetch(url) as resp:
        if resp.status_code != requests.codes.ok:
            return TITLE_FETCH_FAILED
        return _titles(BeautifulSoup(resp.content, "html.parser"))


def get_favicon(url: str) -> str:
    """The ``href`` of the first ``<link>`` whose ``rel`` mentions an icon."""
    with _fetch(url, {"User-Agent": USER_AGENT}) as resp:
        if resp.status_code != requests.codes.ok:
            raise FetchError(f"failed to fetch website: {_status(resp)}")
        soup = BeautifulSoup(resp.content, "html.parser")
    for link in soup.find_all("link"):
        href = link.get("href") or ""
        if "icon" in " ".join(_rel_words(link)) and href:
            return href
    raise IconNotFoundError()


def get_favicon_with_default(url: str, default: str) -> str:
    """Like ``get_favicon`` but returns ``default`` on any failure."""
    try:
        favicon = get_favicon(url)
    except FetchError:
        return default
    return favicon or default


def get_title_and_favicon(url: str) -> tuple[str, str]:
    """Page title and the ``href`` of the last link whose ``rel`` words include ``icon``."""
    with _fetch(url, {"User-Agent": USER_AGENT}) as resp:
        if resp.status_code != requests.codes.ok:
            raise FetchError(f"failed to fetch website: {_status(resp)}")
        soup = BeautifulSoup(resp.content, "html.parser")
    title = _titles(soup)
    favicon = ""
    for link in soup.find_all("link"):
        if "icon" in _rel_words(link) and link.has_attr("href"):
            favicon = link["href"]
    if not favicon:
        raise IconNotFoundError(title)
    return title, favicon


def is_valid_domain(domain: str) -> bool:
    """Lower-case host name, dotted IPv4 address or ``localhost``, with an optional port."""
    return _DOMAIN_RE.fullmatch(domain) is not None


def _split_scheme(raw: str) -> tuple[str, str] | None:
    for i, ch in enumerate(raw):
        if ch.isascii() and ch.isalpha():
            continue
        if ch.isascii() and (ch.isdigit() or ch in "+-."):
            if i == 0:
                return "", raw
            continue
        if ch == ":":
            if i == 0:
                return None
            return raw[:i], raw[i + 1 :]
        return "", raw
    return "", raw


def _valid_escapes(text: str) -> bool:
    for i, ch in enumerate(text):
        if ch == "%" and (i + 2 >= len(text) + 0 and i + 2 > len(text) - 1 or not (
            text[i + 1] in _HEX and text[i + 2] in _HEX
        )):
            return False
    return True


def _valid_port(suffix: str) -> bool:
    if suffix == "":
        return True
    return suffix[0] == ":" and all(c in string.digits for c in suffix[1:])


def _valid_host(host: str) -> bool:
    if host.startswith("["):
        close = host.rfind("]")
        if close < 0 or not _valid_port(host[close + 1 :]):
            return False
    else:
        colon = host.rfind(":")
        if colon != -1 and not _valid_port(host[colon:]):
            return False
    if not _valid_escapes(host):
        return False
    return all(ch == "%" or not ch.isascii() or ch in _HOST_CHARS for ch in host)


def _valid_authority(authority: str) -> bool:
    userinfo, at, host = authority.rpartition("@")
    if at and not (all(ch in _USERINFO_CHARS for ch in userinfo) and _valid_escapes(userinfo)):
        return False
    return _valid_host(host)


def is_valid_url(url: str) -> bool:
    """Whether ``url`` is an absolute URI or an absolute path usable in a request line."""
    if not url or any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in url):
        return False
    if url == "*":
        return True
    split = _split_scheme(url)
    if split is None:
        return False
    scheme, rest = split
    rest = rest.partition("?")[0]
    if not rest.startswith("/"):
        return bool(scheme)
    if scheme and rest.startswith("//"):
        authority, slash, path = rest[2:].partition("/")
        if not _valid_authority(authority):
            return False
        rest = slash + path
    return _valid_escapes(rest)


def link_cache_expiration(valid_date: datetime | None) -> timedelta:
    """Time until ``valid_date``; 30 days when no date is set."""
    if valid_date is None or valid_date.replace(tzinfo=None) == ZERO_TIME:
        return DEFAULT_LINK_CACHE_EXPIRATION
    return valid_date - datetime.now(valid_date.tzinfo)