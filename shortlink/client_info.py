"""Visitor details taken from request headers: real IP, OS, browser, device and network."""

from __future__ import annotations

import string
from collections.abc import Mapping
from datetime import datetime
from urllib.parse import urlsplit

from shortlink.json_time import ZERO_TIME

__all__ = [
    "IP_HEADERS",
    "get_actual_ip",
    "get_os",
    "get_browser",
    "get_device",
    "get_network",
    "extract_domain",
    "link_cache_valid_time",
]

IP_HEADERS = (
    "X-Forwarded-For",
    "Proxy-Client-IP",
    "WL-Proxy-Client-IP",
    "HTTP_CLIENT_IP",
    "HTTP_X_FORWARDED_FOR",
)

_OS_RULES = (
    (("windows",), "Windows"),
    (("mac",), "Mac OS"),
    (("linux",), "Linux"),
    (("android",), "Android"),
    (("iphone", "ipad"), "iOS"),
)

_BROWSER_RULES = (
    (("edg",), "Microsoft Edge"),
    (("chrome",), "Google Chrome"),
    (("firefox",), "Mozilla Firefox"),
    (("safari",), "Apple Safari"),
    (("opera",), "Opera"),
    (("msie", "trident"), "Internet Explorer"),
)

_DEVICE_RULES = ((("mobile",), "Mobile"),)
_DEFAULT_DEVICE = "PC"

_UNKNOWN = "Unknown"


def _header(headers: Mapping[str, str], name: str) -> str:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            if isinstance(value, (list, tuple)):
                return value[0] if value else ""
            return value
    return ""


def _classify(user_agent: str, rules, default: str = _UNKNOWN) -> str:
    lowered = user_agent.lower()
    for keywords, name in rules:
        if any(word in lowered for word in keywords):
            return name
    return default


def get_actual_ip(headers: Mapping[str, str], remote_addr: str) -> str:
    """First proxy header that holds a usable address, else the peer address."""
    for name in IP_HEADERS:
        value = _header(headers, name)
        if value and value.lower() != "unknown":
            return value
    return remote_addr


def get_os(user_agent: str) -> str:
    """Operating system named by the user agent, or ``Unknown``."""
    return _classify(user_agent, _OS_RULES)


def get_browser(user_agent: str) -> str:
    """Browser named by the user agent, or ``Unknown``."""
    return _classify(user_agent, _BROWSER_RULES)


def get_device(user_agent: str) -> str:
    """``Mobile`` when the user agent says so, ``PC`` otherwise."""
    device = _classify(user_agent, _DEVICE_RULES, default=_DEFAULT_DEVICE)
    return device


def get_network(headers: Mapping[str, str], remote_addr: str) -> str:
    """``WIFI`` for private 192.168/10 addresses, ``Mobile`` otherwise."""
    ip = get_actual_ip(headers, remote_addr)
    if ip.startswith(("192.168.", "10.")):
        return "WIFI"
    return "Mobile"


def _valid_port(suffix: str) -> bool:
    if suffix == "":
        return True
    return suffix[0] == ":" and all(c in string.digits for c in suffix[1:])


def _valid_host(host: str) -> bool:
    if host.startswith("["):
        close = host.rfind("]")
        return close >= 0 and _valid_port(host[close + 1 :])
    colon = host.rfind(":")
    return colon == -1 or _valid_port(host[colon:])


def _hostname(host: str) -> str:
    colon = host.rfind(":")
    if colon != -1 and _valid_port(host[colon:]):
        host = host[:colon]
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host


def extract_domain(url: str, keep_port: bool = False) -> str:
    """Host of ``url`` without a leading ``www.``; empty when the URL cannot be parsed."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return ""
    host = parts.netloc.rpartition("@")[2]
    if not _valid_host(host):
        return ""
    if not keep_port:
        host = _hostname(host)
    return host.removeprefix("www.")


def link_cache_valid_time(valid_date: datetime | None) -> int:
    """Milliseconds until ``valid_date``; 0 when no date is set."""
    if valid_date is None or valid_date.replace(tzinfo=None) == ZERO_TIME:
        return 0
    delta = valid_date - datetime.now(valid_date.tzinfo)
    micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
    if micros < 0:
        return -((-micros) // 1000)
    return micros // 1000