from datetime import datetime, timedelta

import pytest

from shortlink.client_info import (
    extract_domain,
    get_actual_ip,
    get_browser,
    get_device,
    get_network,
    get_os,
    link_cache_valid_time,
)
from shortlink.json_time import ZERO_TIME
from shortlink.web import USER_AGENT

CHROME_UA = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/126.0 Safari/537.36"
FIREFOX_UA = "Mozilla/5.0 (Windows NT 10.0; rv:120.0) Gecko/20100101 Firefox/120.0"
IPHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148"


def test_actual_ip_skips_unknown_header():
    headers = {"X-Forwarded-For": "UNKNOWN", "Proxy-Client-IP": "203.0.113.7"}
    assert get_actual_ip(headers, "198.51.100.1:5000") == "203.0.113.7"


def test_actual_ip_header_lookup_ignores_case():
    headers = {"x-forwarded-for": "203.0.113.9"}
    assert get_actual_ip(headers, "198.51.100.1:5000") == "203.0.113.9"


def test_actual_ip_prefers_earlier_header():
    headers = {"HTTP_X_FORWARDED_FOR": "203.0.113.2", "WL-Proxy-Client-IP": "203.0.113.3"}
    assert get_actual_ip(headers, "peer") == "203.0.113.3"


def test_actual_ip_falls_back_to_remote_addr():
    assert get_actual_ip({}, "198.51.100.1:5000") == "198.51.100.1:5000"


@pytest.mark.parametrize(
    ("user_agent", "expected"),
    [
        (USER_AGENT, "Windows"),
        (CHROME_UA, "Linux"),
        (IPHONE_UA, "Mac OS"),
        ("Mozilla/5.0 (Android 14)", "Linux"),
        ("SomeBot/1.0", "Unknown"),
    ],
)
def test_get_os(user_agent, expected):
    assert get_os(user_agent) == expected


@pytest.mark.parametrize(
    ("user_agent", "expected"),
    [
        (USER_AGENT, "Microsoft Edge"),
        (CHROME_UA, "Google Chrome"),
        (FIREFOX_UA, "Mozilla Firefox"),
        ("Mozilla/5.0 (Macintosh) Version/17.0 Safari/605.1.15", "Apple Safari"),
        ("Opera/9.80 (X11)", "Opera"),
        ("Mozilla/4.0 (compatible; MSIE 8.0)", "Internet Explorer"),
        ("curl/8.0", "Unknown"),
    ],
)
def test_get_browser(user_agent, expected):
    assert get_browser(user_agent) == expected


def test_get_device():
    assert get_device(IPHONE_UA) == "Mobile"
    assert get_device(USER_AGENT) == "PC"


def test_get_network_private_ranges_are_wifi():
    assert get_network({"X-Forwarded-For": "192.168.1.10"}, "203.0.113.1") == "WIFI"
    assert get_network({}, "10.1.2.3") == "WIFI"


def test_get_network_public_is_mobile():
    assert get_network({}, "203.0.113.1") == "Mobile"


def test_extract_domain_strips_www_and_port():
    assert extract_domain("https://www.example.com:8080/path") == "example.com"


def test_extract_domain_keep_port():
    assert extract_domain("https://www.example.com:8080/path", keep_port=True) == "example.com:8080"


def test_extract_domain_strips_userinfo():
    assert extract_domain("http://user@example.com/") == extract_domain("http://example.com/")


def test_extract_domain_ipv6_literal():
    assert extract_domain("http://[::1]:80/") == "::1"


@pytest.mark.parametrize("url", ["http://[::1/", "http://example.com:abc/", "no scheme here"])
def test_extract_domain_unparsable_is_empty(url):
    assert extract_domain(url) == ""


def test_link_cache_valid_time_unset():
    assert link_cache_valid_time(None) == 0
    assert link_cache_valid_time(ZERO_TIME) == 0


def test_link_cache_valid_time_future_and_past():
    ahead = timedelta(hours=1)
    limit = ahead // timedelta(milliseconds=1)
    assert 0 < link_cache_valid_time(datetime.now() + ahead) <= limit
    assert link_cache_valid_time(datetime.now() - ahead) < 0