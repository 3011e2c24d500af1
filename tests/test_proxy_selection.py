from __future__ import annotations

import pytest
import requests

from agent.authorizer.errors import ProxyURLParseError
from agent.authorizer.proxy import (
    ProxyFuncConfig,
    no_proxy_cidrs_from_environment,
    parse_proxy_url,
    proxier_with_no_proxy_cidr,
    proxy_from_environment,
    request_url,
)


def _select(no_proxy: str, url: str) -> str | None:
    cfg = ProxyFuncConfig(http_proxy="http://proxy1:8080", https_proxy="http://proxy2:8443", no_proxy=no_proxy)
    return cfg.proxy_func()(url)


def test_scheme_selects_matching_proxy() -> None:
    assert _select("", "http://cloud.example.com/") == "http://proxy1:8080"
    assert _select("", "https://cloud.example.com/") == "http://proxy2:8443"
    assert _select("", "ftp://cloud.example.com/") is None


def test_https_does_not_fall_back_to_http_proxy() -> None:
    proxy = ProxyFuncConfig(http_proxy="http://proxy1:8080").proxy_func()
    assert proxy("https://cloud.example.com/") is None


@pytest.mark.parametrize("url", ["http://localhost/", "http://localhost:9090/", "http://127.0.0.1/", "http://[::1]:8080/"])
def test_loopback_is_never_proxied(url: str) -> None:
    assert _select("", url) is None


@pytest.mark.parametrize(
    "no_proxy,url,proxied",
    [
        ("*", "http://cloud.example.com/", False),
        ("example.com", "http://example.com/", False),
        ("example.com", "http://api.example.com/", False),
        ("example.com", "http://notexample.com/", True),
        (".example.com", "http://example.com/", True),
        (".example.com", "http://api.example.com/", False),
        ("*.example.com", "http://api.example.com/", False),
        ("*.example.com", "http://example.com/", True),
        ("EXAMPLE.com", "http://API.example.COM/", False),
        ("example.com:8080", "http://example.com:8080/", False),
        ("example.com:8080", "http://example.com/", True),
        ("example.com:443", "https://example.com/", False),
        ("10.1.2.3", "http://10.1.2.3/", False),
        ("10.1.2.3:8080", "http://10.1.2.3/", True),
        ("10.0.0.0/8", "http://10.255.0.1/", False),
        ("10.0.0.0/8", "http://172.16.0.1/", True),
        ("fd00::/8", "http://[fd00::1]/", False),
        ("[fd00::1]:8443", "https://[fd00::1]:8443/", False),
        (" foo.com , 10.0.0.0/8 ", "http://bar.foo.com/", False),
        ("10.0.0.0/8", "http://ten.example.com/", True),
    ],
)
def test_no_proxy_matching(no_proxy: str, url: str, proxied: bool) -> None:
    got = _select(no_proxy, url)
    assert (got is not None) is proxied


def test_selector_accepts_request_objects() -> None:
    proxy = ProxyFuncConfig(http_proxy="http://proxy1:8080").proxy_func()
    assert proxy(requests.Request("GET", "http://cloud.example.com/")) == "http://proxy1:8080"
    assert proxy(requests.Request("GET", "http://cloud.example.com/").prepare()) == "http://proxy1:8080"


def test_request_url_rejects_objects_without_url() -> None:
    with pytest.raises(TypeError):
        request_url(object())


@pytest.mark.parametrize(
    "value,expected",
    [
        ("", None),
        (None, None),
        ("http://proxy1:8080", "http://proxy1:8080"),
        ("proxy1:8080", "http://proxy1:8080"),
        ("https://user:pw@proxy1:8443", "https://user:pw@proxy1:8443"),
    ],
)
def test_parse_proxy_url(value, expected) -> None:
    assert parse_proxy_url(value) == expected


@pytest.mark.parametrize(
    "value",
    [
        "http://proxy.example:abc",
        "http://proxy.example:99999",
        "ftp://proxy.example",
        "socks5://proxy1:1080",
        "http://",
    ],
)
def test_parse_proxy_url_rejects_malformed(value: str) -> None:
    with pytest.raises(ProxyURLParseError):
        parse_proxy_url(value)


def test_no_proxy_cidrs_from_environment_prefers_uppercase(monkeypatch) -> None:
    monkeypatch.setenv("NO_PROXY", "10.0.0.0/8, example.com, 172.30.0.0/16, bogus/99, 10.1.2.3")
    monkeypatch.setenv("no_proxy", "192.168.0.0/16")
    assert [str(n) for n in no_proxy_cidrs_from_environment()] == ["10.0.0.0/8", "172.30.0.0/16"]


def test_no_proxy_cidrs_from_environment_lowercase(monkeypatch) -> None:
    monkeypatch.setenv("no_proxy", "192.168.0.0/16")
    assert [str(n) for n in no_proxy_cidrs_from_environment()] == ["192.168.0.0/16"]


def test_cidr_wrapper_captures_environment_at_construction(monkeypatch) -> None:
    monkeypatch.setenv("NO_PROXY", "10.0.0.0/8")
    proxy = proxier_with_no_proxy_cidr(lambda _t: "http://envproxy:3128")
    monkeypatch.setenv("NO_PROXY", "192.168.0.0/16")

    assert proxy("http://10.0.0.5/") is None
    assert proxy("http://192.168.0.5/") == "http://envproxy:3128"


def test_cidr_wrapper_ipv6(monkeypatch) -> None:
    monkeypatch.setenv("NO_PROXY", "fd00::/8")
    proxy = proxier_with_no_proxy_cidr(lambda _t: "http://envproxy:3128")
    assert proxy("https://[fd00::10]:6443/") is None
    assert proxy("https://[2001:db8::1]/") == "http://envproxy:3128"


def test_proxy_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("HTTPS_PROXY", "envproxy:3128")
    monkeypatch.setenv("NO_PROXY", "internal.example.com")
    assert proxy_from_environment("https://cloud.example.com/") == "http://envproxy:3128"
    assert proxy_from_environment("https://internal.example.com/") is None
    assert proxy_from_environment("http://cloud.example.com/") is None


def test_proxy_from_environment_malformed(monkeypatch) -> None:
    monkeypatch.setenv("HTTP_PROXY", "http://envproxy:notaport")
    with pytest.raises(ProxyURLParseError):
        proxy_from_environment("http://cloud.example.com/")
