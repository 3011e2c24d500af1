"""
Proxy selection for outgoing agent traffic.

A proxy selector takes a target (URL string or a request object with `.url`) and
returns the proxy URL to route through, or None for a direct connection.

Two sources:
- explicit settings (`ProxyFuncConfig`), which never look at the process environment
- the environment (HTTP_PROXY/HTTPS_PROXY/NO_PROXY via requests), optionally wrapped by
  `proxier_with_no_proxy_cidr` so NO_PROXY CIDR ranges exclude IP targets
"""

from __future__ import annotations

import ipaddress
import os
from typing import Any, Callable, List, Optional, Tuple, Union

import requests
from urllib3.exceptions import LocationParseError
from urllib3.util import parse_url

from agent.authorizer.errors import ProxyURLParseError

ProxySelector = Callable[[Any], Optional[str]]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]
IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_PROXY_SCHEMES = ("http", "https")
_DEFAULT_PORTS = {"http": "80", "https": "443"}


def request_url(target: Any) -> str:
    """Selector argument -> URL string. Accepts a URL or anything with a `.url`."""
    if isinstance(target, str):
        return target
    url = getattr(target, "url", None)
    if not isinstance(url, str):
        raise TypeError(f"cannot select a proxy for {type(target).__name__}: no url")
    return url


def parse_proxy_url(value: Optional[str]) -> Optional[str]:
    """
    Validate a proxy setting and return it as a URL string.

    `proxy.local:3128` is read as `http://proxy.local:3128`. An empty value means no proxy.
    """
    if not value:
        return None
    candidate = value if "://" in value else f"http://{value}"
    try:
        url = parse_url(candidate)
    except LocationParseError as e:
        raise ProxyURLParseError(value, str(e)) from e
    if (url.scheme or "").lower() not in _PROXY_SCHEMES:
        raise ProxyURLParseError(value, f"unsupported scheme {url.scheme!r}")
    if not url.host:
        raise ProxyURLParseError(value, "missing host")
    return url.url


def _parse_ip(host: str) -> Optional[IPAddress]:
    try:
        return ipaddress.ip_address(host)
    except ValueError:
        return None


def _split_target(url: str) -> Tuple[str, str, str]:
    """(scheme, host, port) with the host lowercased, unbracketed, and the default port filled in."""
    parsed = parse_url(url)
    scheme = (parsed.scheme or "").lower()
    host = (parsed.host or "").strip().strip("[]").lower()
    port = str(parsed.port) if parsed.port else _DEFAULT_PORTS.get(scheme, "")
    return scheme, host, port


def _split_host_port(entry: str) -> Tuple[str, str]:
    # [v6]:port, [v6], host:port, host, bare v6 (more than one colon, no brackets)
    if entry.startswith("["):
        end = entry.find("]")
        if end < 0:
            return entry, ""
        rest = entry[end + 1 :]
        return entry[1:end], rest[1:] if rest.startswith(":") else ""
    if entry.count(":") == 1:
        host, port = entry.split(":", 1)
        return host, port
    return entry, ""


class _DomainMatch:
    def __init__(self, host: str, port: str, match_host: bool) -> None:
        self.host = host  # always starts with "."
        self.port = port
        self.match_host = match_host

    def match(self, host: str, port: str) -> bool:
        if host.endswith(self.host) or (self.match_host and host == self.host[1:]):
            return not self.port or self.port == port
        return False


class ProxyFuncConfig:
    """
    Proxy settings given explicitly (not read from the environment).

    no_proxy is a comma-separated list of:
    - `*` (never proxy)
    - an IP (`10.1.2.3`, `[::1]:8443`) or a CIDR (`10.0.0.0/8`, `fd00::/8`)
    - `example.com` (the host and its subdomains), `.example.com` / `*.example.com` (subdomains only)
    Any host or IP entry may carry a `:port`. localhost and loopback IPs are never proxied.
    """

    def __init__(self, http_proxy: str = "", https_proxy: str = "", no_proxy: str = "") -> None:
        self.http_proxy = http_proxy
        self.https_proxy = https_proxy
        self.no_proxy = no_proxy

        self._match_all = False
        self._networks: List[IPNetwork] = []
        self._ips: List[Tuple[IPAddress, str]] = []
        self._domains: List[_DomainMatch] = []
        self._parse_no_proxy()

    def _parse_no_proxy(self) -> None:
        for raw in (self.no_proxy or "").split(","):
            entry = raw.strip().lower()
            if not entry:
                continue
            if entry == "*":
                self._match_all = True
                return
            if "/" in entry:
                try:
                    self._networks.append(ipaddress.ip_network(entry, strict=False))
                    continue
                except ValueError:
                    pass
            host, port = _split_host_port(entry)
            if not host:
                continue
            ip = _parse_ip(host)
            if ip is not None:
                self._ips.append((ip, port))
                continue
            if host.startswith("*."):
                host = host[1:]
            match_host = not host.startswith(".")
            if match_host:
                host = "." + host
            self._domains.append(_DomainMatch(host, port, match_host))

    def use_proxy(self, host: str, port: str) -> bool:
        """False when the target must be reached directly."""
        if not host:
            return True
        if host == "localhost":
            return False
        ip = _parse_ip(host)
        if ip is not None and ip.is_loopback:
            return False
        if self._match_all:
            return False
        if ip is not None:
            if any(ip in net for net in self._networks):
                return False
            for m_ip, m_port in self._ips:
                if m_ip == ip and (not m_port or m_port == port):
                    return False
        return not any(m.match(host, port) for m in self._domains)

    def proxy_for_url(self, url: str) -> Optional[str]:
        scheme, host, port = _split_target(url)
        if scheme == "https":
            value = self.https_proxy
        elif scheme == "http":
            value = self.http_proxy
        else:
            return None
        proxy = parse_proxy_url(value)
        if proxy is None or not self.use_proxy(host, port):
            return None
        return proxy

    def proxy_func(self) -> ProxySelector:
        def select(target: Any) -> Optional[str]:
            return self.proxy_for_url(request_url(target))

        return select


def proxy_from_environment(target: Any) -> Optional[str]:
    """Default environment resolver (HTTP(S)_PROXY, ALL_PROXY, NO_PROXY and lowercase forms)."""
    url = request_url(target)
    proxies = requests.utils.get_environ_proxies(url)
    return parse_proxy_url(requests.utils.select_proxy(url, proxies))


def no_proxy_cidrs_from_environment() -> List[IPNetwork]:
    no_proxy = os.getenv("NO_PROXY", "") or os.getenv("no_proxy", "") or ""
    cidrs: List[IPNetwork] = []
    for raw in no_proxy.split(","):
        entry = raw.strip()
        if "/" not in entry:
            continue
        try:
            cidrs.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            continue
    return cidrs


def proxier_with_no_proxy_cidr(delegate: ProxySelector) -> ProxySelector:
    """
    Wrap an environment resolver so IP targets inside a NO_PROXY CIDR go direct.

    CIDRs are captured from the environment now, not per call. Host names and IPs
    outside every range fall through to `delegate`.
    """
    cidrs = no_proxy_cidrs_from_environment()
    if not cidrs:
        return delegate

    def select(target: Any) -> Optional[str]:
        _, host, _ = _split_target(request_url(target))
        ip = _parse_ip(host)
        if ip is not None and any(ip in net for net in cidrs):
            return None
        return delegate(target)

    return select
