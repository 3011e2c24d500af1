"""
`requests` wiring for the authorizer.

The session built here asks the authorizer for the bearer header on every request and
asks the proxy selector where to send it. The selector replaces requests' own
environment proxy handling (`trust_env` is off).
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from requests.auth import AuthBase

from agent.authorizer.cluster_authorizer import Authorizer
from agent.authorizer.proxy import ProxySelector


class ClusterTokenAuth(AuthBase):
    def __init__(self, authorizer: Authorizer) -> None:
        self.authorizer = authorizer

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        self.authorizer.authorize(r)
        return r


class ProxySelectingAdapter(HTTPAdapter):
    """HTTPAdapter that routes each request through the proxy its selector picks."""

    def __init__(self, selector: ProxySelector, **kwargs: Any) -> None:
        self.selector = selector
        super().__init__(**kwargs)

    def proxies_for(self, request: requests.PreparedRequest) -> Dict[str, str]:
        proxy: Optional[str] = self.selector(request)
        if not proxy:
            return {}
        return {urlparse(request.url or "").scheme: proxy}

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:  # type: ignore[override]
        kwargs["proxies"] = self.proxies_for(request)
        return super().send(request, **kwargs)


def new_session(authorizer: Authorizer) -> requests.Session:
    """
    Session for talking to the cluster's upstream services.

    The proxy decision is fixed when the session is built; build a new session after
    proxy configuration changes.
    """
    session = requests.Session()
    session.trust_env = False
    session.auth = ClusterTokenAuth(authorizer)
    adapter = ProxySelectingAdapter(authorizer.new_system_or_configured_proxy())
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session
