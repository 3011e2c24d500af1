"""
Outgoing request authorization for the agent.

- bearer token from the secret configuration
- proxy selection: explicit cluster proxy settings, else the environment (CIDR-aware NO_PROXY)
"""

from agent.authorizer.cluster_authorizer import Authorizer, get_authorizer
from agent.authorizer.errors import (
    AuthorizerError,
    ProxyURLParseError,
    TokenError,
    TokenInvalidError,
    TokenNotConfiguredError,
)
from agent.authorizer.proxy import ProxyFuncConfig, ProxySelector, proxier_with_no_proxy_cidr, proxy_from_environment

__all__ = [
    "Authorizer",
    "get_authorizer",
    "AuthorizerError",
    "TokenError",
    "TokenInvalidError",
    "TokenNotConfiguredError",
    "ProxyURLParseError",
    "ProxyFuncConfig",
    "ProxySelector",
    "proxier_with_no_proxy_cidr",
    "proxy_from_environment",
]
