"""Bearer-token auth and proxy selection for outgoing cluster traffic."""

from __future__ import annotations

import logging
from typing import Any

from agent.authorizer.errors import TokenInvalidError, TokenNotConfiguredError
from agent.authorizer.proxy import (
    ProxyFuncConfig,
    ProxySelector,
    proxier_with_no_proxy_cidr,
    proxy_from_environment,
)
from agent.config import ClusterConfigurator, EnvClusterConfigurator, EnvSecretConfigurator, SecretConfigurator

logger = logging.getLogger(__name__)

# Unicode White_Space; unlike str.isspace this leaves the \x1c-\x1f separators alone.
_TOKEN_SPACE = (
    "\t\n\v\f\r \x85\xa0\u1680"
    + "".join(chr(c) for c in range(0x2000, 0x200B))
    + "\u2028\u2029\u202f\u205f\u3000"
)


class Authorizer:
    """
    Authorizes requests for outgoing traffic.

    Configuration is read on every call; nothing is cached here, so secret and proxy
    changes apply to the next request.
    """

    def __init__(self, secret_configurator: SecretConfigurator, configurator: ClusterConfigurator) -> None:
        self.secret_configurator = secret_configurator
        self.configurator = configurator
        # Swapped in tests; production always resolves from the process environment.
        self.proxy_from_environment: ProxySelector = proxy_from_environment

    def authorize(self, request: Any) -> None:
        """Set `Authorization: Bearer <token>` on the request, in place."""
        if getattr(request, "headers", None) is None:
            request.headers = {}

        token = self.token()

        request.headers["Authorization"] = f"Bearer {token}"

    def new_system_or_configured_proxy(self) -> ProxySelector:
        """
        Proxy selector for the current configuration.

        Explicit cluster proxy settings win outright; otherwise proxies come from the
        environment, with NO_PROXY CIDR ranges honored for IP targets.
        """
        cfg = self.configurator.config()
        if cfg is not None and cfg.proxy.is_set:
            logger.debug("Using configured proxy settings (no_proxy=%r)", cfg.proxy.no_proxy)
            return ProxyFuncConfig(
                http_proxy=cfg.proxy.http_proxy,
                https_proxy=cfg.proxy.https_proxy,
                no_proxy=cfg.proxy.no_proxy,
            ).proxy_func()

        logger.debug("No proxy settings configured; using environment proxies")
        return proxier_with_no_proxy_cidr(self.proxy_from_environment)

    def token(self) -> str:
        cfg = self.secret_configurator.config()
        if len(cfg.token) > 0:
            token = cfg.token.strip(_TOKEN_SPACE)
            if "\n" in token or "\r" in token:
                raise TokenInvalidError("newlines")
            if len(token) == 0:
                raise TokenInvalidError("empty")
            return token
        raise TokenNotConfiguredError()


def get_authorizer() -> Authorizer:
    """Seam for swapping configurator implementations later (e.g., a watched Secret)."""
    return Authorizer(EnvSecretConfigurator(), EnvClusterConfigurator())
