"""
Configurators: read-only providers of the current configuration snapshot.

Consumers call `config()` whenever they need a value. Nothing here caches, so a
changed environment variable or token file is visible on the next call.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Protocol, runtime_checkable

from agent.config.models import ClusterConfig, ProxyConfig, SecretConfig

logger = logging.getLogger(__name__)

TOKEN_ENV = "CLUSTER_AUTH_TOKEN"
TOKEN_FILE_ENV = "CLUSTER_AUTH_TOKEN_FILE"
HTTP_PROXY_ENV = "CLUSTER_PROXY_HTTP_PROXY"
HTTPS_PROXY_ENV = "CLUSTER_PROXY_HTTPS_PROXY"
NO_PROXY_ENV = "CLUSTER_PROXY_NO_PROXY"


@runtime_checkable
class SecretConfigurator(Protocol):
    def config(self) -> SecretConfig: ...


@runtime_checkable
class ClusterConfigurator(Protocol):
    def config(self) -> Optional[ClusterConfig]: ...


class StaticSecretConfigurator:
    def __init__(self, snapshot: Optional[SecretConfig] = None) -> None:
        self._snapshot = snapshot or SecretConfig()

    def config(self) -> SecretConfig:
        return self._snapshot

    def update(self, snapshot: SecretConfig) -> None:
        self._snapshot = snapshot


class StaticClusterConfigurator:
    def __init__(self, snapshot: Optional[ClusterConfig] = None) -> None:
        self._snapshot = snapshot

    def config(self) -> Optional[ClusterConfig]:
        return self._snapshot

    def update(self, snapshot: Optional[ClusterConfig]) -> None:
        self._snapshot = snapshot


class EnvSecretConfigurator:
    """
    Token from CLUSTER_AUTH_TOKEN, or from the file named by CLUSTER_AUTH_TOKEN_FILE
    (e.g. a mounted pull-secret key).

    The inline variable wins when both are set. The raw value is passed through
    untrimmed.
    """

    def config(self) -> SecretConfig:
        token = os.getenv(TOKEN_ENV, "") or ""
        if token:
            return SecretConfig(token=token)

        path = (os.getenv(TOKEN_FILE_ENV, "") or "").strip()
        if not path:
            return SecretConfig()
        try:
            with open(path, encoding="utf-8") as f:
                return SecretConfig(token=f.read())
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read cluster token file %s: %s", path, type(e).__name__)
            return SecretConfig()


class EnvClusterConfigurator:
    """
    Proxy overrides from CLUSTER_PROXY_* variables.

    Returns None when none of the variables is present, which callers treat the
    same as "no overrides".
    """

    def config(self) -> Optional[ClusterConfig]:
        names = (HTTP_PROXY_ENV, HTTPS_PROXY_ENV, NO_PROXY_ENV)
        if not any(name in os.environ for name in names):
            return None
        return ClusterConfig(
            proxy=ProxyConfig(
                http_proxy=(os.getenv(HTTP_PROXY_ENV, "") or "").strip(),
                https_proxy=(os.getenv(HTTPS_PROXY_ENV, "") or "").strip(),
                no_proxy=(os.getenv(NO_PROXY_ENV, "") or "").strip(),
            )
        )
