from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ProxyConfig:
    """Explicit proxy settings for outgoing agent traffic."""

    http_proxy: str = ""
    https_proxy: str = ""
    no_proxy: str = ""

    @property
    def is_set(self) -> bool:
        """Any non-empty field means the environment is not consulted."""
        return bool(self.http_proxy or self.https_proxy or self.no_proxy)


@dataclass(frozen=True)
class SecretConfig:
    # Raw value as read from the secret; validation happens in the authorizer.
    token: str = ""


@dataclass(frozen=True)
class ClusterConfig:
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
