"""
Configuration snapshots for outgoing cluster traffic.

Snapshots are immutable; configurators hand out the current one on demand.
"""

from agent.config.models import ClusterConfig, ProxyConfig, SecretConfig
from agent.config.observer import (
    ClusterConfigurator,
    EnvClusterConfigurator,
    EnvSecretConfigurator,
    SecretConfigurator,
    StaticClusterConfigurator,
    StaticSecretConfigurator,
)

__all__ = [
    "ClusterConfig",
    "ProxyConfig",
    "SecretConfig",
    "ClusterConfigurator",
    "SecretConfigurator",
    "EnvClusterConfigurator",
    "EnvSecretConfigurator",
    "StaticClusterConfigurator",
    "StaticSecretConfigurator",
]
