"""
Pytest config.

Local imports like `import agent` rely on the repo root being on sys.path. When a
global `pytest` entrypoint is used that doesn't happen reliably during collection, so
we pin it here.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

_PROXY_ENV_VARS = [
    "HTTP_PROXY",
    "http_proxy",
    "HTTPS_PROXY",
    "https_proxy",
    "ALL_PROXY",
    "all_proxy",
    "NO_PROXY",
    "no_proxy",
    "REQUEST_METHOD",
    "CLUSTER_AUTH_TOKEN",
    "CLUSTER_AUTH_TOKEN_FILE",
    "CLUSTER_PROXY_HTTP_PROXY",
    "CLUSTER_PROXY_HTTPS_PROXY",
    "CLUSTER_PROXY_NO_PROXY",
]


@pytest.fixture(autouse=True)
def _clean_proxy_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Proxy resolution reads the process environment. Start every test without any
    proxy/token variables so a developer's shell settings can't leak into results.
    """
    for name in _PROXY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
