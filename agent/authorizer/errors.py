"""Errors raised while authorizing outgoing cluster requests."""

from __future__ import annotations


class AuthorizerError(Exception):
    pass


class TokenError(AuthorizerError):
    """The cluster token cannot be used as a bearer credential."""


class TokenNotConfiguredError(TokenError):
    def __init__(self) -> None:
        super().__init__("cluster authorization token is not configured")


class TokenInvalidError(TokenError):
    def __init__(self, reason: str) -> None:
        self.reason = reason  # newlines|empty
        if reason == "newlines":
            msg = "cluster authorization token is not valid: contains newlines"
        else:
            msg = "cluster authorization token is empty"
        super().__init__(msg)


class ProxyURLParseError(AuthorizerError, ValueError):
    def __init__(self, value: str, detail: str = "") -> None:
        self.value = value
        msg = f"invalid proxy address {value!r}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
