from __future__ import annotations

"""Resolver target strings of the form endpoint://<client_id>/<endpoint>."""

from typing import NamedTuple

SCHEME = "endpoint"
TARGET_PREFIX = f"{SCHEME}://"


class MalformedTargetError(ValueError):
    """Raised when a string is not a valid endpoint:// target."""

    def __init__(self, target: str, reason: str):
        super().__init__(f"malformed target, {reason}: {target!r}")
        self.target = target


def target(client_id: str, endpoint: str) -> str:
    """Build an endpoint resolver target. Neither part is escaped."""
    return f"{TARGET_PREFIX}{client_id}/{endpoint}"


def is_target(value: str) -> bool:
    return value.startswith(TARGET_PREFIX)


def parse_target(value: str) -> tuple[str, str]:
    """Parse an endpoint://<client_id>/<endpoint> target.

    Returns (client_id, endpoint). The endpoint keeps any further "/".
    Raises MalformedTargetError when the prefix or the separator is missing.
    """
    if not is_target(value):
        raise MalformedTargetError(value, f"{TARGET_PREFIX} prefix is required")
    rest = value[len(TARGET_PREFIX):]
    client_id, sep, endpoint = rest.partition("/")
    if not sep:
        raise MalformedTargetError(
            value, f"expected {TARGET_PREFIX}<clientId>/<endpoint>"
        )
    return client_id, endpoint


class ResolverTarget(NamedTuple):
    scheme: str
    authority: str
    endpoint: str


def split_target(value: str) -> ResolverTarget:
    """Split any dial target into (scheme, authority, endpoint).

    This is how a channel picks the resolver for a target: strings
    without "://" carry no scheme and are dialed directly.
    """
    scheme, sep, rest = value.partition("://")
    if not sep:
        return ResolverTarget("", "", value)
    authority, _, endpoint = rest.partition("/")
    return ResolverTarget(scheme, authority, endpoint)
