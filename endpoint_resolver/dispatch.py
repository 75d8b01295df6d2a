from __future__ import annotations

"""Process-wide resolver dispatch table, keyed by target scheme."""

import logging
from threading import Lock
from typing import Any, Protocol

logger = logging.getLogger("endpoint_resolver.dispatch")


class ResolverBuilder(Protocol):
    def build(self, target: str, conn: Any = None) -> Any: ...

    def scheme(self) -> str: ...


_builders: dict[str, ResolverBuilder] = {}
_lock = Lock()


def register(builder: ResolverBuilder) -> str:
    key = builder.scheme()
    with _lock:
        _builders[key] = builder
    logger.debug("registered resolver builder for %s://", key)
    return key


def get(scheme: str) -> ResolverBuilder | None:
    with _lock:
        return _builders.get(scheme)


def unregister(scheme: str) -> None:
    with _lock:
        _builders.pop(scheme, None)
