from __future__ import annotations

"""Process-wide registry of per-cluster resolvers.

The single Builder instance is created and registered into the resolver
dispatch table when this module is imported. A channel dialing
endpoint://<cluster>/<endpoint> gets the resolver for <cluster>; every
channel for the same cluster shares that resolver.
"""

import logging

from endpoint_resolver import dispatch
from endpoint_resolver._rwlock import RWLock
from endpoint_resolver.resolver import ClientConn, Resolver
from endpoint_resolver.target import SCHEME, split_target

logger = logging.getLogger("endpoint_resolver.builder")


class Builder:
    """Maps cluster identifiers to their Resolver."""

    def __init__(self) -> None:
        self._resolvers: dict[str, Resolver] = {}
        self._lock = RWLock()

    def scheme(self) -> str:
        return SCHEME

    def build(self, target: str, conn: ClientConn | None = None) -> Resolver:
        """Create or reuse the resolver for the target's authority.

        conn, when given, is bound to the resolver and immediately
        receives the resolver's addresses if any have been set.
        """
        authority = split_target(target).authority
        if not authority:
            raise ValueError(
                f"{SCHEME!r} target scheme requires non-empty authority "
                f"identifying the cluster being routed to: {target!r}"
            )
        r = self.get_or_create(authority)
        if conn is not None:
            r.bind(conn)
        return r

    def get(self, client_id: str) -> Resolver | None:
        with self._lock.read():
            return self._resolvers.get(client_id)

    def get_or_create(self, client_id: str) -> Resolver:
        r = self.get(client_id)
        if r is not None:
            return r
        with self._lock.write():
            # Another builder may have won the race since the read.
            r = self._resolvers.get(client_id)
            if r is None:
                r = Resolver(client_id, registry=self)
                self._resolvers[client_id] = r
                logger.debug("created resolver for %s", client_id)
        return r

    def register(self, resolver: Resolver) -> None:
        """Insert resolver under its client id, replacing any existing one."""
        resolver._registry = self
        with self._lock.write():
            self._resolvers[resolver.client_id] = resolver
        logger.debug("registered resolver for %s", resolver.client_id)

    def unregister(self, resolver: Resolver) -> None:
        """Remove the entry for resolver.client_id if it maps to resolver.

        Unlike a plain removal by key, a resolver that was already replaced
        under its client id (see register) leaves the replacement in place.
        """
        with self._lock.write():
            if self._resolvers.get(resolver.client_id) is not resolver:
                return
            del self._resolvers[resolver.client_id]
        logger.debug("removed resolver for %s", resolver.client_id)

    def client_ids(self) -> list[str]:
        with self._lock.read():
            return list(self._resolvers)


BUILDER = Builder()
dispatch.register(BUILDER)


def endpoint_resolver(client_id: str) -> Resolver:
    """Get the resolver for the given cluster, creating it if needed."""
    return BUILDER.get_or_create(client_id)
