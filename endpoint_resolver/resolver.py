from __future__ import annotations

"""Per-cluster resolver: holds the current address set and pushes it to
the bound client connection.

Addresses only ever arrive from outside (a membership watcher calling
update_addresses); the resolver never re-resolves on its own.
"""

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any, Iterable, Protocol, Union

from endpoint_resolver._rwlock import RWLock
from endpoint_resolver.target import target as _target

if TYPE_CHECKING:
    from endpoint_resolver.builder import Builder

logger = logging.getLogger("endpoint_resolver.resolver")


@dataclass(frozen=True)
class Address:
    """One reachable cluster member. metadata is carried, never read."""

    addr: str
    metadata: Any = None


AddressLike = Union[Address, str]


class ClientConn(Protocol):
    """Channel-side handle that receives address pushes."""

    def new_address(self, addresses: list[Address]) -> None: ...


def endpoints_to_addresses(*endpoints: str) -> list[Address]:
    return [Address(addr=ep) for ep in endpoints]


def _to_addresses(addresses: Iterable[AddressLike]) -> list[Address]:
    if isinstance(addresses, str):
        raise TypeError(f"addresses must be a sequence of addresses, got str {addresses!r}")
    out: list[Address] = []
    for a in addresses:
        if isinstance(a, Address):
            out.append(a)
        elif isinstance(a, str):
            out.append(Address(addr=a))
        else:
            raise TypeError(f"address must be Address or str, got {type(a).__name__}")
    return out


class Resolver:
    """Resolver for a single cluster, identified by client_id."""

    def __init__(self, client_id: str, registry: Builder | None = None):
        self._client_id = client_id
        self._registry = registry
        self._conn: ClientConn | None = None
        self._addresses: list[Address] | None = None
        self._lock = RWLock()

    def __repr__(self) -> str:
        return f"Resolver(client_id={self._client_id!r})"

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def addresses(self) -> list[Address] | None:
        with self._lock.read():
            if self._addresses is None:
                return None
            return list(self._addresses)

    @property
    def conn(self) -> ClientConn | None:
        with self._lock.read():
            return self._conn

    def bind(self, conn: ClientConn) -> None:
        """Bind (or rebind) conn and push the current addresses, if set."""
        with self._lock.write():
            self._conn = conn
            addresses = self._addresses
        if addresses is not None:
            self._push(conn, addresses)

    def set_initial_addresses(self, addresses: Iterable[AddressLike]) -> None:
        """Set the starting address set.

        Meant to be called before dialing; if a connection is already
        bound the addresses are pushed to it right away.
        """
        self._store(_to_addresses(addresses))

    def set_initial_endpoints(self, endpoints: Iterable[str]) -> None:
        """Set the starting endpoints. At least one endpoint is required.

        Endpoints are used verbatim as addresses; call update_addresses
        after dialing to change them.
        """
        if isinstance(endpoints, str):
            raise TypeError(f"endpoints must be a sequence of endpoints, got str {endpoints!r}")
        endpoints = list(endpoints)
        if not endpoints:
            raise ValueError(f"at least one endpoint is required, but got: {endpoints}")
        self._store(endpoints_to_addresses(*endpoints))

    def update_addresses(self, addresses: Iterable[AddressLike]) -> None:
        """Replace the address set and push it to the bound connection."""
        self._store(_to_addresses(addresses))

    def resolve_now(self, **_options: Any) -> None:
        pass

    def close(self) -> None:
        """Remove this resolver from its registry. Safe to call twice.

        The bound connection is neither notified nor unbound.
        """
        if self._registry is not None:
            self._registry.unregister(self)

    def target(self, endpoint: str) -> str:
        return _target(self._client_id, endpoint)

    def _store(self, addresses: list[Address]) -> None:
        with self._lock.write():
            self._addresses = addresses
            conn = self._conn
        # Never call into the connection while holding the lock: it may
        # block or re-enter this resolver.
        if conn is not None:
            self._push(conn, addresses)

    def _push(self, conn: ClientConn, addresses: list[Address]) -> None:
        logger.debug("pushing %d address(es) for %s", len(addresses), self._client_id)
        conn.new_address(list(addresses))
