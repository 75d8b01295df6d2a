from __future__ import annotations

"""Client-side gRPC helpers: dial endpoint:// targets through the resolver."""

import ipaddress
import logging
import threading
from typing import Any, Callable, Iterable, Sequence

import grpc

from endpoint_resolver import dispatch
from endpoint_resolver.endpoint import parse_endpoint
from endpoint_resolver.resolver import Address, AddressLike, Resolver
from endpoint_resolver.target import is_target, parse_target, split_target

logger = logging.getLogger("endpoint_resolver.grpcclient")

ChannelOptions = Sequence[tuple[str, Any]]
_ROUND_ROBIN = ("grpc.lb_policy_name", "round_robin")


def _ip_host(host: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    ip, sep, port = host.rpartition(":")
    if not sep or not port.isdigit():
        return None
    try:
        return ipaddress.ip_address(ip.strip("[]"))
    except ValueError:
        return None


def grpc_target(addresses: Iterable[AddressLike]) -> str:
    """Convert an address set into a grpcio dial target.

    - a unix socket address (first usable one wins): unix:<path>
    - tcp addresses that are all IPv4 (or all IPv6) literals: ipv4:a,b / ipv6:a,b
    - otherwise the first tcp host:port

    grpcio has no static target form for several hostnames, so a cluster of
    named members is dialed through its first member only.
    """
    usable: list[tuple[str, str]] = []
    for a in addresses:
        raw = a.addr if isinstance(a, Address) else a
        proto, host, scheme = parse_endpoint(raw)
        if not proto or not host:
            logger.warning("skipping address with unsupported scheme %r: %s", scheme, raw)
            continue
        usable.append((proto, host))

    if not usable:
        raise ValueError("no usable address to dial")

    proto, host = usable[0]
    if proto == "unix":
        return f"unix:{host}"

    hosts = [h for p, h in usable if p == "tcp"]
    if len(hosts) == 1:
        return hosts[0]

    ips = [_ip_host(h) for h in hosts]
    if all(ip is not None and ip.version == 4 for ip in ips):
        return "ipv4:" + ",".join(hosts)
    if all(ip is not None and ip.version == 6 for ip in ips):
        return "ipv6:" + ",".join(hosts)
    logger.warning(
        "dialing %s only; %d other member(s) are not IP literals and are not dialed",
        hosts[0],
        len(hosts) - 1,
    )
    return hosts[0]


class _LateBoundCallable:
    """Multi-callable that follows the channel across address pushes."""

    def __init__(self, channel: _ResolvedChannel, kind: str, args: tuple, kwargs: dict):
        self._channel = channel
        self._kind = kind
        self._args = args
        self._kwargs = kwargs

    def _bind(self) -> Any:
        inner = self._channel._current()
        return getattr(inner, self._kind)(*self._args, **self._kwargs)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._bind()(*args, **kwargs)

    def with_call(self, *args: Any, **kwargs: Any) -> Any:
        return self._bind().with_call(*args, **kwargs)

    def future(self, *args: Any, **kwargs: Any) -> Any:
        return self._bind().future(*args, **kwargs)


class _ResolvedChannel(grpc.Channel):
    """grpc.Channel bound to a Resolver; redials whenever addresses change."""

    def __init__(self, target: str, options: ChannelOptions | None = None):
        self.target = target
        self._options = list(options or [])
        self._inner: grpc.Channel | None = None
        self._dial_target: str | None = None
        self._subscriptions: list[tuple[Callable, bool]] = []
        self._resolver: Resolver | None = None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def dial_target(self) -> str | None:
        return self._dial_target

    def new_address(self, addresses: list[Address]) -> None:
        if self._closed:
            return
        try:
            dial_target = grpc_target(addresses)
        except ValueError:
            logger.warning("%s: no usable address pushed, keeping %s", self.target, self._dial_target)
            return
        options = list(self._options)
        if "," in dial_target:
            options.append(_ROUND_ROBIN)

        with self._lock:
            if self._closed or dial_target == self._dial_target:
                return
            old = self._inner
            inner = grpc.insecure_channel(dial_target, options=options)
            self._inner = inner
            self._dial_target = dial_target
            subscriptions = list(self._subscriptions)

        logger.debug("%s: dialing %s", self.target, dial_target)
        for callback, try_to_connect in subscriptions:
            if old is not None:
                old.unsubscribe(callback)
            inner.subscribe(callback, try_to_connect=try_to_connect)
        if old is not None:
            old.close()

    def _current(self) -> grpc.Channel:
        with self._lock:
            if self._closed:
                raise ConnectionError(f"channel to {self.target} is closed")
            if self._inner is None:
                raise ConnectionError(f"no addresses resolved yet for {self.target}")
            return self._inner

    def subscribe(self, callback: Any, try_to_connect: bool = False) -> None:
        with self._lock:
            self._subscriptions.append((callback, try_to_connect))
            inner = self._inner
        if inner is not None:
            inner.subscribe(callback, try_to_connect=try_to_connect)

    def unsubscribe(self, callback: Any) -> None:
        with self._lock:
            self._subscriptions = [s for s in self._subscriptions if s[0] != callback]
            inner = self._inner
        if inner is not None:
            inner.unsubscribe(callback)

    def unary_unary(self, *args: Any, **kwargs: Any):
        return _LateBoundCallable(self, "unary_unary", args, kwargs)

    def unary_stream(self, *args: Any, **kwargs: Any):
        return _LateBoundCallable(self, "unary_stream", args, kwargs)

    def stream_unary(self, *args: Any, **kwargs: Any):
        return _LateBoundCallable(self, "stream_unary", args, kwargs)

    def stream_stream(self, *args: Any, **kwargs: Any):
        return _LateBoundCallable(self, "stream_stream", args, kwargs)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            inner = self._inner
            self._inner = None
            resolver = self._resolver
        try:
            if inner is not None:
                inner.close()
        finally:
            if resolver is not None:
                resolver.close()

    def __enter__(self) -> _ResolvedChannel:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        self.close()
        return False


def dial(target: str, *, options: ChannelOptions | None = None) -> grpc.Channel:
    """Dial a gRPC target.

    endpoint://<cluster>/<endpoint> targets (or any scheme with a
    registered resolver builder) get a channel that follows the cluster's
    resolver. Anything else, e.g. host:port or unix:///path.sock, is handed
    to grpc.insecure_channel as-is.
    """
    if is_target(target):
        parse_target(target)
    scheme = split_target(target).scheme
    builder = dispatch.get(scheme) if scheme else None
    if builder is None:
        return grpc.insecure_channel(target, options=options)

    channel = _ResolvedChannel(target, options)
    channel._resolver = builder.build(target, channel)
    return channel
