from __future__ import annotations

"""Endpoint URI parsing.

Cluster members are addressed by endpoints of the form:
    <host>:<port>            bare address, dialed over tcp
    http://<host>:<port>     tcp
    https://<host>:<port>    tcp (TLS is the dialer's concern)
    unix://<path>            unix domain socket, relative path
    unix:///<abs/path>       unix domain socket, absolute path
    unixs://<path>           unix domain socket (TLS is the dialer's concern)
"""

from typing import NamedTuple
from urllib.parse import urlsplit

DEFAULT_PROTO = "tcp"

_TCP_SCHEMES = frozenset({"http", "https"})
_UNIX_SCHEMES = frozenset({"unix", "unixs"})


def _valid_port(netloc: str) -> bool:
    # Only digits after the last colon; the value is not range checked.
    hostport = netloc.rpartition("@")[2]
    _, sep, port = hostport.rpartition("]")[2].rpartition(":")
    return not sep or port == "" or port.isdigit()


class ParsedEndpoint(NamedTuple):
    proto: str
    host: str
    scheme: str


def parse_endpoint(endpoint: str) -> ParsedEndpoint:
    """Split an endpoint into (proto, host, scheme).

    proto is "tcp" or "unix"; host is host:port, or the socket path for
    unix endpoints. Endpoints without "://" (or that fail to parse) are
    returned as-is over tcp with an empty scheme. Unsupported schemes
    yield empty proto and host.
    """
    if "://" not in endpoint:
        return ParsedEndpoint(DEFAULT_PROTO, endpoint, "")
    try:
        url = urlsplit(endpoint)
    except ValueError:
        return ParsedEndpoint(DEFAULT_PROTO, endpoint, "")
    if not url.scheme or not _valid_port(url.netloc):
        return ParsedEndpoint(DEFAULT_PROTO, endpoint, "")

    # grpc dials by host, drop the scheme:// prefix and any userinfo
    host = url.netloc.rpartition("@")[2]
    if url.scheme in _TCP_SCHEMES:
        return ParsedEndpoint("tcp", host, url.scheme)
    if url.scheme in _UNIX_SCHEMES:
        return ParsedEndpoint("unix", host + url.path, url.scheme)
    return ParsedEndpoint("", "", url.scheme)
