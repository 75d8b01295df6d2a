"""endpoint_resolver — endpoint:// name resolution for key-value store gRPC clients."""

from . import endpoint
from . import target
from . import dispatch
from . import resolver
from . import builder
from . import grpcclient

__all__ = ["endpoint", "target", "dispatch", "resolver", "builder", "grpcclient"]
