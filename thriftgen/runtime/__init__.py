# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Runtime support imported by generated ``tchan_<package>.py`` modules.

Client side
-----------
A generated ``TChan<Service>Client`` wraps a :class:`ThriftClient`, which
encodes the upstream ``<method>_args`` struct with a :class:`Codec` and
sends it through any object satisfying :class:`Transport`::

    client = TChanEchoClient(ThriftClient(transport))
    reply = client.ping(Context.with_timeout(1.0), "hello")

Server side
-----------
A generated ``TChan<Service>Server`` wraps an implementation of the
service's ``TChan<Service>`` protocol and builds a table of
:class:`TwoWayHandler` / :class:`OnewayHandler` keyed by method name, which
it hands to a :class:`Registrar`::

    TChanEchoServer(EchoImpl()).register(transport)

:class:`LocalTransport` is both a transport and a registrar, for tests and
in-process wiring.
"""

from thriftgen.runtime._client import ThriftClient, Transport
from thriftgen.runtime._codec import BinaryCodec, Codec
from thriftgen.runtime._context import Context
from thriftgen.runtime._errors import (
    DeadlineExceededError,
    MissingResultError,
    ProtocolError,
    TransportError,
    UnknownMethodError,
)
from thriftgen.runtime._local import LocalTransport
from thriftgen.runtime._server import Handler, OnewayFunc, OnewayHandler, Registrar, TwoWayFunc, TwoWayHandler

__all__ = [
    "BinaryCodec",
    "Codec",
    "Context",
    "DeadlineExceededError",
    "Handler",
    "LocalTransport",
    "MissingResultError",
    "OnewayFunc",
    "OnewayHandler",
    "ProtocolError",
    "Registrar",
    "ThriftClient",
    "Transport",
    "TransportError",
    "TwoWayFunc",
    "TwoWayHandler",
    "UnknownMethodError",
]
