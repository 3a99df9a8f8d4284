# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Client side of the binding: the transport contract and the struct-level client."""

from __future__ import annotations

import logging
from typing import Any, Protocol, TypeVar

from thriftgen.runtime._codec import BinaryCodec, Codec
from thriftgen.runtime._context import Context

_logger = logging.getLogger("thriftgen.runtime.client")

R = TypeVar("R")


class Transport(Protocol):
    """Generic RPC transport keyed by ``(service, method)`` strings.

    Payloads are opaque envelope bytes; the transport never looks inside.
    """

    def call(self, ctx: Context, service: str, method: str, payload: bytes) -> bytes:
        """Send a request and block until the reply envelope arrives."""
        ...

    def call_oneway(self, ctx: Context, service: str, method: str, payload: bytes) -> None:
        """Send a request without waiting for, or expecting, a reply."""
        ...


class ThriftClient:
    """Struct-level client used by generated ``TChan<Service>Client`` classes.

    Encodes argument structs, hands the envelope to the transport, and
    decodes reply envelopes into the upstream result struct.
    """

    __slots__ = ("_codec", "_transport")

    def __init__(self, transport: Transport, codec: Codec | None = None) -> None:
        """Initialize with a transport and an optional codec (binary protocol by default)."""
        self._transport = transport
        self._codec: Codec = codec or BinaryCodec()

    @property
    def transport(self) -> Transport:
        """The underlying transport."""
        return self._transport

    def call(self, ctx: Context, service: str, method: str, args: Any, result_type: type[R]) -> R:
        """Make a two-way call.

        Args:
            ctx: Call context; the call is not sent if its deadline has passed.
            service: Service key.
            method: Method key.
            args: Populated upstream ``<method>_args`` struct.
            result_type: Upstream ``<method>_result`` struct class.

        Returns:
            The decoded result struct.  Interpreting which field is set is
            left to the generated caller.

        Raises:
            DeadlineExceededError: If ``ctx`` has already expired.

        """
        ctx.check_deadline()
        payload = self._codec.encode(args)
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug(
                "Call %s::%s (%d bytes)",
                service,
                method,
                len(payload),
                extra={"service": service, "method": method},
            )
        reply = self._transport.call(ctx, service, method, payload)
        return self._codec.decode(reply, result_type)

    def call_oneway(self, ctx: Context, service: str, method: str, args: Any) -> None:
        """Send a oneway call and return as soon as the transport accepts it.

        Raises:
            DeadlineExceededError: If ``ctx`` has already expired.

        """
        ctx.check_deadline()
        payload = self._codec.encode(args)
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug(
                "Oneway %s::%s (%d bytes)",
                service,
                method,
                len(payload),
                extra={"service": service, "method": method},
            )
        self._transport.call_oneway(ctx, service, method, payload)
