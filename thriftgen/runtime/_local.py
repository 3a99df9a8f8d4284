# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""In-process transport connecting generated clients directly to generated servers."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType

from thriftgen.runtime._context import Context
from thriftgen.runtime._errors import ProtocolError, TransportError, UnknownMethodError
from thriftgen.runtime._server import Handler

_logger = logging.getLogger("thriftgen.runtime.local")


class LocalTransport:
    """A :class:`Transport` and :class:`Registrar` in one object, without any I/O.

    Envelopes still go through the codec on both sides, so a round trip
    through ``LocalTransport`` exercises exactly what a network transport
    would carry.

    Two-way handler failures are reported to the caller as
    :class:`TransportError` chained to the original exception.  Oneway calls
    have no reply channel, so their handler failures are logged instead.
    """

    def __init__(self) -> None:
        """Initialize with an empty handler registry."""
        self._lock = threading.Lock()
        self._services: dict[str, Mapping[str, Handler]] = {}

    def register(self, service: str, handlers: Mapping[str, Handler]) -> None:
        """Register (or replace) the handler table for ``service``."""
        with self._lock:
            self._services[service] = MappingProxyType(dict(handlers))
        _logger.debug("Registered %s with %d methods", service, len(handlers), extra={"service": service})

    def methods(self, service: str) -> list[str]:
        """Method names registered under ``service``, in registration order."""
        with self._lock:
            return list(self._services.get(service, {}))

    def _lookup(self, service: str, method: str) -> Handler:
        with self._lock:
            handler = self._services.get(service, {}).get(method)
        if handler is None:
            raise UnknownMethodError(service, method)
        return handler

    def call(self, ctx: Context, service: str, method: str, payload: bytes) -> bytes:
        """Dispatch a two-way call and return the reply envelope.

        Raises:
            UnknownMethodError: If nothing is registered for the key.
            ProtocolError: If the registered handler is oneway.
            DeadlineExceededError: If ``ctx`` has already expired.
            TransportError: If the handler raised.

        """
        ctx.check_deadline()
        handler = self._lookup(service, method)
        if handler.oneway:
            raise ProtocolError(f"{service}::{method} is oneway and has no reply")
        try:
            return handler(ctx, payload)
        except Exception as exc:
            _logger.error(
                "Handler for %s::%s failed: %s",
                service,
                method,
                exc,
                exc_info=True,
                extra={"service": service, "method": method, "error_type": type(exc).__name__},
            )
            raise TransportError(service, method, f"{type(exc).__name__}: {exc}") from exc

    def call_oneway(self, ctx: Context, service: str, method: str, payload: bytes) -> None:
        """Dispatch a oneway call.

        The handler runs on the calling thread, so the call returns only after
        the handler has finished.  Handler failures are logged, not raised.

        Raises:
            UnknownMethodError: If nothing is registered for the key.
            ProtocolError: If the registered handler is two-way.
            DeadlineExceededError: If ``ctx`` has already expired.

        """
        ctx.check_deadline()
        handler = self._lookup(service, method)
        if not handler.oneway:
            raise ProtocolError(f"{service}::{method} is not oneway")
        try:
            handler(ctx, payload)
        except Exception:
            _logger.exception(
                "Oneway handler for %s::%s failed",
                service,
                method,
                extra={"service": service, "method": method},
            )
