# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Server side of the binding: handler variants and the registration contract."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Protocol

from thriftgen.runtime._context import Context

TwoWayFunc = Callable[[Context, bytes], bytes]
"""Decodes an argument envelope, runs the method, returns the result envelope."""

OnewayFunc = Callable[[Context, bytes], None]
"""Decodes an argument envelope and runs the method; there is no reply."""


@dataclass(frozen=True)
class TwoWayHandler:
    """Handler for a method whose caller waits for a reply."""

    func: TwoWayFunc

    @property
    def oneway(self) -> bool:
        """Always ``False``."""
        return False

    def __call__(self, ctx: Context, payload: bytes) -> bytes:
        """Handle one request envelope and return the reply envelope."""
        return self.func(ctx, payload)


@dataclass(frozen=True)
class OnewayHandler:
    """Handler for a oneway method."""

    func: OnewayFunc

    @property
    def oneway(self) -> bool:
        """Always ``True``."""
        return True

    def __call__(self, ctx: Context, payload: bytes) -> None:
        """Handle one request envelope."""
        self.func(ctx, payload)


Handler = TwoWayHandler | OnewayHandler


class Registrar(Protocol):
    """Accepts the per-service handler table built by a generated server."""

    def register(self, service: str, handlers: Mapping[str, Handler]) -> None:
        """Register ``handlers`` (method name → handler) under ``service``."""
        ...
