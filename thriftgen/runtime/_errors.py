# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Errors raised by generated bindings and the runtime transports."""

from __future__ import annotations


class ProtocolError(Exception):
    """The peer sent a reply that does not follow the binding protocol."""


class MissingResultError(ProtocolError):
    """A two-way reply had neither its ``success`` field nor any declared exception set."""

    def __init__(self, service: str, method: str) -> None:
        """Initialize with the service and method whose reply was empty."""
        self.service = service
        self.method = method
        super().__init__(f"{service}::{method} reply has no result and no exception set")


class UnknownMethodError(ProtocolError):
    """No handler is registered for the requested ``(service, method)`` key."""

    def __init__(self, service: str, method: str) -> None:
        """Initialize with the unmatched key."""
        self.service = service
        self.method = method
        super().__init__(f"no handler registered for {service}::{method}")


class DeadlineExceededError(Exception):
    """The call's context deadline passed before the call could be made."""


class TransportError(Exception):
    """The transport failed to deliver a call or the remote handler failed."""

    def __init__(self, service: str, method: str, message: str) -> None:
        """Initialize with the call key and a description of the failure."""
        self.service = service
        self.method = method
        super().__init__(f"{service}::{method}: {message}")
