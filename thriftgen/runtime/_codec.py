# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Envelope encoding for upstream Thrift structs.

Generated bindings never serialize fields themselves: they hand whole
argument and result structs to a :class:`Codec`.  The default
:class:`BinaryCodec` delegates to Apache Thrift's ``TSerialization``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from thrift.protocol import TBinaryProtocol
from thrift.TSerialization import deserialize, serialize

if TYPE_CHECKING:
    from thrift.protocol.TProtocol import TProtocolFactory

__all__ = ["BinaryCodec", "Codec"]

T = TypeVar("T")


class Codec(Protocol):
    """Converts upstream structs to and from envelope bytes."""

    def encode(self, struct: Any) -> bytes:
        """Serialize a field-populated struct instance."""
        ...

    def decode(self, payload: bytes, struct_type: type[T]) -> T:
        """Create an instance of ``struct_type`` populated from ``payload``."""
        ...


class BinaryCodec:
    """Thrift binary-protocol codec backed by ``thrift.TSerialization``."""

    __slots__ = ("_factory",)

    def __init__(self, protocol_factory: TProtocolFactory | None = None) -> None:
        """Initialize with a protocol factory (binary protocol by default)."""
        self._factory = protocol_factory or TBinaryProtocol.TBinaryProtocolFactory()

    def encode(self, struct: Any) -> bytes:
        """Serialize ``struct`` with the configured protocol."""
        return serialize(struct, protocol_factory=self._factory)

    def decode(self, payload: bytes, struct_type: type[T]) -> T:
        """Deserialize ``payload`` into a new ``struct_type`` instance."""
        return deserialize(struct_type(), payload, protocol_factory=self._factory)
