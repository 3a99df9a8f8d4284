# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Generation-ready binding metadata.

A :class:`BindingSet` is what the resolver hands to the emitter.  It is
immutable and self-contained: every type already carries the Python
expression to render, every method knows which upstream module holds its
argument and result structs, and inheritance is already flattened.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

__all__ = [
    "BindingSet",
    "BoundField",
    "BoundMethod",
    "BoundService",
    "IncludeBinding",
    "ResolvedType",
    "TypeKind",
]


class TypeKind(Enum):
    """What a resolved type ultimately refers to, after typedefs."""

    BASE = "base"
    CONTAINER = "container"
    STRUCT = "struct"
    EXCEPTION = "exception"
    ENUM = "enum"


@dataclass(frozen=True)
class ResolvedType:
    """A type reference after name and typedef resolution.

    Attributes:
        idl_name: The type as spelled in the IDL (``list<Item>``, ``UserId``).
        kind: What the type resolves to.
        annotation: Python expression used in generated signatures and, for
            exceptions, in ``except`` clauses (``ttypes.NotFound``).

    """

    idl_name: str
    kind: TypeKind
    annotation: str


@dataclass(frozen=True)
class BoundField:
    """An argument or declared exception, in IDL order."""

    id: int
    name: str
    type: ResolvedType


@dataclass(frozen=True)
class BoundMethod:
    """One method of a service's effective method list.

    Attributes:
        name: Method name, also the transport's method key.
        arguments: Arguments in declaration order.
        return_type: ``None`` for ``void`` and oneway methods.
        exceptions: Declared exceptions in declaration order.
        oneway: Whether the caller waits for a reply.
        declaring_service: Service whose body declares this method; differs
            from the binding service for inherited methods.
        module: Python module expression holding the upstream
            ``<name>_args`` / ``<name>_result`` structs.

    """

    name: str
    arguments: tuple[BoundField, ...]
    return_type: ResolvedType | None
    exceptions: tuple[BoundField, ...]
    oneway: bool
    declaring_service: str
    module: str

    @property
    def has_return(self) -> bool:
        """Whether the method returns a value."""
        return self.return_type is not None

    @property
    def args_struct(self) -> str:
        """Expression naming the upstream argument struct class."""
        return f"{self.module}.{self.name}_args"

    @property
    def result_struct(self) -> str:
        """Expression naming the upstream result struct class."""
        return f"{self.module}.{self.name}_result"


@dataclass(frozen=True)
class BoundService:
    """A service with its inheritance chain flattened.

    Attributes:
        name: Service name, used as the transport's service key.
        parent: Qualified name of the extended service, if any.
        inheritance: Ancestor names, nearest first.
        methods: The effective method list.

    """

    name: str
    parent: str | None
    inheritance: tuple[str, ...]
    methods: tuple[BoundMethod, ...]


@dataclass(frozen=True)
class IncludeBinding:
    """Maps an include path to the Python package its upstream modules live in."""

    path: str
    package: str


@dataclass(frozen=True)
class BindingSet:
    """Everything the emitter needs for one IDL file.

    Attributes:
        package: Generated Python package name (lowercased file stem).
        source: IDL file name, rendered into the generated header.
        services: Resolved services in declaration order.
        includes: Include path to :class:`IncludeBinding`.
        local_imports: Sibling modules imported relatively (``ttypes``, ``Echo``).
        imports: Modules imported by full package path (``shared.ttypes``):
            those of included files, and the root file's own when the
            upstream compiler wrote them outside the output package.

    """

    package: str
    source: str
    services: tuple[BoundService, ...] = ()
    includes: Mapping[str, IncludeBinding] = field(default_factory=lambda: MappingProxyType({}))
    local_imports: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()
