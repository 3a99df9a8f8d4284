# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""In-memory model of a parsed Thrift IDL file.

The parser produces these objects; the resolver consumes them.  Nothing here
checks semantics: names are kept exactly as written and resolved later.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

__all__ = [
    "BASE_TYPES",
    "BaseType",
    "Const",
    "ContainerKind",
    "ContainerType",
    "EnumDef",
    "Field",
    "Include",
    "Method",
    "NamedType",
    "ParsedIDL",
    "Program",
    "Requiredness",
    "Service",
    "StructDef",
    "TypeRef",
    "Typedef",
]

BASE_TYPES: frozenset[str] = frozenset({"bool", "byte", "i8", "i16", "i32", "i64", "double", "string", "binary"})


# ---------------------------------------------------------------------------
# Type references
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BaseType:
    """A Thrift primitive such as ``i32`` or ``string``."""

    name: str

    def __str__(self) -> str:
        return self.name


class ContainerKind(Enum):
    """Thrift container flavours."""

    LIST = "list"
    SET = "set"
    MAP = "map"


@dataclass(frozen=True)
class ContainerType:
    """``list<T>``, ``set<T>`` or ``map<K, V>``."""

    kind: ContainerKind
    value_type: TypeRef
    key_type: TypeRef | None = None

    def __str__(self) -> str:
        if self.kind is ContainerKind.MAP:
            return f"map<{self.key_type}, {self.value_type}>"
        return f"{self.kind.value}<{self.value_type}>"


@dataclass(frozen=True)
class NamedType:
    """A reference by name, optionally qualified with an include prefix."""

    name: str

    def __str__(self) -> str:
        return self.name


TypeRef = BaseType | ContainerType | NamedType


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


class Requiredness(Enum):
    """Field requiredness as written in the IDL."""

    DEFAULT = "default"
    REQUIRED = "required"
    OPTIONAL = "optional"


@dataclass(frozen=True)
class Field:
    """A struct member, method argument or ``throws`` entry."""

    id: int
    name: str
    type: TypeRef
    requiredness: Requiredness = Requiredness.DEFAULT
    default: Any = None
    line: int | None = None


@dataclass(frozen=True)
class Method:
    """A service function.  ``return_type`` is ``None`` for ``void``."""

    name: str
    arguments: tuple[Field, ...] = ()
    return_type: TypeRef | None = None
    exceptions: tuple[Field, ...] = ()
    oneway: bool = False
    line: int | None = None


@dataclass(frozen=True)
class Service:
    """A service and the (unresolved) name of the service it extends."""

    name: str
    methods: tuple[Method, ...] = ()
    extends: str | None = None
    line: int | None = None


@dataclass(frozen=True)
class StructDef:
    """A ``struct`` or ``exception`` definition."""

    name: str
    fields: tuple[Field, ...] = ()
    is_exception: bool = False
    line: int | None = None


@dataclass(frozen=True)
class Typedef:
    """``typedef <type> <name>``."""

    name: str
    type: TypeRef


@dataclass(frozen=True)
class EnumDef:
    """An ``enum`` with its explicit or implicit values."""

    name: str
    values: tuple[tuple[str, int], ...] = ()


@dataclass(frozen=True)
class Const:
    """A ``const`` definition; values are kept as plain Python data."""

    name: str
    type: TypeRef
    value: Any


@dataclass(frozen=True)
class Include:
    """An ``include`` header.

    Attributes:
        path: The path exactly as written in the IDL.
        resolved_path: Absolute path of the included file.

    """

    path: str
    resolved_path: Path

    @property
    def stem(self) -> str:
        """Prefix that qualifies names from this include (``shared`` in ``shared.Thing``)."""
        return Path(self.path).stem


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


@dataclass
class Program:
    """Everything declared in one IDL file, in declaration order."""

    path: Path
    includes: list[Include] = field(default_factory=list)
    namespaces: dict[str, str] = field(default_factory=dict)
    typedefs: dict[str, Typedef] = field(default_factory=dict)
    enums: dict[str, EnumDef] = field(default_factory=dict)
    consts: dict[str, Const] = field(default_factory=dict)
    structs: dict[str, StructDef] = field(default_factory=dict)
    services: dict[str, Service] = field(default_factory=dict)

    @property
    def package(self) -> str:
        """Package the bindings for this file are written to: the lowercased file stem."""
        return self.path.stem.lower()

    @property
    def upstream_package(self) -> str:
        """Package ``thrift --gen py`` writes this file's ``ttypes`` and service modules to.

        ``namespace py`` wins, then ``namespace *``, then the file stem with its
        case kept.
        """
        return self.namespaces.get("py") or self.namespaces.get("*") or self.path.stem

    def include_by_stem(self, stem: str) -> Include | None:
        """Return the include whose prefix is ``stem``, if declared."""
        for include in self.includes:
            if include.stem == stem:
                return include
        return None


@dataclass
class ParsedIDL:
    """The root file plus every file it transitively includes."""

    root: Path
    programs: dict[Path, Program] = field(default_factory=dict)

    @property
    def program(self) -> Program:
        """The root file's program."""
        return self.programs[self.root]
