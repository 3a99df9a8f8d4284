# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Thrift IDL parsing.

Parsing is delegated to ``lark``: this module holds the grammar and a
``Transformer`` that turns lark's parse tree into :mod:`thriftgen.idl`
objects.  :func:`parse_file` also follows ``include`` headers so the
resolver can look up types and parent services declared in other files.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError

from thriftgen.errors import DuplicateDefinitionError, IDLSyntaxError, InputError, ThriftGenError
from thriftgen.idl import (
    BaseType,
    Const,
    ContainerKind,
    ContainerType,
    EnumDef,
    Field,
    Include,
    Method,
    NamedType,
    ParsedIDL,
    Program,
    Requiredness,
    Service,
    StructDef,
    Typedef,
)

__all__ = ["parse_file", "parse_string"]

_logger = logging.getLogger("thriftgen.parser")

_GRAMMAR = r"""
start: _header* _definition*

_header: include | cpp_include | namespace
include: "include" LITERAL
cpp_include: "cpp_include" LITERAL
namespace: "namespace" _ns_scope IDENTIFIER
_ns_scope: IDENTIFIER | STAR

_definition: const | typedef | enum | struct | union | exception | service

const: "const" field_type IDENTIFIER "=" const_value _sep?
typedef: "typedef" field_type IDENTIFIER _sep?
enum: "enum" IDENTIFIER "{" enum_value* "}"
enum_value: IDENTIFIER ["=" int_constant] _sep?
struct: "struct" IDENTIFIER "{" field* "}"
union: "union" IDENTIFIER "{" field* "}"
exception: "exception" IDENTIFIER "{" field* "}"
service: "service" IDENTIFIER ["extends" IDENTIFIER] "{" function* "}"

field: [field_id] [field_req] field_type IDENTIFIER ["=" const_value] _sep?
field_id: int_constant ":"
!field_req: "required" | "optional"

function: [oneway] _function_type IDENTIFIER "(" field* ")" [throws] _sep?
!oneway: "oneway"
throws: "throws" "(" field* ")"
_function_type: field_type | void
!void: "void"

?field_type: named_type | base_type | map_type | set_type | list_type
named_type: IDENTIFIER
!base_type: "bool" | "byte" | "i8" | "i16" | "i32" | "i64" | "double" | "string" | "binary"
map_type: "map" "<" field_type "," field_type ">"
set_type: "set" "<" field_type ">"
list_type: "list" "<" field_type ">"

?const_value: int_constant | double_constant | literal | const_ref | const_list | const_map
int_constant: INT
double_constant: DOUBLE
literal: LITERAL
const_ref: IDENTIFIER
const_list: "[" (const_value _sep?)* "]"
const_map: "{" (const_value ":" const_value _sep?)* "}"

_sep: "," | ";"

STAR: "*"
IDENTIFIER: /[a-zA-Z_][a-zA-Z0-9_.]*/
LITERAL: /"[^"]*"/ | /'[^']*'/
INT: /[+-]?(0x[0-9a-fA-F]+|[0-9]+)/
DOUBLE: /[+-]?([0-9]+\.[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?/ | /[+-]?[0-9]+[eE][+-]?[0-9]+/

LINE_COMMENT: /\/\/[^\n]*/ | /#[^\n]*/
BLOCK_COMMENT: /\/\*[\s\S]*?\*\//

%import common.WS
%ignore WS
%ignore LINE_COMMENT
%ignore BLOCK_COMMENT
"""


@functools.cache
def _lark() -> Lark:
    """Build the LALR parser once per process."""
    return Lark(_GRAMMAR, parser="lalr", propagate_positions=True, maybe_placeholders=True)


# ---------------------------------------------------------------------------
# Tree → model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Namespace:
    scope: str
    name: str


@dataclass(frozen=True)
class _RawField:
    """A field before implicit ids are assigned."""

    id: int | None
    name: str
    type: Any
    requiredness: Requiredness
    default: Any
    line: int | None


def _parse_int(text: str) -> int:
    sign = -1 if text.startswith("-") else 1
    digits = text.lstrip("+-")
    if digits[:2].lower() == "0x":
        return sign * int(digits[2:], 16)
    return sign * int(digits, 10)


def _number_fields(raw_fields: Iterable[_RawField]) -> tuple[Field, ...]:
    """Assign ``-1, -2, ...`` to fields declared without an id."""
    fields: list[Field] = []
    next_implicit = -1
    for raw in raw_fields:
        field_id = raw.id
        if field_id is None:
            field_id = next_implicit
            next_implicit -= 1
        fields.append(
            Field(
                id=field_id,
                name=raw.name,
                type=raw.type,
                requiredness=raw.requiredness,
                default=raw.default,
                line=raw.line,
            )
        )
    return tuple(fields)


class _ThriftTransformer(Transformer):
    """Turns the lark parse tree of one file into a :class:`Program`."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self._path = path

    # --- headers ---

    @v_args(inline=True)
    def include(self, literal: str) -> Include:
        path = _unquote(literal)
        return Include(path=path, resolved_path=(self._path.parent / path).resolve())

    def cpp_include(self, _children: list[Any]) -> None:
        return None

    @v_args(inline=True)
    def namespace(self, scope: Token, name: Token) -> _Namespace:
        return _Namespace(str(scope), str(name))

    # --- types ---

    @v_args(inline=True)
    def named_type(self, name: Token) -> NamedType:
        return NamedType(str(name))

    @v_args(inline=True)
    def base_type(self, name: Token) -> BaseType:
        return BaseType(str(name))

    @v_args(inline=True)
    def map_type(self, key_type: Any, value_type: Any) -> ContainerType:
        return ContainerType(ContainerKind.MAP, value_type, key_type)

    @v_args(inline=True)
    def set_type(self, value_type: Any) -> ContainerType:
        return ContainerType(ContainerKind.SET, value_type)

    @v_args(inline=True)
    def list_type(self, value_type: Any) -> ContainerType:
        return ContainerType(ContainerKind.LIST, value_type)

    def void(self, _children: list[Any]) -> None:
        return None

    # --- constants ---

    @v_args(inline=True)
    def int_constant(self, token: Token) -> int:
        return _parse_int(str(token))

    @v_args(inline=True)
    def double_constant(self, token: Token) -> float:
        return float(token)

    @v_args(inline=True)
    def literal(self, token: Token) -> str:
        return _unquote(str(token))

    @v_args(inline=True)
    def const_ref(self, token: Token) -> str:
        return str(token)

    def const_list(self, children: list[Any]) -> list[Any]:
        return list(children)

    def const_map(self, children: list[Any]) -> dict[Any, Any]:
        return dict(zip(children[::2], children[1::2], strict=True))

    # --- fields and functions ---

    @v_args(inline=True)
    def field_id(self, value: int) -> int:
        return value

    @v_args(inline=True)
    def field_req(self, token: Token) -> Requiredness:
        return Requiredness(str(token))

    @v_args(inline=True, meta=True)
    def field(
        self, meta: Any, field_id: int | None, req: Requiredness | None, type_: Any, name: Token, default: Any
    ) -> _RawField:
        return _RawField(field_id, str(name), type_, req or Requiredness.DEFAULT, default, _line(meta))

    def oneway(self, _children: list[Any]) -> bool:
        return True

    def throws(self, children: list[_RawField]) -> tuple[Field, ...]:
        return _number_fields(children)

    @v_args(inline=True, meta=True)
    def function(self, meta: Any, oneway: bool | None, return_type: Any, name: Token, *rest: Any) -> Method:
        *arguments, throws = rest
        return Method(
            name=str(name),
            arguments=_number_fields(arguments),
            return_type=return_type,
            exceptions=throws or (),
            oneway=bool(oneway),
            line=_line(meta),
        )

    # --- definitions ---

    @v_args(inline=True)
    def const(self, type_: Any, name: Token, value: Any) -> Const:
        return Const(str(name), type_, value)

    @v_args(inline=True)
    def typedef(self, type_: Any, name: Token) -> Typedef:
        return Typedef(str(name), type_)

    @v_args(inline=True)
    def enum_value(self, name: Token, value: int | None) -> tuple[str, int | None]:
        return str(name), value

    @v_args(inline=True)
    def enum(self, name: Token, *values: tuple[str, int | None]) -> EnumDef:
        resolved: list[tuple[str, int]] = []
        next_value = 0
        for value_name, value in values:
            if value is None:
                value = next_value
            resolved.append((value_name, value))
            next_value = value + 1
        return EnumDef(str(name), tuple(resolved))

    @v_args(inline=True, meta=True)
    def struct(self, meta: Any, name: Token, *fields: _RawField) -> StructDef:
        return StructDef(str(name), _number_fields(fields), is_exception=False, line=_line(meta))

    @v_args(inline=True, meta=True)
    def exception(self, meta: Any, name: Token, *fields: _RawField) -> StructDef:
        return StructDef(str(name), _number_fields(fields), is_exception=True, line=_line(meta))

    @v_args(inline=True, meta=True)
    def union(self, meta: Any, name: Token, *_fields: _RawField) -> None:
        raise IDLSyntaxError(self._path, f"union {name} is not supported", line=_line(meta))

    @v_args(inline=True, meta=True)
    def service(self, meta: Any, name: Token, extends: Token | None, *functions: Method) -> Service:
        return Service(
            name=str(name),
            methods=tuple(functions),
            extends=str(extends) if extends is not None else None,
            line=_line(meta),
        )

    def start(self, children: list[Any]) -> Program:
        program = Program(path=self._path)
        for item in children:
            if item is None:
                continue
            if isinstance(item, Include):
                program.includes.append(item)
            elif isinstance(item, _Namespace):
                program.namespaces[item.scope] = item.name
            else:
                self._add_definition(program, item)
        return program

    def _add_definition(self, program: Program, item: Any) -> None:
        """Store a top-level definition, rejecting a second use of the same name."""
        name: str = item.name
        if any(name in table for table in (program.typedefs, program.enums, program.consts, program.structs)) or (
            name in program.services
        ):
            raise DuplicateDefinitionError(f"{name} is defined more than once in {self._path.name}")
        if isinstance(item, Typedef):
            program.typedefs[name] = item
        elif isinstance(item, EnumDef):
            program.enums[name] = item
        elif isinstance(item, Const):
            program.consts[name] = item
        elif isinstance(item, StructDef):
            program.structs[name] = item
        elif isinstance(item, Service):
            program.services[name] = item
        else:
            raise TypeError(f"Unexpected definition {item!r}")


def _unquote(literal: str) -> str:
    return literal[1:-1]


def _line(meta: Any) -> int | None:
    return getattr(meta, "line", None)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_string(source: str, path: str | Path = "<string>") -> Program:
    """Parse the text of one IDL file.

    Includes are recorded but not followed; use :func:`parse_file` for that.

    Args:
        source: IDL text.
        path: File the text came from, used for include paths and messages.

    Returns:
        The file's :class:`Program`.

    Raises:
        IDLSyntaxError: If the text is not valid IDL.
        DuplicateDefinitionError: If a top-level name is defined twice.

    """
    file_path = Path(path)
    try:
        tree = _lark().parse(source)
    except UnexpectedInput as exc:
        raise _syntax_error(file_path, exc) from None
    try:
        return _ThriftTransformer(file_path).transform(tree)
    except VisitError as exc:
        if isinstance(exc.orig_exc, ThriftGenError):
            raise exc.orig_exc from None
        raise


def parse_file(path: str | Path) -> ParsedIDL:
    """Parse an IDL file and every file it transitively includes.

    Args:
        path: The root IDL file.

    Returns:
        A :class:`ParsedIDL` keyed by resolved file path.

    Raises:
        InputError: If the root file or an included file cannot be read.
        IDLSyntaxError: If any file is not valid IDL.

    """
    root = Path(path).resolve()
    parsed = ParsedIDL(root=root)
    _parse_into(parsed, root, included_from=None)
    return parsed


def _parse_into(parsed: ParsedIDL, path: Path, *, included_from: Path | None) -> None:
    if path in parsed.programs:
        return
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as exc:
        if included_from is None:
            raise InputError(f"cannot read IDL file {path}: {exc.strerror or exc}") from exc
        raise InputError(f"{included_from}: cannot read included file {path}: {exc.strerror or exc}") from exc
    program = parse_string(source, path)
    parsed.programs[path] = program
    _logger.debug(
        "Parsed %s: %d services, %d structs, %d includes",
        path.name,
        len(program.services),
        len(program.structs),
        len(program.includes),
        extra={"path": str(path)},
    )
    for include in program.includes:
        _parse_into(parsed, include.resolved_path, included_from=path)


def _syntax_error(path: Path, exc: UnexpectedInput) -> IDLSyntaxError:
    """Convert a lark error into a one-line :class:`IDLSyntaxError`."""
    if isinstance(exc, UnexpectedToken):
        expected = ", ".join(sorted(exc.expected))
        message = f"unexpected {str(exc.token)!r}, expected one of: {expected}"
    elif isinstance(exc, UnexpectedCharacters):
        message = f"unexpected character {exc.char!r}"
    elif isinstance(exc, UnexpectedEOF):
        message = "unexpected end of file"
    else:
        message = str(exc)
    line = exc.line if isinstance(exc.line, int) and exc.line > 0 else None
    column = exc.column if isinstance(exc.column, int) and exc.column > 0 else None
    return IDLSyntaxError(path, message, line=line, column=column)
