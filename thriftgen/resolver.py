# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Binding resolution: parsed IDL → :class:`~thriftgen.bindings.BindingSet`.

All semantic checks happen here so the emitter can render blindly:

- type names resolve to base types, containers, or definitions in the file
  or one of its includes (typedef chains are followed);
- ``extends`` chains are walked depth-first, rejecting cycles, and flattened
  into an effective method list where a redeclared method replaces the
  inherited one;
- oneway methods declare neither a result nor exceptions;
- ``throws`` entries name IDL exceptions;
- field ids and names are unique;
- method, argument and service names are usable in the generated module,
  and the modules it imports do not shadow each other or its own names.
"""

from __future__ import annotations

import keyword
import logging
from pathlib import Path
from types import MappingProxyType

from thriftgen.bindings import (
    BindingSet,
    BoundField,
    BoundMethod,
    BoundService,
    IncludeBinding,
    ResolvedType,
    TypeKind,
)
from thriftgen.errors import (
    CyclicInheritanceError,
    DuplicateDefinitionError,
    InvalidExceptionTypeError,
    InvalidFieldError,
    MalformedMethodError,
    ResolutionError,
    UnresolvedTypeError,
)
from thriftgen.idl import (
    BaseType,
    ContainerKind,
    ContainerType,
    Field,
    Include,
    Method,
    NamedType,
    ParsedIDL,
    Program,
    Service,
    StructDef,
    Typedef,
    TypeRef,
)

__all__ = ["resolve"]

_logger = logging.getLogger("thriftgen.resolver")

_PYTHON_BASE_TYPES: dict[str, str] = {
    "bool": "bool",
    "byte": "int",
    "i8": "int",
    "i16": "int",
    "i32": "int",
    "i64": "int",
    "double": "float",
    "string": "str",
    "binary": "bytes",
}

_PYTHON_CONTAINERS: dict[ContainerKind, str] = {
    ContainerKind.LIST: "list",
    ContainerKind.SET: "set",
    ContainerKind.MAP: "dict",
}

# Names the generated method bodies use besides the arguments.
_RESERVED_ARGUMENT_NAMES = frozenset({"ctx", "self", "_args", "_result", "MissingResultError"})

# Members of the generated client and server classes.
_RESERVED_METHOD_NAMES = frozenset({"service_name", "methods", "handlers", "register", "_client"})

# Modules the upstream compiler writes beside the service modules.
_UPSTREAM_MODULES = frozenset({"ttypes", "constants"})

# Top-level names of a generated module other than its service classes.
_MODULE_GLOBALS = frozenset(
    {
        "annotations",
        "Protocol",
        "BinaryCodec",
        "Codec",
        "Context",
        "Handler",
        "MissingResultError",
        "OnewayHandler",
        "Registrar",
        "ThriftClient",
        "TwoWayHandler",
    }
)

# Field name the upstream result struct uses for the return value.
_SUCCESS_FIELD = "success"

_INT16_MIN = -(2**15)
_INT16_MAX = 2**15 - 1


def _check_name(
    name: str,
    *,
    kind: str,
    reserved: frozenset[str] = frozenset(),
    error: type[ResolutionError] = MalformedMethodError,
    **context: str | None,
) -> None:
    """Reject ``name`` unless it can be used verbatim as a Python identifier."""
    if not name.isidentifier():
        raise error(f"{kind} name {name!r} is not a Python identifier", **context)
    if keyword.iskeyword(name) or name in reserved or (name.startswith("__") and name.endswith("__")):
        raise error(f"{kind} name {name!r} is reserved", **context)


class _Resolver:
    """One resolution run over a :class:`ParsedIDL`."""

    def __init__(self, parsed: ParsedIDL) -> None:
        self._parsed = parsed
        self._root = parsed.program
        self._local_imports: set[str] = set()
        self._imports: set[str] = set()
        self._effective: dict[tuple[Path, str], tuple[BoundMethod, ...]] = {}
        self._visiting: list[tuple[Path, str]] = []

    def run(self) -> BindingSet:
        for struct in self._root.structs.values():
            self._check_struct(struct)
        for typedef in self._root.typedefs.values():
            self._resolve_type(self._root, typedef.type, track=False)

        services = tuple(self._bind_service(service) for service in self._root.services.values())
        self._check_module_names(services)
        includes = {
            inc.path: IncludeBinding(path=inc.path, package=self._include_package(inc)) for inc in self._root.includes
        }
        return BindingSet(
            package=self._root.package,
            source=self._root.path.name,
            services=services,
            includes=MappingProxyType(includes),
            local_imports=tuple(sorted(self._local_imports)),
            imports=tuple(sorted(self._imports)),
        )

    def _include_package(self, include: Include) -> str:
        target = self._parsed.programs.get(include.resolved_path)
        return target.upstream_package if target is not None else include.stem

    def _check_module_names(self, services: tuple[BoundService, ...]) -> None:
        """Reject imports that shadow module names or that method arguments would shadow."""
        roots = {module.split(".")[0] for module in self._imports}
        imported = self._local_imports | roots
        defined = {f"TChan{s.name}{suffix}" for s in services for suffix in ("", "Client", "Server")}
        clashes = sorted((self._local_imports & roots) | (imported & (defined | _MODULE_GLOBALS)))
        if clashes:
            raise ResolutionError(f"imported module {clashes[0]} collides with another name in the generated module")
        for service in services:
            for method in service.methods:
                for arg in method.arguments:
                    if arg.name in imported:
                        raise MalformedMethodError(
                            f"argument name {arg.name!r} shadows the imported module {arg.name}",
                            service=service.name,
                            method=method.name,
                            field=arg.name,
                        )

    # -- services --

    def _bind_service(self, service: Service) -> BoundService:
        methods = self._effective_methods(self._root, service)
        inheritance: list[str] = []
        program, current = self._root, service
        while current.extends is not None:
            program, current = self._lookup_service(program, current.extends, service=current.name)
            inheritance.append(self._qualified(program, current.name))
        _logger.debug(
            "Resolved service %s: %d effective methods, %d ancestors",
            service.name,
            len(methods),
            len(inheritance),
            extra={"service": service.name},
        )
        return BoundService(
            name=service.name,
            parent=service.extends,
            inheritance=tuple(inheritance),
            methods=methods,
        )

    def _effective_methods(self, program: Program, service: Service) -> tuple[BoundMethod, ...]:
        """Flatten ``service`` and its ancestors, depth-first."""
        key = (program.path, service.name)
        cached = self._effective.get(key)
        if cached is not None:
            return cached
        if key in self._visiting:
            start = self._visiting.index(key)
            chain = [name for _, name in self._visiting[start:]] + [service.name]
            raise CyclicInheritanceError(f"inheritance cycle {' -> '.join(chain)}", service=service.name)
        _check_name(
            service.name,
            kind="service",
            reserved=_UPSTREAM_MODULES,
            error=ResolutionError,
            service=service.name,
        )

        self._visiting.append(key)
        try:
            methods: dict[str, BoundMethod] = {}
            if service.extends is not None:
                parent_program, parent = self._lookup_service(program, service.extends, service=service.name)
                for inherited in self._effective_methods(parent_program, parent):
                    methods[inherited.name] = inherited
            declared: set[str] = set()
            for method in service.methods:
                if method.name in declared:
                    raise DuplicateDefinitionError(
                        "method is declared more than once", service=service.name, method=method.name
                    )
                declared.add(method.name)
                # Redeclaring an inherited method replaces it; own methods follow inherited ones.
                methods.pop(method.name, None)
                methods[method.name] = self._bind_method(program, service, method)
        finally:
            self._visiting.pop()

        result = tuple(methods.values())
        self._effective[key] = result
        return result

    def _lookup_service(self, program: Program, name: str, *, service: str) -> tuple[Program, Service]:
        found = self._split_qualified(program, name)
        if found is not None:
            target, local_name = found
            parent = target.services.get(local_name)
            if parent is not None:
                return target, parent
        raise UnresolvedTypeError(f"extends unknown service {name}", service=service)

    # -- methods --

    def _bind_method(self, program: Program, service: Service, method: Method) -> BoundMethod:
        context = {"service": service.name, "method": method.name}
        _check_name(method.name, kind="method", reserved=_RESERVED_METHOD_NAMES, **context)
        if method.oneway and method.return_type is not None:
            raise MalformedMethodError(f"oneway method cannot return {method.return_type}", **context)
        if method.oneway and method.exceptions:
            raise MalformedMethodError("oneway method cannot declare exceptions", **context)

        self._check_fields(method.arguments, kind="argument", **context)
        self._check_fields(method.exceptions, kind="exception", **context)

        arguments: list[BoundField] = []
        for arg in method.arguments:
            _check_name(arg.name, kind="argument", reserved=_RESERVED_ARGUMENT_NAMES, field=arg.name, **context)
            resolved = self._resolve_type(program, arg.type, field=arg.name, **context)
            arguments.append(BoundField(id=arg.id, name=arg.name, type=resolved))

        exceptions: list[BoundField] = []
        for exc in method.exceptions:
            _check_name(exc.name, kind="exception", reserved=frozenset({_SUCCESS_FIELD}), field=exc.name, **context)
            resolved = self._resolve_type(program, exc.type, field=exc.name, **context)
            if resolved.kind is not TypeKind.EXCEPTION:
                raise InvalidExceptionTypeError(
                    f"{exc.type} is a {resolved.kind.value}, not an exception", field=exc.name, **context
                )
            exceptions.append(BoundField(id=exc.id, name=exc.name, type=resolved))

        return_type = None
        if method.return_type is not None:
            return_type = self._resolve_type(program, method.return_type, **context)

        return BoundMethod(
            name=method.name,
            arguments=tuple(arguments),
            return_type=return_type,
            exceptions=tuple(exceptions),
            oneway=method.oneway,
            declaring_service=self._qualified(program, service.name),
            module=self._module(program, service.name),
        )

    # -- fields --

    def _check_struct(self, struct: StructDef) -> None:
        kind = "exception" if struct.is_exception else "struct"
        self._check_fields(struct.fields, kind="field", service=None, method=None, owner=f"{kind} {struct.name}")
        for member in struct.fields:
            self._resolve_type(self._root, member.type, field=f"{struct.name}.{member.name}", track=False)

    @staticmethod
    def _check_fields(
        fields: tuple[Field, ...],
        *,
        kind: str,
        service: str | None,
        method: str | None,
        owner: str | None = None,
    ) -> None:
        """Reject duplicate names and ids, and ids outside int16."""
        prefix = f"{owner}: " if owner else ""
        ids: dict[int, str] = {}
        names: set[str] = set()
        for item in fields:
            if not _INT16_MIN <= item.id <= _INT16_MAX:
                raise InvalidFieldError(
                    f"{prefix}{kind} id {item.id} is outside the int16 range",
                    service=service,
                    method=method,
                    field=item.name,
                )
            if item.id in ids:
                raise DuplicateDefinitionError(
                    f"{prefix}{kind} id {item.id} is already used by {ids[item.id]}",
                    service=service,
                    method=method,
                    field=item.name,
                )
            if item.name in names:
                raise DuplicateDefinitionError(
                    f"{prefix}{kind} name is declared more than once",
                    service=service,
                    method=method,
                    field=item.name,
                )
            ids[item.id] = item.name
            names.add(item.name)

    # -- types --

    def _resolve_type(
        self,
        program: Program,
        type_ref: TypeRef,
        *,
        service: str | None = None,
        method: str | None = None,
        field: str | None = None,
        track: bool = True,
        seen: frozenset[tuple[Path, str]] = frozenset(),
    ) -> ResolvedType:
        """Resolve ``type_ref`` as seen from ``program``.

        Args:
            program: File in which the reference is written.
            type_ref: The reference to resolve.
            service: Offending service name for error messages.
            method: Offending method name for error messages.
            field: Offending field name for error messages.
            track: Record the modules the annotation refers to as imports.
            seen: Typedefs already being expanded, to detect typedef cycles.

        Returns:
            The resolved type.

        Raises:
            UnresolvedTypeError: If the name is unknown or a typedef refers to itself.

        """
        context = {"service": service, "method": method, "field": field}
        if isinstance(type_ref, BaseType):
            return ResolvedType(type_ref.name, TypeKind.BASE, _PYTHON_BASE_TYPES[type_ref.name])

        if isinstance(type_ref, ContainerType):
            value = self._resolve_type(program, type_ref.value_type, track=track, seen=seen, **context)
            container = _PYTHON_CONTAINERS[type_ref.kind]
            if type_ref.key_type is not None:
                key = self._resolve_type(program, type_ref.key_type, track=track, seen=seen, **context)
                annotation = f"{container}[{key.annotation}, {value.annotation}]"
            else:
                annotation = f"{container}[{value.annotation}]"
            return ResolvedType(str(type_ref), TypeKind.CONTAINER, annotation)

        assert isinstance(type_ref, NamedType)
        found = self._split_qualified(program, type_ref.name)
        if found is None:
            raise UnresolvedTypeError(f"unknown type {type_ref.name}", **context)
        target, name = found

        typedef = target.typedefs.get(name)
        if typedef is not None:
            return self._resolve_typedef(target, typedef, type_ref.name, track=track, seen=seen, **context)

        if name in target.enums:
            return ResolvedType(type_ref.name, TypeKind.ENUM, "int")

        struct = target.structs.get(name)
        if struct is not None:
            kind = TypeKind.EXCEPTION if struct.is_exception else TypeKind.STRUCT
            module = self._module(target, "ttypes", track=track)
            return ResolvedType(type_ref.name, kind, f"{module}.{name}")

        raise UnresolvedTypeError(f"unknown type {type_ref.name}", **context)

    def _resolve_typedef(
        self,
        program: Program,
        typedef: Typedef,
        spelled: str,
        *,
        track: bool,
        seen: frozenset[tuple[Path, str]],
        **context: str | None,
    ) -> ResolvedType:
        key = (program.path, typedef.name)
        if key in seen:
            raise UnresolvedTypeError(f"typedef {typedef.name} refers to itself", **context)
        target = self._resolve_type(program, typedef.type, track=track, seen=seen | {key}, **context)
        return ResolvedType(spelled, target.kind, target.annotation)

    # -- naming --

    def _split_qualified(self, program: Program, name: str) -> tuple[Program, str] | None:
        """Find the file a possibly ``prefix.``-qualified name lives in."""
        if "." not in name:
            return program, name
        prefix, _, rest = name.partition(".")
        include = program.include_by_stem(prefix)
        if include is None or "." in rest:
            return None
        target = self._parsed.programs.get(include.resolved_path)
        if target is None:
            return None
        return target, rest

    def _module(self, program: Program, module: str, *, track: bool = True) -> str:
        """Python expression for ``module`` of ``program``'s upstream package, recording the import.

        The root file's modules are siblings of the generated file when the
        upstream compiler wrote them to the output package; anything else is
        imported by its full package path.
        """
        package = program.upstream_package
        if program is self._root and package == program.package:
            if track:
                self._local_imports.add(module)
            return module
        if not all(part.isidentifier() and not keyword.iskeyword(part) for part in package.split(".")):
            raise ResolutionError(f"Python package {package!r} of {program.path.name} cannot be imported")
        qualified = f"{package}.{module}"
        if track:
            self._imports.add(qualified)
        return qualified

    def _qualified(self, program: Program, name: str) -> str:
        if program is self._root:
            return name
        return f"{program.path.stem}.{name}"


def resolve(parsed: ParsedIDL) -> BindingSet:
    """Build the :class:`BindingSet` for the root file of ``parsed``.

    Args:
        parsed: The root file plus its transitive includes.

    Returns:
        An immutable, self-contained BindingSet.

    Raises:
        ResolutionError: A subclass naming the offending service, method or
            field when the IDL is semantically invalid.

    """
    bindings = _Resolver(parsed).run()
    _logger.info(
        "Resolved %s: %d services",
        bindings.source,
        len(bindings.services),
        extra={"path": str(parsed.root), "stage": "resolve"},
    )
    return bindings
