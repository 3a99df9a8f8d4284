# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Tests for binding resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.conftest import write_idl
from thriftgen.bindings import BindingSet, TypeKind
from thriftgen.errors import (
    CyclicInheritanceError,
    DuplicateDefinitionError,
    InvalidExceptionTypeError,
    InvalidFieldError,
    MalformedMethodError,
    ResolutionError,
    UnresolvedTypeError,
)
from thriftgen.idl import ParsedIDL
from thriftgen.parser import parse_file, parse_string
from thriftgen.resolver import resolve


def _resolve(source: str, name: str = "test.thrift") -> BindingSet:
    """Resolve a single IDL file given as text."""
    path = Path("/virtual") / name
    program = parse_string(source, path)
    return resolve(ParsedIDL(root=path, programs={path: program}))


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


class TestTypes:
    """IDL types map to Python annotations."""

    def test_base_and_container_annotations(self) -> None:
        """Base types and containers map to builtin annotations."""
        bindings = _resolve(
            """
            service S {
              map<string, list<i64>> m(1: bool a, 2: byte b, 3: double c, 4: binary d, 5: set<i32> e)
            }
            """
        )
        method = bindings.services[0].methods[0]
        assert [a.type.annotation for a in method.arguments] == ["bool", "int", "float", "bytes", "set[int]"]
        assert method.return_type is not None
        assert method.return_type.annotation == "dict[str, list[int]]"
        assert method.return_type.kind is TypeKind.CONTAINER

    def test_typedefs_enums_and_structs(self) -> None:
        """Typedef chains are followed, enums become int, structs go through ttypes."""
        bindings = _resolve(
            """
            struct User { 1: string name }
            enum Role { ADMIN, GUEST }
            typedef User Person
            typedef Person Member
            service S { Member get(1: Role role) }
            """
        )
        method = bindings.services[0].methods[0]
        assert method.arguments[0].type.kind is TypeKind.ENUM
        assert method.arguments[0].type.annotation == "int"
        assert method.return_type is not None
        assert method.return_type.kind is TypeKind.STRUCT
        assert method.return_type.annotation == "ttypes.User"
        assert method.return_type.idl_name == "Member"
        assert bindings.local_imports == ("S", "ttypes")

    def test_unknown_type(self) -> None:
        """An unknown argument type names the service, method and field."""
        with pytest.raises(UnresolvedTypeError) as excinfo:
            _resolve("service S { void m(1: Missing x) }")
        err = excinfo.value
        assert (err.service, err.method, err.field) == ("S", "m", "x")
        assert str(err) == "service S, method m, field x: unknown type Missing"

    def test_typedef_cycle(self) -> None:
        """A typedef that expands to itself is rejected."""
        with pytest.raises(UnresolvedTypeError, match="refers to itself"):
            _resolve("typedef B A\ntypedef A B\nservice S { A m() }")

    def test_struct_with_unknown_member(self) -> None:
        """Struct members are checked even when no method uses the struct."""
        with pytest.raises(UnresolvedTypeError, match="field Box.item"):
            _resolve("struct Box { 1: Nothing item }")


# ---------------------------------------------------------------------------
# Methods
# ---------------------------------------------------------------------------


class TestMethods:
    """Method-level checks."""

    def test_oneway_with_return(self) -> None:
        """A oneway method cannot return a value."""
        with pytest.raises(MalformedMethodError, match="oneway method cannot return i32") as excinfo:
            _resolve("service S { oneway i32 m() }")
        assert excinfo.value.method == "m"

    def test_oneway_with_exceptions(self) -> None:
        """A oneway method cannot declare exceptions."""
        with pytest.raises(MalformedMethodError, match="cannot declare exceptions"):
            _resolve("exception E {}\nservice S { oneway void m() throws (1: E e) }")

    def test_oneway_binding(self) -> None:
        """A valid oneway method has no return type and no exceptions."""
        method = _resolve("service S { oneway void m(1: string a) }").services[0].methods[0]
        assert method.oneway
        assert not method.has_return
        assert method.exceptions == ()

    def test_throws_must_name_exception(self) -> None:
        """Structs and base types are rejected in throws clauses."""
        with pytest.raises(InvalidExceptionTypeError, match="not an exception"):
            _resolve("struct NotAnError {}\nservice S { void m() throws (1: NotAnError e) }")
        with pytest.raises(InvalidExceptionTypeError):
            _resolve("service S { void m() throws (1: string e) }")

    def test_exceptions_keep_declaration_order(self) -> None:
        """Declared exceptions keep their order regardless of ids."""
        bindings = _resolve(
            """
            exception A {}
            exception B {}
            service S { void m() throws (2: B b, 1: A a) }
            """
        )
        method = bindings.services[0].methods[0]
        assert [(e.id, e.name, e.type.annotation) for e in method.exceptions] == [
            (2, "b", "ttypes.B"),
            (1, "a", "ttypes.A"),
        ]
        assert all(e.type.kind is TypeKind.EXCEPTION for e in method.exceptions)

    def test_duplicate_argument_id(self) -> None:
        """Two arguments with one id are rejected."""
        with pytest.raises(DuplicateDefinitionError, match="argument id 1 is already used by a"):
            _resolve("service S { void m(1: i32 a, 1: i32 b) }")

    def test_duplicate_argument_name(self) -> None:
        """Two arguments with one name are rejected."""
        with pytest.raises(DuplicateDefinitionError, match="declared more than once"):
            _resolve("service S { void m(1: i32 a, 2: i32 a) }")

    def test_field_id_out_of_range(self) -> None:
        """Ids outside int16 are rejected."""
        with pytest.raises(InvalidFieldError, match="outside the int16 range"):
            _resolve("service S { void m(40000: i32 a) }")

    @pytest.mark.parametrize("name", ["ctx", "self", "class", "lambda", "_args", "_result"])
    def test_reserved_argument_names(self, name: str) -> None:
        """Argument names that would clash in generated code are rejected."""
        with pytest.raises(MalformedMethodError, match="is reserved"):
            _resolve(f"service S {{ void m(1: i32 {name}) }}")

    @pytest.mark.parametrize("name", ["async", "await", "lambda", "None", "nonlocal", "from"])
    def test_keyword_method_names(self, name: str) -> None:
        """Method names that are Python keywords cannot become method definitions."""
        with pytest.raises(MalformedMethodError, match=f"method name '{name}' is reserved") as excinfo:
            _resolve(f"service S {{ void {name}(1: string a) }}")
        assert excinfo.value.method == name

    @pytest.mark.parametrize("name", ["service_name", "register", "handlers", "__init__"])
    def test_method_names_replacing_generated_members(self, name: str) -> None:
        """Methods cannot replace members of the generated client and server."""
        with pytest.raises(MalformedMethodError, match="is reserved"):
            _resolve(f"service S {{ void {name}() }}")

    def test_dotted_method_name(self) -> None:
        """A dotted IDL identifier is not a Python method name."""
        with pytest.raises(MalformedMethodError, match="'a.b' is not a Python identifier"):
            _resolve("service S { void a.b() }")

    def test_argument_shadowing_imported_module(self) -> None:
        """Arguments cannot shadow the modules the client body refers to."""
        with pytest.raises(MalformedMethodError, match="shadows the imported module ttypes") as excinfo:
            _resolve("exception E {}\nservice S { void m(1: string ttypes) throws (1: E e) }")
        assert (excinfo.value.service, excinfo.value.method, excinfo.value.field) == ("S", "m", "ttypes")
        with pytest.raises(MalformedMethodError, match="shadows the imported module S"):
            _resolve("service S { void m(1: string S) }")

    def test_exception_named_success(self) -> None:
        """An exception field cannot shadow the result's ``success`` field."""
        with pytest.raises(MalformedMethodError, match="'success' is reserved"):
            _resolve("exception E {}\nservice S { i32 m() throws (1: E success) }")

    def test_duplicate_method(self) -> None:
        """A service cannot declare a method twice."""
        with pytest.raises(DuplicateDefinitionError, match="method is declared more than once"):
            _resolve("service S { void m()\n void m() }")

    def test_args_and_result_structs(self) -> None:
        """Own methods use the service's upstream module."""
        method = _resolve("service Echo { string ping() }").services[0].methods[0]
        assert method.args_struct == "Echo.ping_args"
        assert method.result_struct == "Echo.ping_result"
        assert method.declaring_service == "Echo"


# ---------------------------------------------------------------------------
# Service and module names
# ---------------------------------------------------------------------------


class TestModuleNames:
    """Names that become modules or classes in the generated file."""

    def test_keyword_service_name(self) -> None:
        """A service named like a keyword cannot be imported."""
        with pytest.raises(ResolutionError, match="service name 'async' is reserved") as excinfo:
            _resolve("service async { void m() }")
        assert excinfo.value.service == "async"

    def test_service_named_like_upstream_module(self) -> None:
        """A service cannot share its module name with ``ttypes``."""
        with pytest.raises(ResolutionError, match="service name 'ttypes' is reserved"):
            _resolve("service ttypes { void m() }")

    def test_service_module_shadowing_runtime_name(self) -> None:
        """A service module cannot replace a name the generated module imports."""
        with pytest.raises(ResolutionError, match="imported module Protocol collides"):
            _resolve("service Protocol { void m() }")

    def test_service_module_shadowing_include_package(self, tmp_path: Path) -> None:
        """A local service module cannot share its name with an included package."""
        write_idl(tmp_path, "shared.thrift", "struct Item {}\n")
        source = 'include "shared.thrift"\nservice shared { void m(1: shared.Item i) }\n'
        root = write_idl(tmp_path, "main.thrift", source)
        with pytest.raises(ResolutionError, match="imported module shared collides"):
            resolve(parse_file(root))


# ---------------------------------------------------------------------------
# Inheritance
# ---------------------------------------------------------------------------


class TestInheritance:
    """``extends`` flattening and cycle detection."""

    def test_flattening_order(self) -> None:
        """Inherited methods come first, nearest ancestor last, then own methods."""
        bindings = _resolve(
            """
            service A { void a1()
                        void a2() }
            service B extends A { void b1() }
            service C extends B { void c1() }
            """
        )
        c = bindings.services[2]
        assert [m.name for m in c.methods] == ["a1", "a2", "b1", "c1"]
        assert [m.declaring_service for m in c.methods] == ["A", "A", "B", "C"]
        assert [m.module for m in c.methods] == ["A", "A", "B", "C"]
        assert c.parent == "B"
        assert c.inheritance == ("B", "A")
        assert bindings.local_imports == ("A", "B", "C")

    def test_redeclared_method_replaces_inherited(self) -> None:
        """A child's own method wins over the inherited one of the same name."""
        bindings = _resolve(
            """
            service Base { void shared()
                           void other() }
            service Child extends Base { i32 shared() }
            """
        )
        child = bindings.services[1]
        assert [m.name for m in child.methods] == ["other", "shared"]
        shared = child.methods[1]
        assert shared.declaring_service == "Child"
        assert shared.return_type is not None

    def test_self_cycle(self) -> None:
        """A service extending itself is a cycle."""
        with pytest.raises(CyclicInheritanceError, match="inheritance cycle A -> A"):
            _resolve("service A extends A {}")

    def test_two_service_cycle(self) -> None:
        """A -> B -> A is reported with the full chain."""
        with pytest.raises(CyclicInheritanceError, match="inheritance cycle A -> B -> A"):
            _resolve("service A extends B {}\nservice B extends A {}")

    def test_unknown_parent(self) -> None:
        """Extending an undeclared service is an unresolved reference."""
        with pytest.raises(UnresolvedTypeError, match="extends unknown service Ghost") as excinfo:
            _resolve("service A extends Ghost {}")
        assert excinfo.value.service == "A"

    def test_errors_are_resolution_errors(self) -> None:
        """Every resolver error shares the ResolutionError base."""
        with pytest.raises(ResolutionError):
            _resolve("service A extends A {}")


# ---------------------------------------------------------------------------
# Includes
# ---------------------------------------------------------------------------


class TestIncludes:
    """Types and parent services from included files."""

    def test_included_types_and_parent(self, tmp_path: Path) -> None:
        """Qualified names resolve into the include's upstream package, case kept, imported absolutely."""
        write_idl(
            tmp_path,
            "Shared.thrift",
            """
            struct Item { 1: string name }
            exception Gone {}
            service SharedService { Item getItem(1: i32 key) throws (1: Gone gone) }
            """,
        )
        root = write_idl(
            tmp_path,
            "main.thrift",
            """
            include "Shared.thrift"
            service Store extends Shared.SharedService {
              void put(1: Shared.Item item)
            }
            """,
        )
        bindings = resolve(parse_file(root))

        store = bindings.services[0]
        get_item, put = store.methods
        assert get_item.module == "Shared.SharedService"
        assert get_item.declaring_service == "Shared.SharedService"
        assert get_item.return_type is not None
        assert get_item.return_type.annotation == "Shared.ttypes.Item"
        assert get_item.exceptions[0].type.annotation == "Shared.ttypes.Gone"
        assert put.arguments[0].type.annotation == "Shared.ttypes.Item"
        assert store.inheritance == ("Shared.SharedService",)

        assert bindings.imports == ("Shared.SharedService", "Shared.ttypes")
        assert bindings.local_imports == ("Store",)
        assert bindings.includes["Shared.thrift"].package == "Shared"

    def test_namespaced_root_and_include(self, tmp_path: Path) -> None:
        """``namespace py`` decides the package the upstream modules are imported from."""
        write_idl(tmp_path, "shared.thrift", "namespace py com.acme.shared\nstruct Item {}\n")
        root = write_idl(
            tmp_path,
            "echo.thrift",
            """
            namespace py com.acme.echo
            include "shared.thrift"
            service Echo { shared.Item get(1: string key) }
            """,
        )
        bindings = resolve(parse_file(root))

        method = bindings.services[0].methods[0]
        assert method.args_struct == "com.acme.echo.Echo.get_args"
        assert method.return_type is not None
        assert method.return_type.annotation == "com.acme.shared.ttypes.Item"
        assert bindings.package == "echo"
        assert bindings.local_imports == ()
        assert bindings.imports == ("com.acme.echo.Echo", "com.acme.shared.ttypes")
        assert bindings.includes["shared.thrift"].package == "com.acme.shared"

    def test_root_stem_keeps_case(self) -> None:
        """Without a namespace the upstream package is the stem as written."""
        bindings = _resolve("exception E {}\nservice Echo { void m() throws (1: E e) }", "Echo.thrift")
        assert bindings.package == "echo"
        assert bindings.local_imports == ()
        assert bindings.imports == ("Echo.Echo", "Echo.ttypes")

    def test_namespace_matching_output_package(self) -> None:
        """A root whose upstream package is the output package is imported relatively."""
        bindings = _resolve("namespace py echo\nservice Echo { void m() }", "echo.thrift")
        assert bindings.local_imports == ("Echo",)
        assert bindings.imports == ()

    def test_unimportable_namespace(self) -> None:
        """A package with a keyword part cannot be imported."""
        with pytest.raises(ResolutionError, match="Python package 'app.class' of test.thrift cannot be imported"):
            _resolve("namespace py app.class\nservice S { void m() }")

    def test_unknown_include_prefix(self) -> None:
        """A prefix that names no include is unresolved."""
        with pytest.raises(UnresolvedTypeError, match="unknown type other.Thing"):
            _resolve("service S { void m(1: other.Thing t) }")
