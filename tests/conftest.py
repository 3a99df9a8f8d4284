# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Shared test fixtures for thriftgen tests.

Generated modules import the upstream compiler's ``ttypes.py`` and
``<Service>.py``.  Tests don't need the compiler: :func:`write_upstream`
writes small stand-ins with the same class names, and :class:`PickleCodec`
moves them across :class:`~thriftgen.runtime.LocalTransport` without a
Thrift protocol.
"""

from __future__ import annotations

import importlib
import pickle
import sys
import textwrap
from collections.abc import Callable, Iterator
from pathlib import Path
from types import ModuleType
from typing import Any, TypeVar

import pytest

from thriftgen.driver import generate_source
from thriftgen.output import output_path, package_name

T = TypeVar("T")

ECHO_IDL = """\
namespace py echo

exception NotFound {
  1: string message
}

service Echo {
  string ping(1: string arg1) throws (1: NotFound notFound)
  oneway void fireAndForget(1: string arg1)
}
"""

ECHO_UPSTREAM = {
    "ttypes": """\
        class NotFound(Exception):
            def __init__(self, message=None):
                super().__init__(message)
                self.message = message
        """,
    "Echo": """\
        class ping_args:
            def __init__(self, arg1=None):
                self.arg1 = arg1


        class ping_result:
            def __init__(self, success=None, notFound=None):
                self.success = success
                self.notFound = notFound


        class fireAndForget_args:
            def __init__(self, arg1=None):
                self.arg1 = arg1
        """,
}


class PickleCodec:
    """Test codec that pickles whole structs instead of using a Thrift protocol."""

    def __init__(self) -> None:
        """Initialize with empty traffic counters."""
        self.encoded: list[Any] = []

    def encode(self, struct: Any) -> bytes:
        """Pickle ``struct`` and remember it."""
        self.encoded.append(struct)
        return pickle.dumps(struct)

    def decode(self, payload: bytes, struct_type: type[T]) -> T:
        """Unpickle ``payload`` and check it is a ``struct_type``."""
        obj = pickle.loads(payload)
        assert isinstance(obj, struct_type), f"expected {struct_type.__name__}, got {type(obj).__name__}"
        return obj


def write_idl(directory: Path, name: str, source: str) -> Path:
    """Write IDL ``source`` to ``directory/name`` and return the path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(textwrap.dedent(source), encoding="utf-8")
    return path


def write_upstream(gen_dir: Path, package: str, modules: dict[str, str]) -> Path:
    """Write stand-ins for the upstream compiler's modules of the dotted ``package``."""
    pkg_dir = gen_dir
    for part in package.split("."):
        pkg_dir = pkg_dir / part
        pkg_dir.mkdir(exist_ok=True)
        (pkg_dir / "__init__.py").touch()
    for name, source in modules.items():
        (pkg_dir / f"{name}.py").write_text(textwrap.dedent(source), encoding="utf-8")
    return pkg_dir


@pytest.fixture
def import_generated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Callable[..., ModuleType]]:
    """Generate bindings for an IDL file, write them beside stand-ins, and import them.

    Yields a callable ``(idl_path, upstream, extra_packages=None, upstream_package=None) -> module``.
    The root file's stand-ins go to ``upstream_package``, by default the
    output package.
    Modules imported this way are removed from ``sys.modules`` afterwards.
    """
    gen_dir = tmp_path / "gen-py"
    gen_dir.mkdir()
    monkeypatch.syspath_prepend(str(gen_dir))
    packages: list[str] = []

    def _import(
        idl_path: Path,
        upstream: dict[str, str],
        extra_packages: dict[str, dict[str, str]] | None = None,
        upstream_package: str | None = None,
    ) -> ModuleType:
        package = package_name(idl_path)
        upstream_package = upstream_package or package
        write_upstream(gen_dir, upstream_package, upstream)
        packages.extend([package, upstream_package.split(".")[0]])
        for extra, modules in (extra_packages or {}).items():
            write_upstream(gen_dir, extra, modules)
            packages.append(extra.split(".")[0])
        target = output_path(gen_dir, idl_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(generate_source(idl_path), encoding="utf-8")
        importlib.invalidate_caches()
        return importlib.import_module(f"{package}.tchan_{package}")

    yield _import

    for name in list(sys.modules):
        if name.split(".")[0] in packages:
            del sys.modules[name]


@pytest.fixture
def echo_idl(tmp_path: Path) -> Path:
    """The Echo service IDL used by the end-to-end tests."""
    return write_idl(tmp_path / "idl", "echo.thrift", ECHO_IDL)
