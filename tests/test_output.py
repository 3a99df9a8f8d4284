# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Tests for whitespace finalization and output placement."""

from __future__ import annotations

from pathlib import Path

import pytest

from thriftgen.errors import OutputError
from thriftgen.output import clean_generated_code, output_path, package_name, write_output


class TestCleanGeneratedCode:
    """Whitespace normalization of rendered text."""

    def test_whitespace_only_lines_become_empty(self) -> None:
        """Indented blank lines lose their indentation."""
        assert clean_generated_code("a\n    \n\t\nb\n") == "a\n\n\nb\n"

    def test_collapses_blank_runs(self) -> None:
        """More than two consecutive blank lines collapse to two."""
        assert clean_generated_code("a\n\n\n\n\n\nb") == "a\n\n\nb\n"

    def test_strips_trailing_whitespace(self) -> None:
        """Trailing spaces and tabs are removed from every line."""
        assert clean_generated_code("x = 1   \ny = 2\t\n") == "x = 1\ny = 2\n"

    def test_single_trailing_newline(self) -> None:
        """Output ends with exactly one newline."""
        assert clean_generated_code("a") == "a\n"
        assert clean_generated_code("a\n\n\n") == "a\n"

    def test_idempotent(self) -> None:
        """Cleaning already-clean text changes nothing."""
        once = clean_generated_code("class A:\n    \n\n\n\n    x = 1  \n")
        assert clean_generated_code(once) == once


class TestPaths:
    """Package naming and output location."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [("echo.thrift", "echo"), ("idl/MyService.thrift", "myservice"), ("a.b.thrift", "a.b")],
    )
    def test_package_name(self, path: str, expected: str) -> None:
        """The package is the lowercased file stem."""
        assert package_name(path) == expected

    def test_output_path(self) -> None:
        """The module lands in ``<dir>/<pkg>/tchan_<pkg>.py``."""
        assert output_path("gen-py", "idl/Echo.thrift") == Path("gen-py/echo/tchan_echo.py")
        assert output_path("gen-py", "idl/Echo.thrift").stem.isidentifier()


class TestWriteOutput:
    """Atomic writes."""

    def test_creates_parents_and_writes(self, tmp_path: Path) -> None:
        """Missing parent directories are created."""
        target = tmp_path / "gen-py" / "echo" / "tchan_echo.py"
        write_output(target, "x = 1\n")
        assert target.read_text(encoding="utf-8") == "x = 1\n"

    def test_replaces_existing_file(self, tmp_path: Path) -> None:
        """An existing module is replaced and no temporary files remain."""
        target = tmp_path / "tchan_echo.py"
        target.write_text("old\n", encoding="utf-8")
        write_output(target, "new\n")
        assert target.read_text(encoding="utf-8") == "new\n"
        assert [p.name for p in tmp_path.iterdir()] == ["tchan_echo.py"]

    def test_unwritable_destination(self, tmp_path: Path) -> None:
        """A parent path that is a file raises OutputError."""
        blocker = tmp_path / "gen-py"
        blocker.write_text("not a directory", encoding="utf-8")
        with pytest.raises(OutputError, match="cannot write"):
            write_output(blocker / "echo" / "tchan_echo.py", "x = 1\n")
