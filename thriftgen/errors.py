# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Error taxonomy for the generator.

Every failure the generator reports derives from :class:`ThriftGenError`, so
the CLI can turn any of them into a one-line message and a non-zero exit code.
Errors raised by *generated* code live in :mod:`thriftgen.runtime` instead.
"""

from __future__ import annotations

from pathlib import Path

__all__ = [
    "CyclicInheritanceError",
    "DuplicateDefinitionError",
    "EmissionError",
    "IDLSyntaxError",
    "InputError",
    "InvalidExceptionTypeError",
    "InvalidFieldError",
    "MalformedMethodError",
    "OutputError",
    "ResolutionError",
    "ThriftGenError",
    "UnresolvedTypeError",
    "UpstreamCompilerError",
]


class ThriftGenError(Exception):
    """Base class for all generator errors."""


# ---------------------------------------------------------------------------
# Input / output
# ---------------------------------------------------------------------------


class InputError(ThriftGenError):
    """Missing or unreadable input file, or an output directory that cannot be created."""


class UpstreamCompilerError(InputError):
    """The Apache Thrift compiler could not be run or exited with an error."""

    def __init__(self, message: str, *, stderr: str = "") -> None:
        """Initialize with a message and the compiler's captured stderr."""
        self.stderr = stderr
        if stderr:
            message = f"{message}\n{stderr.rstrip()}"
        super().__init__(message)


class OutputError(ThriftGenError):
    """The generated source could not be written."""


# ---------------------------------------------------------------------------
# Syntax
# ---------------------------------------------------------------------------


class IDLSyntaxError(ThriftGenError):
    """Malformed IDL, surfaced with the parser's own message.

    Attributes:
        path: File the error was found in.
        line: 1-based line number, or ``None`` if unknown.
        column: 1-based column number, or ``None`` if unknown.

    """

    def __init__(self, path: str | Path, message: str, *, line: int | None = None, column: int | None = None) -> None:
        """Initialize with the file, message and optional position."""
        self.path = str(path)
        self.line = line
        self.column = column
        location = self.path
        if line is not None:
            location += f":{line}"
            if column is not None:
                location += f":{column}"
        super().__init__(f"{location}: {message}")


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class ResolutionError(ThriftGenError):
    """A semantic error found while building the BindingSet.

    The offending service, method and field are kept as attributes and
    prefixed to the message so the user can find them in the IDL.
    """

    def __init__(
        self,
        message: str,
        *,
        service: str | None = None,
        method: str | None = None,
        field: str | None = None,
    ) -> None:
        """Initialize with a message and the names of the offending definitions."""
        self.service = service
        self.method = method
        self.field = field
        parts: list[str] = []
        if service is not None:
            parts.append(f"service {service}")
        if method is not None:
            parts.append(f"method {method}")
        if field is not None:
            parts.append(f"field {field}")
        self.detail = message
        super().__init__(f"{', '.join(parts)}: {message}" if parts else message)


class CyclicInheritanceError(ResolutionError):
    """A service transitively extends itself."""


class UnresolvedTypeError(ResolutionError):
    """A type or parent service name does not resolve to a definition."""


class MalformedMethodError(ResolutionError):
    """A method signature cannot be bound (oneway with a result, reserved names)."""


class InvalidExceptionTypeError(ResolutionError):
    """A ``throws`` clause names something other than an IDL exception."""


class DuplicateDefinitionError(ResolutionError):
    """Two definitions share a name or field id where they must be unique."""


class InvalidFieldError(ResolutionError):
    """A field id falls outside the int16 range."""


# ---------------------------------------------------------------------------
# Emission
# ---------------------------------------------------------------------------


class EmissionError(ThriftGenError):
    """Template rendering failed, or the BindingSet broke a resolver invariant."""
