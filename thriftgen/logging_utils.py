# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Single-line JSON log records for ``thrift-gen --log-format json``.

Every record has ``timestamp`` (UTC, ISO 8601), ``level``, ``logger`` and
``message``, followed by whichever generator context the call site attached
with ``extra``: ``stage``, ``path``, ``service``, ``method``, ``field`` and
``error_type``.  A record logged with a :class:`~thriftgen.errors.ThriftGenError`
as its exception carries an ``error`` object instead of a traceback, so a
failed run can be matched to the IDL definition or source position at fault.

This module is **not** auto-imported by ``thriftgen``; the CLI imports it
when ``--log-format json`` is given.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

from thriftgen.errors import IDLSyntaxError, ResolutionError, ThriftGenError, UpstreamCompilerError

__all__ = ["JsonFormatter"]

# Record attributes the generator and runtime attach through ``extra``, in output order.
_CONTEXT_FIELDS: tuple[str, ...] = ("stage", "path", "service", "method", "field", "error_type")


def _error_object(exc: ThriftGenError) -> dict[str, object]:
    """Describe a generator error by its class and the location it names."""
    error: dict[str, object] = {"type": type(exc).__name__}
    if isinstance(exc, ResolutionError):
        error["detail"] = exc.detail
        for name in ("service", "method", "field"):
            value = getattr(exc, name)
            if value is not None:
                error[name] = value
    elif isinstance(exc, IDLSyntaxError):
        error["detail"] = str(exc)
        error["path"] = exc.path
        if exc.line is not None:
            error["line"] = exc.line
        if exc.column is not None:
            error["column"] = exc.column
    else:
        error["detail"] = str(exc)
        if isinstance(exc, UpstreamCompilerError) and exc.stderr:
            error["stderr"] = exc.stderr
    return error


class JsonFormatter(logging.Formatter):
    """Formats generator log records as JSON objects, one per line.

    Context fields whose value is ``None`` are left out.  Exceptions other
    than generator errors are rendered as a traceback under ``exception``.
    Values that are not JSON-serializable are coerced with ``str``.
    """

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        """Render the record's creation time as UTC ISO 8601 with milliseconds."""
        created = datetime.fromtimestamp(record.created, tz=UTC)
        if datefmt:
            return created.strftime(datefmt)
        return created.isoformat(timespec="milliseconds")

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a single-line JSON string."""
        obj: dict[str, object] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _CONTEXT_FIELDS:
            value = record.__dict__.get(name)
            if value is not None:
                obj[name] = value

        exc = record.exc_info[1] if record.exc_info else None
        if isinstance(exc, ThriftGenError):
            obj["error"] = _error_object(exc)
        elif record.exc_info and exc is not None:
            obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(obj, default=str)
