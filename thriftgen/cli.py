# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Command-line interface for the binding generator.

Usage::

    thrift-gen --input-file echo.thrift
    thrift-gen -inputFile echo.thrift -outputDir gen-py -generateThrift
    thrift-gen --input-file echo.thrift --log-level INFO --log-format json

"""

from __future__ import annotations

import logging
import sys
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import typer

from thriftgen import __version__
from thriftgen.driver import DEFAULT_OUTPUT_DIR, DEFAULT_THRIFT_BINARY, GeneratorConfig, process_file
from thriftgen.errors import ThriftGenError

__all__ = ["app"]

_logger = logging.getLogger("thriftgen.cli")

# ---------------------------------------------------------------------------
# Option enums
# ---------------------------------------------------------------------------


class LogLevel(StrEnum):
    """Log level for ``--log-level``."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogFormat(StrEnum):
    """Log record format for ``--log-format``."""

    text = "text"
    json = "json"


app = typer.Typer(
    name="thrift-gen",
    help="Generate typed Python RPC bindings from a Thrift IDL file.",
    add_completion=False,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_handler: logging.Handler | None = None


def _configure_logging(level: LogLevel | None, debug: bool, log_format: LogFormat) -> None:
    """Attach a stderr handler to the ``thriftgen`` logger at the requested level."""
    global _handler
    if debug:
        level = LogLevel.DEBUG
    if level is None:
        return

    logger = logging.getLogger("thriftgen")
    if _handler is not None:
        logger.removeHandler(_handler)

    handler = logging.StreamHandler(sys.stderr)
    if log_format is LogFormat.json:
        from thriftgen.logging_utils import JsonFormatter

        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(name)-20s %(levelname)-5s %(message)s"))

    logger.setLevel(logging.getLevelNamesMapping()[level.value])
    logger.addHandler(handler)
    _handler = handler


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"thrift-gen {__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


@app.command()
def main(
    input_file: Annotated[
        Path,
        typer.Option("--input-file", "-inputFile", help="The .thrift file to generate bindings for"),
    ],
    output_dir: Annotated[
        Path,
        typer.Option("--output-dir", "-outputDir", help="Directory the upstream compiler writes into"),
    ] = Path(DEFAULT_OUTPUT_DIR),
    generate_thrift: Annotated[
        bool,
        typer.Option("--generate-thrift", "-generateThrift", help="Run the thrift compiler before generating"),
    ] = False,
    thrift_binary: Annotated[
        str,
        typer.Option(
            "--thrift-binary",
            "-thriftBinary",
            envvar="THRIFTGEN_THRIFT_BINARY",
            help="Thrift compiler executable",
        ),
    ] = DEFAULT_THRIFT_BINARY,
    log_level: Annotated[
        LogLevel | None,
        typer.Option("--log-level", case_sensitive=False, help="Log to stderr at this level"),
    ] = None,
    debug: Annotated[bool, typer.Option("--debug", help="Shorthand for --log-level DEBUG")] = False,
    log_format: Annotated[LogFormat, typer.Option("--log-format", help="Log record format")] = LogFormat.text,
    version: Annotated[
        bool,
        typer.Option("--version", "-V", callback=_version_callback, is_eager=True, help="Show version and exit"),
    ] = False,
) -> None:
    """Generate tchan_<pkg>.py bindings for the services in INPUT_FILE."""
    _configure_logging(log_level, debug, log_format)
    config = GeneratorConfig(
        input_file=input_file,
        output_dir=output_dir,
        generate_thrift=generate_thrift,
        thrift_binary=thrift_binary,
    )
    try:
        path = process_file(config)
    except ThriftGenError as e:
        _logger.debug("Generation failed", exc_info=e, extra={"path": str(input_file), "stage": "failed"})
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    typer.echo(str(path))
