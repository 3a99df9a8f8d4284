# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Pipeline driver: input checks, optional upstream compile, generate, write.

One run handles one IDL file::

    config = GeneratorConfig(input_file=Path("echo.thrift"))
    path = process_file(config)   # gen-py/echo/tchan_echo.py

Every stage raises a :class:`~thriftgen.errors.ThriftGenError` subclass on
failure and nothing is retried.  A run that fails before the write stage
leaves no generated module behind.
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from thriftgen.emitter import emit
from thriftgen.errors import InputError, UpstreamCompilerError
from thriftgen.output import clean_generated_code, output_path, write_output
from thriftgen.parser import parse_file
from thriftgen.resolver import resolve

__all__ = [
    "DEFAULT_OUTPUT_DIR",
    "DEFAULT_THRIFT_BINARY",
    "GeneratorConfig",
    "generate_source",
    "process_file",
    "run_thrift",
]

_logger = logging.getLogger("thriftgen.driver")

DEFAULT_OUTPUT_DIR = "gen-py"
DEFAULT_THRIFT_BINARY = "thrift"


@dataclass(frozen=True)
class GeneratorConfig:
    """Options for one generator run.

    Attributes:
        input_file: The root IDL file.
        output_dir: Directory the upstream compiler writes into; the binding
            module goes to ``<output_dir>/<pkg>/tchan_<pkg>.py``.
        generate_thrift: Run the upstream compiler before generating.
        thrift_binary: Name or path of the upstream compiler executable.

    """

    input_file: Path
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    generate_thrift: bool = False
    thrift_binary: str = DEFAULT_THRIFT_BINARY


def run_thrift(config: GeneratorConfig) -> None:
    """Run the upstream compiler's Python generator on the input file.

    Equivalent to ``thrift -r --gen py -out <output_dir> <input_file>``.

    Raises:
        UpstreamCompilerError: If the binary cannot be started or exits with
            a non-zero status; the compiler's stderr is kept on the error.

    """
    cmd = [config.thrift_binary, "-r", "--gen", "py", "-out", str(config.output_dir), str(config.input_file)]
    _logger.info("Running %s", " ".join(cmd), extra={"path": str(config.input_file), "stage": "thrift"})
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise UpstreamCompilerError(f"cannot run thrift compiler {config.thrift_binary!r}: {exc}") from exc
    if proc.returncode != 0:
        raise UpstreamCompilerError(
            f"thrift compiler exited with status {proc.returncode}",
            stderr=proc.stderr or proc.stdout or "",
        )


def generate_source(input_file: str | Path) -> str:
    """Parse, resolve, emit and finalize one IDL file without touching the disk output.

    Raises:
        InputError: If the file or one of its includes cannot be read.
        IDLSyntaxError: If any file is malformed.
        ResolutionError: If the IDL is semantically invalid.
        EmissionError: On an internal defect.

    """
    parsed = parse_file(input_file)
    bindings = resolve(parsed)
    return clean_generated_code(emit(bindings))


def _check_input(config: GeneratorConfig) -> None:
    if not config.input_file.is_file():
        raise InputError(f"input file {str(config.input_file)!r} does not exist or is not a file")
    try:
        config.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise InputError(f"cannot create output directory {str(config.output_dir)!r}: {exc}") from exc


def process_file(config: GeneratorConfig) -> Path:
    """Run the whole pipeline for ``config``.

    Args:
        config: Options for this run.

    Returns:
        Path of the written binding module.

    Raises:
        ThriftGenError: A subclass identifying the failing stage.

    """
    start = time.monotonic()
    _check_input(config)
    if config.generate_thrift:
        run_thrift(config)
    source = generate_source(config.input_file)
    path = output_path(config.output_dir, config.input_file)
    write_output(path, source)
    _logger.info(
        "Generated %s in %.1fms",
        path,
        (time.monotonic() - start) * 1000,
        extra={"path": str(path), "stage": "done"},
    )
    return path
