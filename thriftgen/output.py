# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Whitespace finalization and placement of the generated module."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

from thriftgen.errors import OutputError

__all__ = ["clean_generated_code", "output_path", "package_name", "write_output"]

_logger = logging.getLogger("thriftgen.output")

_BLANK_WITH_SPACES = re.compile(r"^[ \t]+$", re.MULTILINE)
_EXCESS_BLANK_LINES = re.compile(r"\n{4,}")


def clean_generated_code(source: str) -> str:
    """Normalize whitespace in rendered template output.

    Lines holding only spaces or tabs become empty, trailing whitespace is
    stripped from every line, runs of more than two blank lines collapse to
    two, and the result ends with exactly one newline.  Applying it twice
    gives the same text as applying it once.
    """
    source = _BLANK_WITH_SPACES.sub("", source)
    source = "\n".join(line.rstrip() for line in source.split("\n"))
    source = _EXCESS_BLANK_LINES.sub("\n\n\n", source)
    return source.strip("\n") + "\n"


def package_name(path: str | os.PathLike[str]) -> str:
    """Package an IDL file's generated code lives in: its lowercased stem."""
    return Path(path).stem.lower()


def output_path(output_dir: str | os.PathLike[str], input_file: str | os.PathLike[str]) -> Path:
    """Location of the generated module, ``<output_dir>/<pkg>/tchan_<pkg>.py``."""
    pkg = package_name(input_file)
    # ``tchan_`` with an underscore: a hyphenated ``tchan-<pkg>.py`` cannot be imported.
    return Path(output_dir) / pkg / f"tchan_{pkg}.py"


def write_output(path: Path, source: str) -> None:
    """Write ``source`` to ``path`` atomically.

    The text goes to a temporary file in the destination directory which is
    then renamed over ``path``, so a failed write never leaves a truncated
    module behind.

    Raises:
        OutputError: If the directory cannot be created or the file cannot
            be written.

    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as exc:
        raise OutputError(f"cannot write {path}: {exc}") from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(source)
        os.replace(tmp_name, path)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise OutputError(f"cannot write {path}: {exc}") from exc
    _logger.debug("Wrote %s (%d bytes)", path, len(source), extra={"path": str(path), "stage": "output"})
