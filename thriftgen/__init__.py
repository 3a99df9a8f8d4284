# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Generate typed Python RPC bindings from Apache Thrift IDL files."""

import logging

from thriftgen.driver import GeneratorConfig, generate_source, process_file
from thriftgen.emitter import emit
from thriftgen.errors import (
    CyclicInheritanceError,
    DuplicateDefinitionError,
    EmissionError,
    IDLSyntaxError,
    InputError,
    InvalidExceptionTypeError,
    InvalidFieldError,
    MalformedMethodError,
    OutputError,
    ResolutionError,
    ThriftGenError,
    UnresolvedTypeError,
    UpstreamCompilerError,
)
from thriftgen.output import clean_generated_code, output_path, package_name, write_output
from thriftgen.parser import parse_file, parse_string
from thriftgen.resolver import resolve

__version__ = "0.1.0"

__all__ = [
    "CyclicInheritanceError",
    "DuplicateDefinitionError",
    "EmissionError",
    "GeneratorConfig",
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
    "__version__",
    "clean_generated_code",
    "emit",
    "generate_source",
    "output_path",
    "package_name",
    "parse_file",
    "parse_string",
    "process_file",
    "resolve",
    "write_output",
]

# Attach NullHandler so library users don't get "No handler found" warnings.
logging.getLogger("thriftgen").addHandler(logging.NullHandler())
