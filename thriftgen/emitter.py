# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Renders a :class:`~thriftgen.bindings.BindingSet` into Python source.

For every service the generated module contains three classes:

``TChan<Service>``
    A ``typing.Protocol`` with one method per effective method, each taking
    a :class:`~thriftgen.runtime.Context` followed by the IDL arguments.

``TChan<Service>Client``
    Builds the upstream ``<method>_args`` struct, sends it through a
    :class:`~thriftgen.runtime.ThriftClient`, and unpacks the
    ``<method>_result`` reply: ``success`` first, then each declared
    exception in declaration order, then :class:`MissingResultError`.

``TChan<Service>Server``
    Wraps an implementation and exposes a method-name → handler table for a
    :class:`~thriftgen.runtime.Registrar`.

The emitter makes no decisions of its own; it trusts the resolver and only
re-checks the invariants whose violation would produce broken code.
"""

from __future__ import annotations

import functools
import json
import logging

import jinja2

from thriftgen.bindings import BindingSet, BoundMethod, BoundService, TypeKind
from thriftgen.errors import EmissionError

__all__ = ["emit"]

_logger = logging.getLogger("thriftgen.emitter")

_TEMPLATE = '''\
# Code generated by thrift-gen from {{ bindings.source }}. DO NOT EDIT.
"""Typed bindings for the services declared in {{ bindings.source }}."""

from __future__ import annotations
{% if bindings.services %}

from typing import Protocol

from thriftgen.runtime import (
{% for name in runtime_names %}
    {{ name }},
{% endfor %}
)
{% endif %}
{% if bindings.imports %}

{% for module in bindings.imports %}
import {{ module }}
{% endfor %}
{% endif %}
{% if bindings.local_imports %}

from . import {{ bindings.local_imports | join(", ") }}
{% endif %}

__all__ = [
{% for service in bindings.services %}
    "TChan{{ service.name }}",
    "TChan{{ service.name }}Client",
    "TChan{{ service.name }}Server",
{% endfor %}
]
{% for service in bindings.services %}


class TChan{{ service.name }}(Protocol):
    """Methods an implementation of {{ service.name }} provides{{ extends(service) }}."""
{% for method in service.methods %}

    def {{ method.name }}(self, ctx: Context{{ params(method) }}) -> {{ returns(method) }}: ...
{% endfor %}


class TChan{{ service.name }}Client:
    """Client for the {{ service.name }} service."""

    service_name = "{{ service.name }}"

    def __init__(self, client: ThriftClient) -> None:
        self._client = client
{% for method in service.methods %}

    def {{ method.name }}(self, ctx: Context{{ params(method) }}) -> {{ returns(method) }}:
        _args = {{ method.args_struct }}()
{% for arg in method.arguments %}
        _args.{{ arg.name }} = {{ arg.name }}
{% endfor %}
{% if method.oneway %}
        self._client.call_oneway(ctx, self.service_name, "{{ method.name }}", _args)
{% else %}
        {{ "_result = " if method.has_return or method.exceptions else "" }}self._client.call(
            ctx, self.service_name, "{{ method.name }}", _args, {{ method.result_struct }}
        )
{% if method.has_return %}
        if _result.success is not None:
            return _result.success
{% endif %}
{% for exc in method.exceptions %}
        if _result.{{ exc.name }} is not None:
            raise _result.{{ exc.name }}
{% endfor %}
{% if method.has_return %}
        raise MissingResultError(self.service_name, "{{ method.name }}")
{% endif %}
{% endif %}
{% endfor %}


class TChan{{ service.name }}Server:
    """Dispatches {{ service.name }} calls to a TChan{{ service.name }} implementation."""

    service_name = "{{ service.name }}"

    def __init__(self, handler: TChan{{ service.name }}, codec: Codec | None = None) -> None:
        self._handler = handler
        self._codec: Codec = codec or BinaryCodec()

    def methods(self) -> list[str]:
        return {{ string_list(service.methods) }}

    def handlers(self) -> dict[str, Handler]:
        return {
{% for method in service.methods %}
            "{{ method.name }}": {{ "OnewayHandler" if method.oneway else "TwoWayHandler" }}(self._handle_{{ method.name }}),
{% endfor %}
        }

    def register(self, registrar: Registrar) -> None:
        registrar.register(self.service_name, self.handlers())
{% for method in service.methods %}

    def _handle_{{ method.name }}(self, ctx: Context, payload: bytes) -> {{ "None" if method.oneway else "bytes" }}:
        _args = self._codec.decode(payload, {{ method.args_struct }})
{% if method.oneway %}
        self._handler.{{ method.name }}(ctx{{ call_args(method) }})
{% else %}
        _result = {{ method.result_struct }}()
{% if method.exceptions %}
        try:
            {{ "_result.success = " if method.has_return else "" }}self._handler.{{ method.name }}(ctx{{ call_args(method) }})
{% for exc in method.exceptions %}
        except {{ exc.type.annotation }} as exc:
            _result.{{ exc.name }} = exc
{% endfor %}
{% else %}
        {{ "_result.success = " if method.has_return else "" }}self._handler.{{ method.name }}(ctx{{ call_args(method) }})
{% endif %}
        return self._codec.encode(_result)
{% endif %}
{% endfor %}
{% endfor %}
'''


# ---------------------------------------------------------------------------
# Rendering helpers (formatting only)
# ---------------------------------------------------------------------------


def _params(method: BoundMethod) -> str:
    return "".join(f", {arg.name}: {arg.type.annotation}" for arg in method.arguments)


def _call_args(method: BoundMethod) -> str:
    return "".join(f", _args.{arg.name}" for arg in method.arguments)


def _returns(method: BoundMethod) -> str:
    return method.return_type.annotation if method.return_type is not None else "None"


def _extends(service: BoundService) -> str:
    return f" (extends {service.parent})" if service.parent else ""


def _string_list(methods: tuple[BoundMethod, ...]) -> str:
    return "[" + ", ".join(json.dumps(method.name) for method in methods) + "]"


def _runtime_names(bindings: BindingSet) -> list[str]:
    """Names the generated module imports from ``thriftgen.runtime``."""
    names = {"BinaryCodec", "Codec", "Context", "Handler", "Registrar", "ThriftClient"}
    for service in bindings.services:
        for method in service.methods:
            if method.oneway:
                names.add("OnewayHandler")
            else:
                names.add("TwoWayHandler")
                if method.has_return:
                    names.add("MissingResultError")
    return sorted(names)


@functools.cache
def _template() -> jinja2.Template:
    env = jinja2.Environment(
        undefined=jinja2.StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        autoescape=False,
    )
    env.globals.update(
        params=_params,
        call_args=_call_args,
        returns=_returns,
        extends=_extends,
        string_list=_string_list,
    )
    return env.from_string(_TEMPLATE)


# ---------------------------------------------------------------------------
# Invariant re-checks
# ---------------------------------------------------------------------------


def _check_invariants(bindings: BindingSet) -> None:
    """Fail on BindingSets the resolver should never have produced."""
    for service in bindings.services:
        seen: set[str] = set()
        for method in service.methods:
            where = f"{service.name}.{method.name}"
            if method.name in seen:
                raise EmissionError(f"{where} appears twice in the effective method list")
            seen.add(method.name)
            if method.oneway and (method.return_type is not None or method.exceptions):
                raise EmissionError(f"{where} is oneway but has a result")
            for exc in method.exceptions:
                if exc.type.kind is not TypeKind.EXCEPTION:
                    raise EmissionError(f"{where} declares non-exception {exc.type.idl_name} in throws")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def emit(bindings: BindingSet) -> str:
    """Render the adapter module for ``bindings``.

    Args:
        bindings: Output of :func:`thriftgen.resolver.resolve`.

    Returns:
        Generated Python source, before whitespace finalization.

    Raises:
        EmissionError: If the BindingSet breaks a resolver invariant or the
            template fails to render.

    """
    _check_invariants(bindings)
    try:
        source = _template().render(bindings=bindings, runtime_names=_runtime_names(bindings))
    except jinja2.TemplateError as exc:
        raise EmissionError(f"failed to render bindings for {bindings.source}: {exc}") from exc
    _logger.debug(
        "Rendered %s: %d services, %d bytes",
        bindings.source,
        len(bindings.services),
        len(source),
        extra={"path": bindings.source, "stage": "emit"},
    )
    return source
