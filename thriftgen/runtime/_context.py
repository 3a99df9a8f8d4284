# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Call context: deadline and application headers carried with every call."""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from thriftgen.runtime._errors import DeadlineExceededError

_NO_HEADERS: Mapping[str, str] = MappingProxyType({})


@dataclass(frozen=True)
class Context:
    """Per-call deadline and headers.

    Passed as the first argument of every generated client and server
    method.  Deadlines are absolute ``time.monotonic()`` values so they can
    be handed across layers without drifting.

    Attributes:
        deadline: Monotonic time after which the call should not be made, or
            ``None`` for no deadline.
        headers: Application headers forwarded to the transport.

    """

    deadline: float | None = None
    headers: Mapping[str, str] = field(default_factory=lambda: _NO_HEADERS)

    @classmethod
    def with_timeout(cls, seconds: float, headers: Mapping[str, str] | None = None) -> Context:
        """Create a context whose deadline is ``seconds`` from now."""
        return cls(deadline=time.monotonic() + seconds, headers=MappingProxyType(dict(headers or {})))

    @classmethod
    def background(cls) -> Context:
        """Create a context with no deadline and no headers."""
        return _BACKGROUND

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), or ``None``."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        """Whether the deadline has passed."""
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check_deadline(self) -> None:
        """Raise if the deadline has passed.

        Raises:
            DeadlineExceededError: If :attr:`expired` is true.

        """
        if self.expired:
            raise DeadlineExceededError("context deadline exceeded")

    def with_headers(self, **headers: Any) -> Context:
        """Return a copy with ``headers`` merged over the existing ones."""
        merged = {**self.headers, **{k: str(v) for k, v in headers.items()}}
        return Context(deadline=self.deadline, headers=MappingProxyType(merged))


_BACKGROUND = Context()
