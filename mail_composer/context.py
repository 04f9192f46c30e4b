# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared counters used to make boundaries, Content-IDs and sequence numbers unique."""

from __future__ import annotations

import threading
import time
import uuid

BOUNDARY_PREFIX = "----MAILCOMPOSER-?=_"


class CompositionContext:
    """Own the monotonically increasing counter consumed by message composition.

    Boundary tokens combine the counter with the current time in
    milliseconds, so two messages composed within the same millisecond still
    get different boundaries. ``=_`` cannot appear in quoted-printable output
    and ``?`` is outside every base64 alphabet, so a boundary never collides
    with encoded content.

    The counter is protected by a lock: messages may be composed from
    several threads sharing one context.
    """

    def __init__(self, hostname: str = "localhost"):
        self.hostname = hostname
        self._counter = 0
        self._sequence = 0
        self._lock = threading.Lock()

    def _next(self) -> int:
        with self._lock:
            self._counter += 1
            return self._counter

    def next_sequence(self) -> int:
        """Return a fresh diagnostic sequence number for a message or a send."""
        with self._lock:
            self._sequence += 1
            return self._sequence

    def new_boundary(self) -> str:
        """Return a boundary token never returned before by this context."""
        return f"{BOUNDARY_PREFIX}{self._next()}-{_now_ms()}"

    def new_content_id(self, hostname: str | None = None) -> str:
        """Return a globally unique Content-ID value (without angle brackets)."""
        return f"{self._next()}.{_now_ms()}.{uuid.uuid4().hex}@{hostname or self.hostname}"


def _now_ms() -> int:
    return int(time.time() * 1000)


_DEFAULT_CONTEXT = CompositionContext()


def default_context() -> CompositionContext:
    """Return the context shared by messages created without an explicit one."""
    return _DEFAULT_CONTEXT
