# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Ordered registry of global transports.

A message without its own transport uses the first registered transport
whose predicate holds. Entries are evaluated strictly in registration
order, so registering ``smtp`` before ``sendmail`` makes SMTP win whenever
both are configured.
"""

from __future__ import annotations

from typing import Callable, Iterator, List, NamedTuple, Optional

from .base import Transport

Predicate = Callable[[Transport], bool]


class RegistryEntry(NamedTuple):
    name: str
    predicate: Predicate
    transport: Transport


def _is_configured(transport: Transport) -> bool:
    return transport.is_configured()


class TransportRegistry:
    """Keep ``(name, predicate, transport)`` entries in registration order."""

    def __init__(self):
        self._entries: List[RegistryEntry] = []

    def register(self, name: str, transport: Transport, predicate: Optional[Predicate] = None) -> None:
        """Append ``transport`` under ``name``; re-registering a name replaces it in place."""
        entry = RegistryEntry(name, predicate or _is_configured, transport)
        for index, existing in enumerate(self._entries):
            if existing.name == name:
                self._entries[index] = entry
                return
        self._entries.append(entry)

    def unregister(self, name: str) -> None:
        self._entries = [entry for entry in self._entries if entry.name != name]

    def get(self, name: str) -> Optional[Transport]:
        for entry in self._entries:
            if entry.name == name:
                return entry.transport
        return None

    def names(self) -> List[str]:
        return [entry.name for entry in self._entries]

    def select(self) -> Optional[RegistryEntry]:
        """Return the first entry whose predicate accepts its transport, or ``None``."""
        for entry in self._entries:
            if entry.predicate(entry.transport):
                return entry
        return None

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


_DEFAULT_REGISTRY = TransportRegistry()


def default_registry() -> TransportRegistry:
    """Return the registry used by messages created without an explicit one."""
    return _DEFAULT_REGISTRY
