# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Observer registry for address-level delivery notifications.

Transports publish advisory events while talking to the server:

- ``forward(old_address, new_address)``: the server asked to use another address
- ``defer(address)``: the server took responsibility for a non-local recipient
- ``retain(address)``: the server refused the recipient

These events are informational; completion is always reported through the
send callback.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

from .logger import get_logger

FORWARD = "forward"
DEFER = "defer"
RETAIN = "retain"
DELIVERY_EVENTS = (FORWARD, DEFER, RETAIN)

Handler = Callable[..., Any]


class DeliveryEvents:
    """Subscribe/publish hub attached to every message.

    Handlers run synchronously, in subscription order, inside the task that
    delivers the message.

    Example::

        message.events.subscribe("forward", lambda old, new: print(old, "->", new))
    """

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {name: [] for name in DELIVERY_EVENTS}
        self.logger = get_logger("MailComposer.events")

    def subscribe(self, event: str, handler: Handler) -> None:
        """Call ``handler`` every time ``event`` is published.

        Args:
            event: One of ``forward``, ``defer`` or ``retain``.
            handler: Callable receiving the event arguments.

        Raises:
            ValueError: If ``event`` is not a delivery event.
        """
        if event not in self._handlers:
            raise ValueError(f"Unknown delivery event: {event!r}")
        self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: Handler) -> None:
        """Remove ``handler`` from ``event``; unknown handlers are ignored."""
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: str, *args: Any) -> None:
        """Invoke the handlers of ``event`` with ``args``.

        A failing handler is logged and does not stop the others.

        Args:
            event: Event name.
            *args: ``(old_address, new_address)`` for ``forward``,
                ``(address,)`` for ``defer`` and ``retain``.
        """
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(*args)
            except Exception:
                self.logger.exception("Handler for %s event failed", event)
