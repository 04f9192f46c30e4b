# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""The message object: holds the fields, renders them and drives a transport."""

from __future__ import annotations

import asyncio
import inspect
import platform
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from . import __version__
from .body import BodyGenerator, MessageLayout, plan_layout
from .context import CompositionContext, default_context
from .errors import TransportNotConfiguredError
from .events import DeliveryEvents
from .headers import X_MAILER_NAME, HeaderGenerator
from .logger import get_logger
from .models import Attachment, MessageOptions
from .prometheus import MailMetrics
from .transports.base import ComposedMessage, Transport
from .transports.registry import TransportRegistry, default_registry
from .transports.smtp import SMTPTransport

SendCallback = Callable[[Optional[BaseException], Optional[bool]], Any]

_WHITESPACE = re.compile(r"\s")


class Message:
    """An e-mail message that can be composed and sent.

    Every option of :class:`~mail_composer.models.MessageOptions` is
    accepted as a keyword argument and exposed as a mutable attribute until
    :meth:`send` is called.

    Example::

        message = Message(
            sender='"Sender" <sender@example.com>',
            to="first@example.com, second@example.com",
            subject="Hello",
            body="Hello world!",
        )
        message.events.subscribe("retain", lambda address: print("refused", address))
        message.send(lambda error, success: print(error, success))

    Args:
        transport: Transport used for this message only; wins over ``server``
            and the registry.
        registry: Global transports, searched in registration order.
            Defaults to :func:`~mail_composer.transports.registry.default_registry`.
        context: Counters for boundaries and sequence numbers.
        metrics: Prometheus counters updated on every send.
        preserve_header_case: Custom header names emitted exactly as given.
        **options: Fields validated by ``MessageOptions``.
    """

    def __init__(
        self,
        *,
        transport: Optional[Transport] = None,
        registry: Optional[TransportRegistry] = None,
        context: Optional[CompositionContext] = None,
        metrics: Optional[MailMetrics] = None,
        preserve_header_case: Iterable[str] = (),
        **options: Any,
    ):
        opts = MessageOptions(**options)
        self.server = opts.server
        self.sender = opts.sender
        self.headers: Dict[str, str] = opts.headers
        self.to = opts.to
        self.cc = opts.cc
        self.bcc = opts.bcc
        self.reply_to = opts.reply_to
        self.subject = opts.subject
        self.body = opts.body
        self.html = opts.html
        self.attachments: List[Attachment] = opts.attachments
        self.debug = opts.debug
        self.charset = opts.charset
        self.encoding = opts.encoding
        self.body_content_type = opts.body_content_type or f"text/plain; charset={self.charset}"
        self.body_encoding = opts.body_encoding or self.encoding

        self.transport = transport
        self.registry = registry if registry is not None else default_registry()
        self.context = context or default_context()
        self.metrics = metrics
        self.preserve_header_case = set(preserve_header_case)

        self.sequence = self.context.next_sequence()
        self.events = DeliveryEvents()
        self.layout: Optional[MessageLayout] = None
        self.collected: Dict[str, List[str]] = {}
        self.task: Optional[asyncio.Task] = None
        self._server_transport: Optional[SMTPTransport] = None
        self.logger = get_logger("MailComposer.message")

    @property
    def subject(self) -> str:
        return self._subject

    @subject.setter
    def subject(self, value: Optional[str]) -> None:
        # line breaks would end the header early
        self._subject = _WHITESPACE.sub(" ", value or "")

    @property
    def content_id_domain(self) -> str:
        """Domain part used for generated Content-IDs."""
        if self.server is not None and self.server.hostname:
            return self.server.hostname
        return self.context.hostname

    def prepare_variables(self) -> MessageLayout:
        """Normalise mutable fields and compute the layout for this send."""
        self.attachments = [
            item if isinstance(item, Attachment) else Attachment.model_validate(item)
            for item in (self.attachments or [])
        ]
        self.headers = dict(self.headers or {})
        self.body = self.body or ""
        self.collected = {}
        self.layout = plan_layout(self)
        return self.layout

    def generate_headers(self, transport: Optional[Transport] = None) -> str:
        return HeaderGenerator(self).generate(transport)

    def generate_body(self) -> str:
        return BodyGenerator(self).generate()

    def compose(self, transport: Optional[Transport] = None, sequence: Optional[int] = None) -> ComposedMessage:
        """Render the message for ``transport``.

        The Bcc header is only part of the output when ``transport``
        supports envelope Bcc; the Bcc addresses are always part of the
        returned envelope.
        """
        self.prepare_variables()
        headers = self.generate_headers(transport)
        body = self.generate_body()
        senders = self.collected.get("from", [])
        return ComposedMessage(
            headers=headers,
            body=body,
            charset=self.charset,
            envelope_from=senders[0] if senders else None,
            to=list(self.collected.get("to", [])),
            cc=list(self.collected.get("cc", [])),
            bcc=list(self.collected.get("bcc", [])),
            sequence=sequence if sequence is not None else self.sequence,
            events=self.events,
        )

    def select_transport(self) -> Optional[Tuple[str, Transport]]:
        """Return ``(name, transport)`` for this message, or ``None``.

        The per-message transport wins, then a per-message ``server``, then
        the first configured entry of the registry.
        """
        if self.transport is not None:
            return self.transport.name, self.transport
        if self.server is not None and self.server.is_configured():
            if self._server_transport is None or self._server_transport.config != self.server:
                self._server_transport = SMTPTransport(self.server)
            return self._server_transport.name, self._server_transport
        entry = self.registry.select()
        if entry is not None:
            return entry.name, entry.transport
        return None

    async def deliver(self) -> bool:
        """Compose the message and hand it to the selected transport.

        Returns:
            ``True`` when delivered, ``False`` when the server accepted
            responsibility without confirming delivery.

        Raises:
            TransportNotConfiguredError: when no transport is available.
            TransportError: propagated from the transport.
        """
        send_id = self.context.next_sequence()
        if self.debug:
            banner = f"{X_MAILER_NAME}, {__version__}, Python {platform.python_version()}: {send_id}"
            self.logger.info(banner)
            self.logger.info("=" * len(banner))

        selected = self.select_transport()
        if selected is None:
            raise TransportNotConfiguredError()
        name, transport = selected

        composed = self.compose(transport, sequence=send_id)
        if self.metrics is not None:
            self.metrics.inc_composed(name)
        if self.debug:
            self.logger.info("Used transfer method: %s", name)

        try:
            success = await transport.send(composed)
        except Exception:
            if self.metrics is not None:
                self.metrics.inc_error(name)
            raise

        if self.metrics is not None:
            if success:
                self.metrics.inc_sent(name)
            else:
                self.metrics.inc_deferred(name)
        return success

    async def _notify(self, callback: SendCallback, error: Optional[BaseException], success: Optional[bool]) -> None:
        try:
            result = callback(error, success)
            if inspect.isawaitable(result):
                await result
        except Exception:
            self.logger.exception("Send callback of message #%s failed", self.sequence)

    async def _deliver_and_notify(self, callback: Optional[SendCallback]) -> Optional[bool]:
        try:
            success = await self.deliver()
        except Exception as exc:
            if callback is None:
                raise
            if self.debug:
                self.logger.info("Message #%s failed: %s", self.sequence, exc)
            await self._notify(callback, exc, None)
            return None
        if callback is not None:
            await self._notify(callback, None, success)
        return success

    def send(self, callback: Optional[SendCallback] = None) -> asyncio.Task:
        """Start delivering the message and return immediately.

        Must be called from a running event loop. ``callback(error, success)``
        is invoked exactly once: ``(None, True)`` when delivered,
        ``(None, False)`` when deferred and ``(error, None)`` on failure.
        Without a callback, failures surface when the returned task is
        awaited.
        """
        self.task = asyncio.get_running_loop().create_task(self._deliver_and_notify(callback))
        return self.task


def send_mail(callback: Optional[SendCallback] = None, **params: Any) -> Message:
    """Shortcut that builds a :class:`Message` from ``params`` and sends it."""
    message = Message(**params)
    message.send(callback)
    return message
