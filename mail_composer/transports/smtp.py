# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SMTP transport built on aiosmtplib."""

from __future__ import annotations

import asyncio
import re
from typing import List, Optional

import aiosmtplib

from ..errors import TransportError
from ..events import DEFER, FORWARD, RETAIN
from ..logger import get_logger
from ..models import SMTPConfig
from .base import ComposedMessage, Transport
from .smtp_pool import SMTPPool

USER_NOT_LOCAL_WILL_FORWARD = 251
USER_NOT_LOCAL_TRY_FORWARD = 551

_FORWARD_PATH = re.compile(r"<([^<>\s]+@[^<>\s]+)>")


def _forward_address(text: str) -> Optional[str]:
    """Extract the forward-path suggested in a 551 reply, if any."""
    match = _FORWARD_PATH.search(text or "")
    return match.group(1) if match else None


class SMTPTransport(Transport):
    """Deliver composed messages through an SMTP server.

    The RCPT phase is driven one recipient at a time so that per-address
    replies can be published as ``forward``, ``defer`` or ``retain``
    events. ``send`` returns ``True`` only when every recipient was accepted
    with a 250 reply.
    """

    name = "smtp"
    supports_envelope_bcc = False

    def __init__(self, config: SMTPConfig, pool: Optional[SMTPPool] = None, log_delivery_activity: bool = False):
        self.config = config
        self.pool = pool or SMTPPool()
        self.log_delivery_activity = log_delivery_activity
        self.logger = get_logger("MailComposer.smtp")

    def is_configured(self) -> bool:
        return self.config.is_configured()

    async def _send_envelope(self, smtp: aiosmtplib.SMTP, message: ComposedMessage) -> bool:
        await smtp.mail(message.envelope_from)

        accepted: List[str] = []
        confirmed = True
        for recipient in message.recipients:
            try:
                response = await smtp.rcpt(recipient)
            except aiosmtplib.SMTPRecipientRefused as exc:
                confirmed = False
                forward_to = _forward_address(exc.message) if exc.code == USER_NOT_LOCAL_TRY_FORWARD else None
                if forward_to:
                    message.events.publish(FORWARD, recipient, forward_to)
                else:
                    self.logger.warning("Recipient %s refused: %s %s", recipient, exc.code, exc.message)
                    message.events.publish(RETAIN, recipient)
                continue
            if response.code == USER_NOT_LOCAL_WILL_FORWARD:
                confirmed = False
                message.events.publish(DEFER, recipient)
            accepted.append(recipient)

        if not accepted:
            await smtp.rset()
            raise TransportError("No recipients were accepted by the SMTP server", transport=self.name)

        await smtp.data(message.as_bytes())
        return confirmed

    async def send(self, message: ComposedMessage) -> bool:
        if not message.envelope_from:
            raise TransportError("Message has no sender address", transport=self.name)
        if not message.recipients:
            raise TransportError("Message has no recipients", transport=self.name)

        try:
            async with self.pool.connection(self.config) as smtp:
                confirmed = await self._send_envelope(smtp, message)
        except TransportError:
            raise
        except aiosmtplib.SMTPResponseException as exc:
            raise TransportError(
                f"SMTP error {exc.code}: {exc.message}", transport=self.name, smtp_code=exc.code
            ) from exc
        except (aiosmtplib.SMTPException, asyncio.TimeoutError, OSError) as exc:
            raise TransportError(f"SMTP delivery failed: {exc}", transport=self.name) from exc

        if self.log_delivery_activity:
            self.logger.info(
                "Message #%s handed to %s:%s (%d recipients, confirmed=%s)",
                message.sequence,
                self.config.host,
                self.config.port,
                len(message.recipients),
                confirmed,
            )
        return confirmed
