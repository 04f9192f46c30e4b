# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base protocol for transports and the composed message they receive."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..events import DeliveryEvents


@dataclass
class ComposedMessage:
    """A fully rendered message plus the envelope collected while rendering it.

    Attributes:
        headers: CRLF-joined header block, without the trailing blank line.
        body: Body block that follows the blank line.
        charset: Charset used to turn the text into bytes.
        envelope_from: Plain sender address for ``MAIL FROM``.
        to: Plain To addresses.
        cc: Plain Cc addresses.
        bcc: Plain Bcc addresses, whether or not the header was emitted.
        sequence: Diagnostic number of the send, not part of the wire format.
        events: Hub used to publish ``forward``/``defer``/``retain``.
    """

    headers: str
    body: str
    charset: str = "UTF-8"
    envelope_from: Optional[str] = None
    to: List[str] = field(default_factory=list)
    cc: List[str] = field(default_factory=list)
    bcc: List[str] = field(default_factory=list)
    sequence: int = 0
    events: DeliveryEvents = field(default_factory=DeliveryEvents)

    @property
    def recipients(self) -> List[str]:
        """Envelope recipients: To, Cc and Bcc in that order."""
        return [*self.to, *self.cc, *self.bcc]

    def as_string(self) -> str:
        return f"{self.headers}\r\n\r\n{self.body}"

    def as_bytes(self) -> bytes:
        return self.as_string().encode(self.charset, errors="replace")


class Transport:
    """Interface implemented by concrete transports.

    ``send`` returns ``True`` when the message was delivered, ``False`` when
    the server accepted responsibility without confirming delivery, and
    raises :class:`~mail_composer.errors.TransportError` on hard failures.
    """

    name = "transport"
    supports_envelope_bcc = False

    def is_configured(self) -> bool:
        """Return ``True`` when the transport has what it needs to deliver."""
        return True

    async def send(self, message: ComposedMessage) -> bool:
        raise NotImplementedError
