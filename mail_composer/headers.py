# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Generation of the RFC 2822 header block."""

from __future__ import annotations

import re
from email.utils import formatdate
from typing import TYPE_CHECKING, List, Optional, Tuple

from . import __version__
from .addresses import AddressFormatter
from .encoding import CRLF, encode_mime_word, fold_line, has_utf_chars, upper_first

if TYPE_CHECKING:
    from .message import Message
    from .transports.base import Transport

X_MAILER_NAME = "mail-composer"
X_MAILER = f"{X_MAILER_NAME} ({__version__})"

_LINE_BREAK = re.compile(r"\r\n|[\r\n]")


class HeaderGenerator:
    """Build the header block of a message in a fixed order.

    X-Mailer, custom headers, Date, From, To, Cc, Bcc, Reply-To, Subject,
    MIME-Version, Content-Type and, for single part messages,
    Content-Transfer-Encoding. Plain addresses met along the way are
    collected into ``message.collected`` for the envelope.
    """

    def __init__(self, message: "Message"):
        self.message = message
        self.addresses = AddressFormatter(message.charset)

    def _header_name(self, key: str) -> str:
        name = key.strip()
        if name in self.message.preserve_header_case:
            return name
        return upper_first(name)

    def _header_value(self, name: str, value: str) -> str:
        value = _LINE_BREAK.sub(" ", str(value))
        if has_utf_chars(value):
            return encode_mime_word(value, self.message.charset, header_name=name)
        return value

    def _subject(self) -> str:
        subject = self.message.subject
        if not subject:
            return ""
        if has_utf_chars(subject):
            return encode_mime_word(subject, self.message.charset, header_name="Subject")
        return subject

    def generate(self, transport: Optional["Transport"] = None) -> str:
        """Return the CRLF-joined, folded header block.

        Args:
            transport: The transport that will deliver the message. The Bcc
                header is only emitted when it reads recipients from the
                headers (``supports_envelope_bcc``).
        """
        message = self.message
        layout = message.layout
        collected = message.collected
        headers: List[Tuple[str, str]] = [("X-Mailer", X_MAILER)]

        for key, value in message.headers.items():
            name = self._header_name(key)
            headers.append((name, self._header_value(name, value)))

        headers.append(("Date", formatdate(usegmt=True)))

        sender = self.addresses.format(message.sender, 1, "from", collected)
        if sender:
            headers.append(("From", sender))

        to = self.addresses.format(message.to, 0, "to", collected)
        if to:
            headers.append(("To", to))

        cc = self.addresses.format(message.cc, 0, "cc", collected)
        if cc:
            headers.append(("Cc", cc))

        # always formatted so the envelope keeps Bcc recipients
        bcc = self.addresses.format(message.bcc, 0, "bcc", collected)
        if bcc and transport is not None and transport.supports_envelope_bcc:
            headers.append(("Bcc", bcc))

        reply_to = self.addresses.format(message.reply_to, 1)
        if reply_to:
            headers.append(("Reply-To", reply_to))

        headers.append(("Subject", self._subject()))
        headers.append(("MIME-Version", "1.0"))
        headers.append(("Content-Type", layout.content_type))
        if not layout.is_multipart:
            headers.append(("Content-Transfer-Encoding", layout.content_transfer_encoding))

        return CRLF.join(fold_line(f"{name}: {value}") for name, value in headers)
