# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""RFC 2822 / MIME message composer with pluggable asynchronous transports.

This package turns structured input (sender, recipients, subject, plain and
HTML bodies, attachments) into a standards compliant message and hands it to
a transport:

- Single part, ``multipart/alternative``, ``multipart/related`` and
  ``multipart/mixed`` layouts chosen from the message content
- Header folding and RFC 2047 encoding of non-ASCII text
- Plain text fallback derived from the HTML body
- SMTP (aiosmtplib) and sendmail transports selected through an ordered registry
- ``forward``/``defer``/``retain`` delivery notifications

Example:
    Sending from a coroutine::

        from mail_composer import Message, SMTPConfig, SMTPTransport

        transport = SMTPTransport(SMTPConfig(host="smtp.example.com", port=587, start_tls=True))
        message = Message(
            transport=transport,
            sender="me@example.com",
            to="you@example.com",
            subject="Hello",
            html="<p>Hello world!</p>",
        )
        success = await message.deliver()
"""

__version__ = "0.1.0"

from .context import CompositionContext, default_context
from .errors import AddressParseFailure, MailComposerError, TransportError, TransportNotConfiguredError
from .message import Message, send_mail
from .models import Attachment, MessageOptions, SendmailConfig, Settings, SMTPConfig
from .transports import (
    ComposedMessage,
    SendmailTransport,
    SMTPTransport,
    Transport,
    TransportRegistry,
    default_registry,
)

__all__ = [
    "__version__",
    "CompositionContext",
    "default_context",
    "AddressParseFailure",
    "MailComposerError",
    "TransportError",
    "TransportNotConfiguredError",
    "Message",
    "send_mail",
    "Attachment",
    "MessageOptions",
    "SendmailConfig",
    "Settings",
    "SMTPConfig",
    "ComposedMessage",
    "SendmailTransport",
    "SMTPTransport",
    "Transport",
    "TransportRegistry",
    "default_registry",
]
