# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Transports that deliver composed messages.

- Transport: Base class every transport implements
- ComposedMessage: Rendered headers, body and envelope handed to a transport
- TransportRegistry: Ordered ``(name, predicate, transport)`` selection
- SMTPTransport: Delivery through an SMTP server (aiosmtplib)
- SendmailTransport: Local delivery through the sendmail binary
- SMTPPool: Connection reuse for the SMTP transport
"""

from .base import ComposedMessage, Transport
from .registry import RegistryEntry, TransportRegistry, default_registry
from .sendmail import SendmailTransport
from .smtp import SMTPTransport
from .smtp_pool import SMTPPool

__all__ = [
    "ComposedMessage",
    "Transport",
    "RegistryEntry",
    "TransportRegistry",
    "default_registry",
    "SendmailTransport",
    "SMTPTransport",
    "SMTPPool",
]
