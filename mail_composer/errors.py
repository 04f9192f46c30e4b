# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exceptions raised while composing and delivering messages."""

from __future__ import annotations


class MailComposerError(Exception):
    """Base class for every error surfaced by the mail composer."""

    code = "mail_composer_error"


class AddressParseFailure(MailComposerError):
    """An address list could not be parsed.

    Recovered locally by :class:`~mail_composer.addresses.AddressFormatter`,
    which treats the list as empty. Never reaches the send callback.
    """

    code = "address_parse_failure"


class TransportNotConfiguredError(MailComposerError):
    """Raised when no transport is assigned to the message or configured globally."""

    code = "transport_not_configured"

    def __init__(self, message: str = "Transfer method not defined"):
        super().__init__(message)


class TransportError(MailComposerError):
    """Opaque delivery failure reported by a transport."""

    code = "transport_failure"

    def __init__(self, message: str, *, transport: str | None = None, smtp_code: int | None = None):
        super().__init__(message)
        self.transport = transport
        self.smtp_code = smtp_code
