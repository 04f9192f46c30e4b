# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic models for message options and transport configuration.

These models validate what callers hand to the composer before any header
or body is generated.

Models:
    - Attachment: A file attached to (or embedded in) a message
    - SMTPConfig: Connection settings of the SMTP transport
    - SendmailConfig: Location and arguments of the sendmail binary
    - MessageOptions: Every option recognised by ``Message(...)``
    - Settings: Configuration loaded from the INI file and environment
"""

from __future__ import annotations

from typing import Annotated, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CHARSET = "UTF-8"
DEFAULT_ENCODING = "quoted-printable"
DEFAULT_SENDMAIL_ARGS = ["-i", "-t"]

AddressInput = Union[str, List[str], None]


class Attachment(BaseModel):
    """A single attachment.

    Attributes:
        filename: Name shown to the recipient; also drives the content type.
        contents: Raw payload. Text is encoded as UTF-8.
        cid: Content-ID used by the HTML body to reference the part inline.
    """

    model_config = ConfigDict(extra="forbid")

    filename: Annotated[
        str,
        Field(min_length=1, description="Attachment filename")
    ]
    contents: Annotated[
        Union[bytes, str],
        Field(default=b"", description="Attachment payload (bytes or text)")
    ]
    cid: Annotated[
        Optional[str],
        Field(default=None, description="Content-ID for inline references")
    ]

    @field_validator("cid")
    @classmethod
    def strip_angle_brackets(cls, v: Optional[str]) -> Optional[str]:
        """Accept ``<id>`` as well as ``id``; empty values mean no cid."""
        if v is None:
            return None
        v = v.strip().strip("<>").strip()
        return v or None

    def payload(self) -> bytes:
        """Return the contents as bytes."""
        if isinstance(self.contents, bytes):
            return self.contents
        return self.contents.encode("utf-8")


class SMTPConfig(BaseModel):
    """Connection settings for :class:`~mail_composer.transports.smtp.SMTPTransport`.

    Attributes:
        host: SMTP server hostname. The transport is unconfigured without it.
        port: SMTP server port.
        user: Username for AUTH, if required.
        password: Password for AUTH, if required.
        use_tls: Connect with implicit TLS (usually port 465).
        start_tls: Upgrade the plain connection with STARTTLS.
        hostname: Local name sent in EHLO and used for generated Content-IDs.
        timeout: Socket timeout in seconds.
    """

    model_config = ConfigDict(extra="forbid")

    host: Annotated[
        Optional[str],
        Field(default=None, description="SMTP server hostname")
    ]
    port: Annotated[
        int,
        Field(default=25, ge=1, le=65535, description="SMTP server port")
    ]
    user: Annotated[
        Optional[str],
        Field(default=None, description="SMTP username")
    ]
    password: Annotated[
        Optional[str],
        Field(default=None, description="SMTP password")
    ]
    use_tls: Annotated[
        bool,
        Field(default=False, description="Use implicit TLS")
    ]
    start_tls: Annotated[
        bool,
        Field(default=False, description="Use STARTTLS after connecting")
    ]
    hostname: Annotated[
        Optional[str],
        Field(default=None, description="Local hostname for EHLO and Content-IDs")
    ]
    timeout: Annotated[
        float,
        Field(default=10.0, gt=0, description="Socket timeout in seconds")
    ]

    def is_configured(self) -> bool:
        return bool(self.host and self.host.strip())


class SendmailConfig(BaseModel):
    """Settings for :class:`~mail_composer.transports.sendmail.SendmailTransport`."""

    model_config = ConfigDict(extra="forbid")

    path: Annotated[
        Optional[str],
        Field(default=None, description="Path of the sendmail binary")
    ]
    args: Annotated[
        List[str],
        Field(default_factory=lambda: list(DEFAULT_SENDMAIL_ARGS), description="Command line arguments")
    ]

    def is_configured(self) -> bool:
        return bool(self.path and self.path.strip())


class MessageOptions(BaseModel):
    """Options accepted when constructing a :class:`~mail_composer.message.Message`.

    Address fields accept a comma-separated string or a list of addresses.
    ``body_content_type`` defaults to ``text/plain; charset=<charset>`` and
    ``body_encoding`` to ``encoding``.
    """

    model_config = ConfigDict(extra="forbid")

    server: Annotated[
        Optional[SMTPConfig],
        Field(default=None, description="Per-message SMTP server")
    ]
    sender: Annotated[
        Optional[str],
        Field(default=None, description="From address")
    ]
    headers: Annotated[
        Dict[str, str],
        Field(default_factory=dict, description="Custom headers")
    ]
    to: Annotated[AddressInput, Field(default=None, description="To addresses")]
    cc: Annotated[AddressInput, Field(default=None, description="Cc addresses")]
    bcc: Annotated[AddressInput, Field(default=None, description="Bcc addresses")]
    reply_to: Annotated[AddressInput, Field(default=None, description="Reply-To address")]
    subject: Annotated[
        str,
        Field(default="", description="Message subject")
    ]
    body: Annotated[
        str,
        Field(default="", description="Plain text body")
    ]
    html: Annotated[
        Optional[str],
        Field(default=None, description="HTML body")
    ]
    attachments: Annotated[
        List[Attachment],
        Field(default_factory=list, description="Attachments in display order")
    ]
    body_content_type: Annotated[
        Optional[str],
        Field(default=None, description="Content type of the plain body")
    ]
    body_encoding: Annotated[
        Optional[str],
        Field(default=None, description="Transfer encoding of the plain body")
    ]
    charset: Annotated[
        str,
        Field(default=DEFAULT_CHARSET, min_length=1, description="Character set of text parts")
    ]
    encoding: Annotated[
        str,
        Field(default=DEFAULT_ENCODING, min_length=1, description="Transfer encoding of text parts")
    ]
    debug: Annotated[
        bool,
        Field(default=False, description="Log diagnostic information")
    ]

    @field_validator("headers", mode="before")
    @classmethod
    def stringify_header_values(cls, v):
        """Drop ``None`` header values and turn the others into strings."""
        if v is None:
            return {}
        return {str(key): str(value) for key, value in dict(v).items() if value is not None}

    @field_validator("subject", "body", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return "" if v is None else v


class Settings(BaseModel):
    """Configuration resolved by :func:`mail_composer.config_loader.load_settings`."""

    model_config = ConfigDict(extra="forbid")

    smtp: Annotated[
        Optional[SMTPConfig],
        Field(default=None, description="Global SMTP transport settings")
    ]
    sendmail: Annotated[
        Optional[SendmailConfig],
        Field(default=None, description="Global sendmail transport settings")
    ]
    charset: Annotated[str, Field(default=DEFAULT_CHARSET)]
    encoding: Annotated[str, Field(default=DEFAULT_ENCODING)]
    debug: Annotated[bool, Field(default=False)]
    log_level: Annotated[str, Field(default="INFO")]
    log_delivery_activity: Annotated[bool, Field(default=False)]
