# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""MIME structure selection and body serialisation.

Content type decision table:

=====  ===========  =====================  ==================================
HTML   Attachments  Any attachment cid     Outer content type
=====  ===========  =====================  ==================================
no     no           n/a                    ``body_content_type`` (single part)
any    no           n/a                    ``multipart/alternative``
any    yes          at least one           ``multipart/related``
any    yes          none                   ``multipart/mixed``
=====  ===========  =====================  ==================================

When attachments are present the text parts are wrapped in a nested
``multipart/alternative`` with its own boundary.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from .encoding import CRLF, encode_base64, encode_mime_word, encode_quoted_printable, fold_line, has_utf_chars
from .html_text import html_to_text
from .mime_types import resolve_mime_type
from .models import Attachment

if TYPE_CHECKING:
    from .message import Message

QUOTED_PRINTABLE = "quoted-printable"

_LEADING_DOT = re.compile(r"^\.", re.MULTILINE)


@dataclass(frozen=True)
class MessageLayout:
    """Structure derived from a message right before it is rendered."""

    is_multipart: bool
    has_attachments: bool
    has_mixed_part: bool
    has_related_part: bool
    content_type: str
    content_transfer_encoding: Optional[str] = None
    boundary: Optional[str] = None
    inner_boundary: Optional[str] = None

    @property
    def subtype(self) -> Optional[str]:
        if not self.is_multipart:
            return None
        return self.content_type.split(";", 1)[0].split("/", 1)[1]


def plan_layout(message: "Message") -> MessageLayout:
    """Apply the decision table to ``message`` and draw fresh boundaries."""
    attachments = message.attachments
    if not (message.html or attachments):
        return MessageLayout(
            is_multipart=False,
            has_attachments=False,
            has_mixed_part=False,
            has_related_part=False,
            content_type=message.body_content_type,
            content_transfer_encoding=message.body_encoding,
        )

    has_related_part = any(attachment.cid for attachment in attachments)
    has_mixed_part = any(not attachment.cid for attachment in attachments)
    boundary = message.context.new_boundary()
    if attachments:
        subtype = "related" if has_related_part else "mixed"
        inner_boundary = message.context.new_boundary()
    else:
        subtype = "alternative"
        inner_boundary = boundary

    return MessageLayout(
        is_multipart=True,
        has_attachments=bool(attachments),
        has_mixed_part=has_mixed_part,
        has_related_part=has_related_part,
        content_type=f'multipart/{subtype}; boundary="{boundary}"',
        boundary=boundary,
        inner_boundary=inner_boundary,
    )


class BodyGenerator:
    """Serialise the body block that follows the headers."""

    def __init__(self, message: "Message"):
        self.message = message

    def _encode_text(self, text: str, encoding: str) -> str:
        if encoding == QUOTED_PRINTABLE:
            # lines starting with a dot are doubled for transparency
            return _LEADING_DOT.sub("..", encode_quoted_printable(text.strip(), self.message.charset))
        return text.strip()

    def _text_part(self, boundary: str, content_type: str, encoding: str, text: str) -> List[str]:
        return [
            f"--{boundary}",
            f"Content-Type: {content_type}",
            f"Content-Transfer-Encoding: {encoding}",
            "",
            self._encode_text(text, encoding),
            "",
        ]

    def _attachment_part(self, boundary: str, attachment: Attachment) -> List[str]:
        message = self.message
        if has_utf_chars(attachment.filename):
            filename = encode_mime_word(attachment.filename, message.charset)
        else:
            filename = attachment.filename.replace('"', "")
        content_id = attachment.cid or message.context.new_content_id(message.content_id_domain)
        return [
            f"--{boundary}",
            fold_line(f'Content-Type: {resolve_mime_type(attachment.filename)}; name="{filename}"'),
            fold_line(f'Content-Disposition: attachment; filename="{filename}"'),
            f"Content-ID: <{content_id}>",
            "Content-Transfer-Encoding: base64",
            "",
            encode_base64(attachment.payload()),
        ]

    def plain_text(self) -> str:
        """Return the plain body, derived from the HTML body when empty."""
        message = self.message
        if not message.body.strip() and message.html:
            return html_to_text(message.html)
        return message.body

    def generate(self) -> str:
        message = self.message
        layout = message.layout

        if not layout.is_multipart:
            if message.body_encoding == QUOTED_PRINTABLE:
                return encode_quoted_printable(message.body, message.charset)
            return message.body

        rows: List[str] = []
        if layout.has_attachments:
            rows.append(f"--{layout.boundary}")
            rows.append(fold_line(f'Content-Type: multipart/alternative; boundary="{layout.inner_boundary}"'))
            rows.append("")

        rows.extend(
            self._text_part(layout.inner_boundary, message.body_content_type, message.body_encoding, self.plain_text())
        )
        if message.html:
            rows.extend(
                self._text_part(layout.inner_boundary, f"text/html; charset={message.charset}", message.encoding, message.html)
            )

        if layout.has_attachments:
            rows.append(f"--{layout.inner_boundary}--")
            for attachment in message.attachments:
                rows.extend(self._attachment_part(layout.boundary, attachment))

        rows.append(f"--{layout.boundary}--")
        return CRLF.join(rows)
