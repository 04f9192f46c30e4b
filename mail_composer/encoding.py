# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Text codec primitives used while composing messages.

Thin wrappers over the standard library ``email``, ``quopri`` and ``base64``
modules, shaped for the composer: every encoder emits CRLF line endings and
the 76 column limit of RFC 2045.

- ``encode_quoted_printable``: body text to quoted-printable
- ``encode_base64``: binary payload to wrapped base64
- ``encode_mime_word``: RFC 2047 ``Q`` encoded words for headers
- ``fold_line``: RFC 2822 header folding at whitespace
- ``parse_addresses``: address list to ``(name, address)`` pairs
"""

from __future__ import annotations

import base64
import quopri
import re
from email.charset import QP, Charset
from email.header import Header
from email.utils import getaddresses
from typing import Iterable, List, Optional, Tuple

from .errors import AddressParseFailure

CRLF = "\r\n"
LINE_LENGTH = 76
FALLBACK_CHARSET = "UTF-8"

_NON_ASCII = re.compile(r"[^\x00-\x7f]")
_WORD_START = re.compile(r"^\s*[a-z]|[-\s][a-z]")
_NEWLINES = re.compile(r"\r\n|\r")
_FOLDED = re.compile(r"\r?\n[ \t]+")


def has_utf_chars(text: str | None) -> bool:
    """Return ``True`` when ``text`` holds characters outside 7-bit ASCII."""
    return bool(text) and _NON_ASCII.search(text) is not None


def upper_first(text: str, keep_upper: bool = False) -> str:
    """Capitalise the first letter of every word.

    ``"x-mailer-name"`` becomes ``"X-Mailer-Name"``. Unless ``keep_upper``
    is set, the rest of the string is lower-cased first.
    """
    if not keep_upper:
        text = text.lower()
    return _WORD_START.sub(lambda match: match.group(0).upper(), text)


def encode_quoted_printable(text: str, charset: str = "UTF-8") -> str:
    """Encode ``text`` as quoted-printable with CRLF line breaks.

    Characters ``charset`` cannot represent become ``?``. An unknown
    charset falls back to UTF-8.
    """
    if not text:
        return ""
    normalized = _NEWLINES.sub("\n", text)
    try:
        data = normalized.encode(charset, errors="replace")
    except LookupError:
        data = normalized.encode(FALLBACK_CHARSET)
    return quopri.encodestring(data).decode("ascii").replace("\n", CRLF)


def encode_base64(data: bytes, line_length: int = LINE_LENGTH) -> str:
    """Return ``data`` base64 encoded and hard-wrapped every ``line_length`` characters."""
    encoded = base64.b64encode(data).decode("ascii")
    return CRLF.join(encoded[i:i + line_length] for i in range(0, len(encoded), line_length))


def _q_header(text: str, charset: str, header_name: Optional[str]) -> str:
    header_charset = Charset(charset)
    header_charset.header_encoding = QP
    header = Header(text, charset=header_charset, maxlinelen=LINE_LENGTH, header_name=header_name)
    return header.encode(linesep=CRLF)


def encode_mime_word(text: str, charset: str = "UTF-8", header_name: Optional[str] = None) -> str:
    """Encode ``text`` as one or more RFC 2047 ``Q`` encoded words.

    Long values are split into several encoded words separated by a single
    space so that :func:`fold_line` can wrap them later.

    Args:
        text: Value to encode.
        charset: Preferred charset. Text it cannot represent is encoded as
            UTF-8 instead; every encoded word names its own charset.
        header_name: Name of the header the value goes into. The first word
            is shortened so that ``"<name>: <word>"`` fits the line length.
    """
    try:
        encoded = _q_header(text, charset, header_name)
    except (UnicodeError, LookupError):
        encoded = _q_header(text, FALLBACK_CHARSET, header_name)
    return _FOLDED.sub(" ", encoded)


def fold_line(line: str, max_length: int = LINE_LENGTH) -> str:
    """Fold a header line at whitespace so no piece exceeds ``max_length``.

    Folding never happens inside the header name. Continuation lines start
    with the whitespace the line was folded at. A run of text without any
    whitespace is left intact, even when longer than ``max_length``.
    """
    if len(line) <= max_length:
        return line

    separator = line.find(": ")
    start = separator + 2 if separator >= 0 else 1
    lines: List[str] = []
    while len(line) > max_length:
        cut = line.rfind(" ", start, max_length + 1)
        if cut < start or not line[:cut].strip():
            cut = line.find(" ", max(start, max_length + 1))
            if cut == -1:
                break
        lines.append(line[:cut])
        line = line[cut:]
        start = 1
    lines.append(line)
    return CRLF.join(lines)


def parse_addresses(value: str | Iterable[str] | None) -> List[Tuple[str, str]]:
    """Split an RFC 2822 address list into ``(name, address)`` pairs.

    Raises:
        AddressParseFailure: when the underlying parser rejects the input.
    """
    if not value:
        return []
    if isinstance(value, str):
        fields = [value]
    else:
        fields = [str(item) for item in value if item]
    try:
        return getaddresses(fields)
    except (TypeError, ValueError, IndexError) as exc:
        raise AddressParseFailure(f"Cannot parse address list {value!r}: {exc}") from exc
