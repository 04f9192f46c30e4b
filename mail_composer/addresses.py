# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Normalisation of address lists for display headers and the SMTP envelope."""

from __future__ import annotations

from typing import Iterable, List, MutableMapping, Optional

from .encoding import encode_mime_word, has_utf_chars, parse_addresses, upper_first
from .errors import AddressParseFailure
from .logger import get_logger

CollectedAddresses = MutableMapping[str, List[str]]


class AddressFormatter:
    """Turn raw comma-separated address lists into header values.

    Plain addresses are optionally accumulated into named lists (for
    instance ``from`` and ``to``), which transports use as
    the envelope sender and recipients.
    """

    def __init__(self, charset: str = "UTF-8"):
        self.charset = charset
        self.logger = get_logger("MailComposer.addresses")

    def _encode(self, value: str) -> str:
        if has_utf_chars(value):
            return encode_mime_word(value, self.charset)
        return value

    def _display_name(self, name: str) -> str:
        name = upper_first(name.strip(), keep_upper=True)
        if has_utf_chars(name):
            return encode_mime_word(name, self.charset)
        escaped = name.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'

    def format(
        self,
        addresses: str | Iterable[str] | None,
        limit: int = 0,
        collect_into: Optional[str] = None,
        collected: Optional[CollectedAddresses] = None,
    ) -> str:
        """Return the normalised header value for ``addresses``.

        Args:
            addresses: Comma-separated address list (or an iterable of them).
            limit: Keep only the first ``limit`` addresses when positive.
            collect_into: Name of the list in ``collected`` that receives
                the plain addresses. Created on first use, extended afterwards.
            collected: Mapping holding the collected lists.

        Returns:
            The addresses joined with ``", "``; empty string when none remain.
        """
        try:
            parsed = parse_addresses(addresses)
        except AddressParseFailure as exc:
            self.logger.debug("Treating unparsable address list as empty: %s", exc)
            parsed = []

        output: List[str] = []
        plain: List[str] = []
        for name, address in parsed:
            address = (address or "").strip()
            if not address:
                continue
            plain.append(address)
            encoded_address = self._encode(address)
            if name and name.strip():
                output.append(f"{self._display_name(name)} <{encoded_address}>")
            else:
                output.append(encoded_address)

        if limit and len(output) > limit:
            output = output[:limit]
            plain = plain[:limit]

        if collect_into and collected is not None:
            collected.setdefault(collect_into, []).extend(plain)

        return ", ".join(output)
