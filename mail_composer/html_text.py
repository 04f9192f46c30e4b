# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Best-effort HTML to plain text conversion.

Used to derive the ``text/plain`` alternative when a message only carries an
HTML body. This is not an HTML renderer: unmatched or malformed tags simply
fall through to tag stripping.
"""

from __future__ import annotations

import html as html_entities
import re

# Placeholders survive whitespace normalisation until the very end.
_NL = "\x00"
_SPACE = "\x01"

_PRE = re.compile(r"<pre\b[^>]*>(.*?)</pre\s*>", re.IGNORECASE | re.DOTALL)
_LINE_BREAKS = re.compile(r"\r?\n")
_BLOCK_END = re.compile(r"<(?:/p|br\s*/?|/tr|/table|/div|/ul|/ol)\s*>", re.IGNORECASE)
_HEADING = re.compile(r"<h([1-6])\b[^>]*>(.*?)</h\1\s*>", re.IGNORECASE)
_LIST_ITEM = re.compile(r"<li\b[^>]*>(.*?)(?=</?(?:li|ol|ul)\b)", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")
_RESTORE_NL = re.compile(r"\s*" + _NL + r"\s*")
_MULTI_SPACE = re.compile(r"[ \t\xa0]{2,}")
_SPACED_NL = re.compile(r"[ \t]*\n[ \t]*")
_BLANK_LINES = re.compile(r"\n\n+")
_WHITESPACE = re.compile(r"\s+")


def _inline_text(fragment: str) -> str:
    """Return the decoded, single-line text of ``fragment``."""
    fragment = _TAG.sub(" ", fragment).replace(_NL, " ")
    fragment = html_entities.unescape(fragment).replace("<", " ").replace(">", " ")
    return _WHITESPACE.sub(" ", fragment).strip()


def _render_pre(match: re.Match) -> str:
    inner = _TAG.sub("", match.group(1))
    lines = [line.rstrip() for line in _LINE_BREAKS.split(inner)]
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        return ""
    indented = [(_SPACE * 2 + line.replace("\t", "    ")).replace(" ", _SPACE) for line in lines]
    return _NL + _NL.join(indented) + _NL + _NL


def _render_heading(match: re.Match) -> str:
    text = _inline_text(match.group(2))
    if not text:
        return ""
    # measured decoded, re-escaped for the final unescape pass
    return html_entities.escape(text, quote=False) + _NL + "-" * len(text) + _NL + _NL


def _render_list_item(match: re.Match) -> str:
    text = _inline_text(match.group(1))
    if not text:
        return ""
    return _NL + "* " + html_entities.escape(text, quote=False)


def html_to_text(html: str | bytes | None) -> str:
    """Convert an HTML document into readable plain text.

    Paragraphs, line breaks, table rows and divs become line breaks,
    headings are underlined with dashes, list items become ``* item``
    lines and ``<pre>`` blocks are indented by two spaces. Everything else
    is stripped and whitespace is normalised.
    """
    if not html:
        return ""
    if isinstance(html, bytes):
        html = html.decode("utf-8", errors="replace")
    text = html.replace(_NL, "").replace(_SPACE, "")

    text = _PRE.sub(_render_pre, text)
    text = _LINE_BREAKS.sub(" ", text)
    text = _LIST_ITEM.sub(_render_list_item, text)
    text = _BLOCK_END.sub(_NL, text)
    text = _HEADING.sub(_render_heading, text)

    text = _RESTORE_NL.sub("\n", text)
    text = _TAG.sub(" ", text)
    text = html_entities.unescape(text)
    text = text.replace("<", " ").replace(">", " ")
    text = _MULTI_SPACE.sub(" ", text).replace("\xa0", " ")
    text = _SPACED_NL.sub("\n", text)
    text = _BLANK_LINES.sub("\n\n", text)
    return text.strip().replace(_SPACE, " ")
