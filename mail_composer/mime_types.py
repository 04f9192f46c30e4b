# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Filename to content type lookup for attachments."""

import mimetypes
from typing import Dict

DEFAULT_MIME_TYPE = "application/octet-stream"

_EXTRA_TYPES = {
    "eml": "message/rfc822",
    "ics": "text/calendar",
    "vcf": "text/vcard",
    "md": "text/markdown",
    "7z": "application/x-7z-compressed",
    "rar": "application/vnd.rar",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "odt": "application/vnd.oasis.opendocument.text",
    "ods": "application/vnd.oasis.opendocument.spreadsheet",
    "webp": "image/webp",
}

CONTENT_TYPES: Dict[str, str] = {
    ext.lstrip("."): mime for ext, mime in mimetypes.MimeTypes().types_map[True].items()
}
CONTENT_TYPES.update(_EXTRA_TYPES)


def resolve_mime_type(filename: str | None) -> str:
    """Return the content type for ``filename`` based on its extension.

    Unknown or missing extensions resolve to ``application/octet-stream``.
    """
    if not filename or "." not in filename:
        return DEFAULT_MIME_TYPE
    extension = filename.rsplit(".", 1)[1].strip().lower()
    return CONTENT_TYPES.get(extension, DEFAULT_MIME_TYPE)
