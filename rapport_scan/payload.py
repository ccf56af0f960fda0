"""Body and header extraction for mail payloads in the provider's JSON MIME shape.

A payload is a tree of parts::

    {"mimeType": "multipart/mixed", "headers": [...], "body": {...},
     "parts": [{"mimeType": "text/plain", "body": {"data": "<base64url>"}}, ...]}

Only ``text/plain`` and ``text/html`` content is kept.  Both functions
accept anything and never raise.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

TEXT_MIME_TYPES = frozenset({"text/plain", "text/html"})


def extract_body(payload: Any) -> str:
    """Concatenate the decoded text of *payload* and its text descendants.

    The node's own ``body.data`` is decoded first, then each child part
    that is ``text/plain``, ``text/html`` or a ``multipart/*`` container
    is descended in order.  Any other MIME type (images, attachments) is
    skipped.
    """
    if not isinstance(payload, dict):
        return ""

    text = _decode_body_data(payload.get("body"))

    parts = payload.get("parts")
    if isinstance(parts, list):
        for part in parts:
            if not isinstance(part, dict):
                continue
            mime_type = str(part.get("mimeType", "")).lower()
            if mime_type in TEXT_MIME_TYPES or mime_type.startswith("multipart/"):
                text += extract_body(part)

    return text


def extract_headers(payload: Any) -> dict[str, str]:
    """Return ``{lowercase header name: value}`` for the top-level part."""
    headers: dict[str, str] = {}
    if not isinstance(payload, dict):
        return headers
    raw_headers = payload.get("headers")
    if not isinstance(raw_headers, list):
        return headers

    for header in raw_headers:
        if not isinstance(header, dict):
            continue
        name = header.get("name")
        value = header.get("value")
        if name and value:
            headers[str(name).lower()] = str(value)
    return headers


def _decode_body_data(body: Any) -> str:
    """Decode base64url-encoded ``body.data``; empty string on any problem."""
    if not isinstance(body, dict):
        return ""
    data = body.get("data")
    if not data or not isinstance(data, str):
        return ""
    # The provider strips padding from base64url
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return ""
