"""Sanitizer: makes free text and photo payloads safe to embed in a document.

Word desktop and Teams refuse to open a package whose XML contains control
characters or unpaired surrogates, so every value placed into a document node
goes through ``sanitize_text`` first. Photo payloads arrive as
``<mime>;base64,<data>`` strings and are decoded by ``decode_image_payload``;
a payload that cannot be decoded is reported as ``None`` so the caller can
drop that one image and carry on.
"""

import base64
import binascii
import logging
import re
from typing import Any, Optional

from docx.image.image import Image

logger = logging.getLogger(__name__)

# Everything outside the XML 1.0 Char production
_INVALID_XML_CHARS = re.compile(
    r"[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)

_BASE64_MARKER = ";base64,"


def sanitize_text(value: Any) -> str:
    """Coerce to str and strip code points that are not valid in XML. Never raises."""
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    return _INVALID_XML_CHARS.sub("", text)


def decode_image_payload(payload: Any) -> Optional[bytes]:
    """Decode a ``<mime>;base64,<data>`` photo payload into raw image bytes.

    Returns None when the payload has no base64 marker, the body is not valid
    base64, or the decoded bytes are not a raster format the document writer
    can place (PNG, JPEG, GIF, BMP, TIFF).
    """
    if not isinstance(payload, str) or _BASE64_MARKER not in payload:
        return None

    mime = payload_mime_type(payload) or "no mime type"
    body = "".join(payload.split(_BASE64_MARKER, 1)[1].split())
    # capture clients may strip the trailing "=" padding
    body += "=" * (-len(body) % 4)
    try:
        blob = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError):
        logger.debug(f"Skipping {mime} photo: payload is not valid base64")
        return None

    if not blob:
        return None

    try:
        Image.from_blob(blob)
    except Exception as e:
        logger.debug(f"Skipping {mime} photo: unrecognized image data ({type(e).__name__})")
        return None

    return blob


def payload_mime_type(payload: Any) -> str:
    """Return the declared mime type of a payload, '' if there is none."""
    if not isinstance(payload, str) or _BASE64_MARKER not in payload:
        return ""
    head = payload.split(_BASE64_MARKER, 1)[0]
    return head[len("data:"):] if head.startswith("data:") else head
