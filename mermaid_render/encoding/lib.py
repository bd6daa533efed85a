"""Request encoders for the rendering services.

Each service expects the diagram text in a different shape:
- mermaid.ink: plain base64 in the URL path
- Kroki: DEFLATE-compressed, URL-safe base64 in the URL path
- QuickChart: a JSON request body
"""

import base64
import json
import zlib
from typing import Any

from mermaid_render.errors import EncodingError

# Render size requested from services that accept a JSON body
DEFAULT_JSON_FIELDS: dict[str, Any] = {
    "format": "png",
    "width": 1920,
    "height": 1440,
    "devicePixelRatio": 2,
}


def encode_base64(render_key: str) -> str:
    """Standard base64 of the UTF-8 bytes, for a URL path segment.

    No compression. The standard alphabet (``+``, ``/``, ``=``) is kept.

    Raises:
        EncodingError: If the text cannot be UTF-8 encoded.
    """
    try:
        raw = render_key.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError("base64", e) from e
    return base64.b64encode(raw).decode("ascii")


def encode_deflate_base64url(render_key: str) -> str:
    """Compress then base64url-encode, without padding.

    Uses zlib compression + base64 with ``+`` -> ``-``, ``/`` -> ``_`` and
    trailing ``=`` stripped.

    Raises:
        EncodingError: If encoding or compression fails.
    """
    try:
        compressed = zlib.compress(render_key.encode("utf-8"), level=9)
    except (UnicodeEncodeError, zlib.error) as e:
        raise EncodingError("deflate-base64url", e) from e
    encoded = base64.urlsafe_b64encode(compressed).decode("ascii")
    return encoded.rstrip("=")


def encode_json_body(render_key: str, **fields: Any) -> bytes:
    """Build a UTF-8 JSON body carrying the diagram under ``chart``.

    Quotes, backslashes and control characters (CR, LF, TAB, ...) are escaped
    so the body is always valid JSON and decodes back to the exact text.

    Args:
        render_key: Diagram text.
        **fields: Overrides for the extra body fields (format, width, ...).

    Raises:
        EncodingError: If the body cannot be serialized.
    """
    payload = {"chart": render_key, **DEFAULT_JSON_FIELDS, **fields}
    try:
        return json.dumps(payload, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError, UnicodeEncodeError) as e:
        raise EncodingError("json", e) from e


def decode_deflate_base64url(encoded: str) -> str:
    """Inverse of :func:`encode_deflate_base64url`."""
    padded = encoded + "=" * (-len(encoded) % 4)
    return zlib.decompress(base64.urlsafe_b64decode(padded)).decode("utf-8")


__all__ = [
    "DEFAULT_JSON_FIELDS",
    "EncodingError",
    "decode_deflate_base64url",
    "encode_base64",
    "encode_deflate_base64url",
    "encode_json_body",
]
