"""Per-service request encoders."""

from .lib import (
    DEFAULT_JSON_FIELDS,
    EncodingError,
    decode_deflate_base64url,
    encode_base64,
    encode_deflate_base64url,
    encode_json_body,
)

__all__ = [
    "DEFAULT_JSON_FIELDS",
    "EncodingError",
    "decode_deflate_base64url",
    "encode_base64",
    "encode_deflate_base64url",
    "encode_json_body",
]
