"""Tests for request encoders."""

import base64
import json
import zlib

import pytest

from .lib import (
    DEFAULT_JSON_FIELDS,
    EncodingError,
    decode_deflate_base64url,
    encode_base64,
    encode_deflate_base64url,
    encode_json_body,
)

DIAGRAM = "graph TD\n  A[Start] --> B{Is it?}\n  B -->|Yes| C[OK]"
LONE_SURROGATE = "graph TD\n  A-->\ud800"


class TestEncodeBase64:
    """Tests for the plain base64 encoder."""

    @pytest.mark.unit
    def test_standard_alphabet(self):
        """Matches standard base64 of the UTF-8 bytes."""
        assert encode_base64(DIAGRAM) == base64.b64encode(
            DIAGRAM.encode("utf-8")
        ).decode("ascii")

    @pytest.mark.unit
    def test_keeps_padding(self):
        """Padding characters are kept."""
        assert encode_base64("ab") == "YWI="

    @pytest.mark.unit
    def test_non_ascii(self):
        """Non-ASCII text is encoded as UTF-8."""
        decoded = base64.b64decode(encode_base64("graph TD\n  A[Größe]"))
        assert decoded.decode("utf-8") == "graph TD\n  A[Größe]"

    @pytest.mark.unit
    def test_unencodable_text(self):
        """Lone surrogates raise EncodingError."""
        with pytest.raises(EncodingError) as exc_info:
            encode_base64(LONE_SURROGATE)
        assert exc_info.value.encoder == "base64"
        assert isinstance(exc_info.value.cause, UnicodeEncodeError)


class TestEncodeDeflateBase64Url:
    """Tests for the compressed URL-safe encoder."""

    @pytest.mark.unit
    def test_url_safe_without_padding(self):
        """Output uses only URL-safe characters and has no padding."""
        encoded = encode_deflate_base64url(DIAGRAM * 20)
        assert all(c.isalnum() or c in "-_" for c in encoded)
        assert not encoded.endswith("=")

    @pytest.mark.unit
    def test_decodes_to_text(self):
        """Compressed payload inflates back to the text."""
        encoded = encode_deflate_base64url(DIAGRAM)
        padded = encoded + "=" * (-len(encoded) % 4)
        assert zlib.decompress(base64.urlsafe_b64decode(padded)) == DIAGRAM.encode()
        assert decode_deflate_base64url(encoded) == DIAGRAM

    @pytest.mark.unit
    def test_unencodable_text(self):
        """Encoding failures are wrapped."""
        with pytest.raises(EncodingError, match="deflate-base64url"):
            encode_deflate_base64url(LONE_SURROGATE)


class TestEncodeJsonBody:
    """Tests for the JSON body encoder."""

    @pytest.mark.unit
    def test_round_trip_special_characters(self):
        """Quotes, backslashes and newlines survive a JSON round trip."""
        text = 'graph TD\n  A["say \\"hi\\""] --> B\\C\r\n\tD'
        body = encode_json_body(text)
        assert json.loads(body)["chart"] == text

    @pytest.mark.unit
    def test_control_characters_escaped(self):
        """Raw control characters never appear in the body."""
        body = encode_json_body('a"b\\c\nd\re\tf\x01')
        for raw in (b"\n", b"\r", b"\t", b"\x01"):
            assert raw not in body
        assert b'\\"' in body
        assert b"\\\\" in body
        assert b"\\n" in body

    @pytest.mark.unit
    def test_default_fields(self):
        """Body carries format and size fields."""
        payload = json.loads(encode_json_body("graph TD"))
        for key, value in DEFAULT_JSON_FIELDS.items():
            assert payload[key] == value

    @pytest.mark.unit
    def test_field_override(self):
        """Extra fields override defaults."""
        payload = json.loads(encode_json_body("graph TD", width=800))
        assert payload["width"] == 800
        assert payload["height"] == 1440

    @pytest.mark.unit
    def test_unencodable_text(self):
        """Bodies that cannot be UTF-8 encoded raise EncodingError."""
        with pytest.raises(EncodingError, match="json"):
            encode_json_body(LONE_SURROGATE)
