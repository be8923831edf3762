import json
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from pico_drop.app.errors import MetadataDecodeError
from pico_drop.app.services.metadata_codec import FileMetadata, decode_metadata, encode_metadata


@pytest.mark.parametrize("original_name, mime_type", [
    ("report.v1.pdf", "application/pdf"),
    ("", "application/octet-stream"),
    ("отчёт 2024.txt", "text/plain; charset=utf-8"),
    ('quote"and\\backslash\r\n.txt', "text/x-weird"),
    ("0123456789abcdef0123456789abcdef", "application/octet-stream"),
])
def test_round_trip(original_name, mime_type):
    metadata = FileMetadata(original_name=original_name, mime_type=mime_type)
    assert decode_metadata(encode_metadata(metadata)) == metadata


def test_encoding_is_json_object():
    encoded = encode_metadata(FileMetadata(original_name="a.txt", mime_type="text/plain"))
    assert json.loads(encoded) == {"original_name": "a.txt", "mime_type": "text/plain"}


def test_unknown_keys_are_ignored():
    metadata = decode_metadata(b'{"original_name": "a.txt", "mime_type": "text/plain", "size": 3}')
    assert metadata == FileMetadata(original_name="a.txt", mime_type="text/plain")


@pytest.mark.parametrize("data", [
    b"",
    b"{",
    b"null",
    b'"a.txt"',
    b'["a.txt", "text/plain"]',
    b'{"original_name": "a.txt"}',
    b'{"mime_type": "text/plain"}',
    b'{"original_name": 42, "mime_type": "text/plain"}',
    b'{"original_name": "a.txt", "mime_type": null}',
    b"\xff\xfe\x00garbage",
])
def test_decode_rejects_malformed_metadata(data):
    with pytest.raises(MetadataDecodeError):
        decode_metadata(data)
