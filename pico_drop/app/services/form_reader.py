from dataclasses import dataclass, field
from typing import AsyncIterator, List, Mapping, Optional, Tuple

import python_multipart
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import parse_options_header

from pico_drop.app.errors import ClientInputError, PayloadTooLarge
from pico_drop.logger_config import setup_logger

logger = setup_logger()


@dataclass
class FilePart:
    filename: Optional[str]
    content_type: Optional[str]
    data: bytearray = field(default_factory=bytearray)


def _decode_param(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return value.decode("latin-1")


def check_content_length(headers: Mapping[str, str], max_bytes: int):
    """Reject a declared body size over the cap before reading anything."""
    content_length = headers.get("content-length")
    if content_length is None:
        return

    try:
        content_length_value = int(content_length)
    except ValueError:
        raise ClientInputError(f"Invalid Content-Length header {content_length!r}")

    if content_length_value > max_bytes:
        raise PayloadTooLarge(f"Content-Length {content_length_value} exceeds {max_bytes} bytes")


async def limit_stream(stream: AsyncIterator[bytes], max_bytes: int) -> AsyncIterator[bytes]:
    """Pass chunks through, failing as soon as more than max_bytes arrived."""
    received = 0
    async for chunk in stream:
        received += len(chunk)
        if received > max_bytes:
            raise PayloadTooLarge(f"Request body exceeded {max_bytes} bytes")
        yield chunk


class FilePartReader:
    """Feeds a multipart/form-data body to python-multipart and keeps one part.

    Only the first part named ``field_name`` is buffered; the data of every
    other part is dropped as it is parsed.
    """

    def __init__(self, headers: Mapping[str, str], stream: AsyncIterator[bytes], field_name: str):
        self.headers = headers
        self.stream = stream
        self.field_name = field_name
        self.part: Optional[FilePart] = None
        self._capturing = False
        self._complete = False
        self._header_field = b""
        self._header_value = b""
        self._part_headers: List[Tuple[bytes, bytes]] = []

    def on_part_begin(self):
        self._capturing = False
        self._part_headers = []

    def on_header_field(self, data: bytes, start: int, end: int):
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int):
        self._header_value += data[start:end]

    def on_header_end(self):
        self._part_headers.append((self._header_field.lower(), self._header_value))
        self._header_field = b""
        self._header_value = b""

    def on_headers_finished(self):
        part_headers = dict(self._part_headers)
        _, options = parse_options_header(part_headers.get(b"content-disposition", b""))
        name = options.get(b"name")
        if self.part is not None or name is None or _decode_param(name) != self.field_name:
            return

        filename = options.get(b"filename")
        content_type = part_headers.get(b"content-type")
        self.part = FilePart(
            filename=_decode_param(filename) if filename is not None else None,
            content_type=content_type.decode("latin-1").strip() if content_type else None,
        )
        self._capturing = True

    def on_part_data(self, data: bytes, start: int, end: int):
        if self._capturing:
            self.part.data.extend(data[start:end])

    def on_part_end(self):
        if self._capturing:
            self._complete = True
        self._capturing = False

    async def read(self) -> Optional[FilePart]:
        """Consume the whole body and return the wanted part, if any."""
        content_type, params = parse_options_header(self.headers.get("content-type", ""))
        boundary = params.get(b"boundary")
        if content_type.lower() != b"multipart/form-data" or not boundary:
            raise ClientInputError(f"Expected multipart/form-data with a boundary, got {content_type!r}")

        callbacks = {
            "on_part_begin": self.on_part_begin,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
        }
        parser = python_multipart.MultipartParser(boundary, callbacks)

        try:
            async for chunk in self.stream:
                parser.write(chunk)
            parser.finalize()
        except MultipartParseError as e:
            raise ClientInputError(f"Malformed multipart body: {e}") from e

        if self.part is not None and not self._complete:
            raise ClientInputError(f"Multipart body ended inside part '{self.field_name}'")
        if self.part is not None:
            logger.debug(f"Read part '{self.field_name}': {len(self.part.data)} bytes")
        return self.part
