from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError

from pico_drop.app.errors import MetadataDecodeError


class FileMetadata(BaseModel):
    """Display attributes stored next to each blob."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    original_name: StrictStr
    mime_type: StrictStr


def encode_metadata(metadata: FileMetadata) -> bytes:
    return metadata.model_dump_json().encode("utf-8")


def decode_metadata(data: bytes) -> FileMetadata:
    """Parse a sidecar written by encode_metadata.

    Raises MetadataDecodeError if the JSON is malformed, is not an object, or
    lacks one of the fields.
    """
    try:
        return FileMetadata.model_validate_json(data)
    except ValidationError as e:
        raise MetadataDecodeError(f"Invalid file metadata ({e.error_count()} errors): {e}") from e
    except ValueError as e:
        # Bytes that are not valid UTF-8
        raise MetadataDecodeError(f"Invalid file metadata: {e}") from e
