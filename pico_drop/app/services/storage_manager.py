import asyncio
import re
import shutil
import uuid
from pathlib import Path
from typing import Tuple

import aiofiles
import aiofiles.os

from pico_drop import config
from pico_drop.app.errors import InvalidFileId, IOFailure, MetadataDecodeError, NotFound, StorageCorruption
from pico_drop.app.services.metadata_codec import FileMetadata, decode_metadata, encode_metadata
from pico_drop.logger_config import setup_logger

logger = setup_logger()

FILE_ID_PATTERN = re.compile(r"[0-9a-f]{32}")


class StorageManager:
    """Keeps each upload as two sibling files under one root directory.

    ``<root>/<id>`` holds the raw bytes and ``<root>/<id>.meta.json`` the
    encoded FileMetadata. Ids are generated here and never taken from clients.
    """

    def __init__(self, uploads_dir: Path):
        self.uploads_dir = Path(uploads_dir)

    async def initialize(self):
        """Create the uploads directory if it doesn't exist."""
        await aiofiles.os.makedirs(self.uploads_dir, exist_ok=True)
        logger.info(f"Storage directory ready: {self.uploads_dir}")

    @staticmethod
    def new_file_id() -> str:
        return uuid.uuid4().hex

    @staticmethod
    def is_valid_id(file_id: str) -> bool:
        return bool(file_id) and FILE_ID_PATTERN.fullmatch(file_id) is not None

    def get_blob_path(self, file_id: str) -> Path:
        """Get the path where a blob is stored based on its ID."""
        if not self.is_valid_id(file_id):
            raise InvalidFileId(f"Rejected malformed file id {file_id!r}")

        blob_path = self.uploads_dir / file_id
        # Every key must be a direct child of the uploads directory
        if blob_path.parent != self.uploads_dir or blob_path.name != file_id:
            raise InvalidFileId(f"File id {file_id!r} is not a direct child of {self.uploads_dir}")
        return blob_path

    def get_metadata_path(self, file_id: str) -> Path:
        blob_path = self.get_blob_path(file_id)
        return blob_path.with_name(blob_path.name + config.METADATA_SUFFIX)

    def get_paths(self, file_id: str) -> Tuple[Path, Path]:
        return self.get_blob_path(file_id), self.get_metadata_path(file_id)

    async def store_file(self, file_id: str, content: bytes, metadata: FileMetadata):
        """Write the blob, then its metadata sidecar.

        A failure after the blob is written leaves it without metadata; it is
        not removed. Downloads report such a blob as corrupt.
        """
        blob_path, metadata_path = self.get_paths(file_id)

        try:
            async with aiofiles.open(blob_path, 'xb') as f:
                await f.write(content)
        except OSError as e:
            raise IOFailure(f"Error writing blob {blob_path}: {e}") from e
        logger.debug(f"Wrote {len(content)} bytes to {blob_path}")

        try:
            async with aiofiles.open(metadata_path, 'xb') as f:
                await f.write(encode_metadata(metadata))
        except OSError as e:
            raise IOFailure(f"Error writing metadata {metadata_path} (blob left in place): {e}") from e
        logger.debug(f"Wrote metadata to {metadata_path}")

    async def load_metadata(self, file_id: str) -> Tuple[Path, FileMetadata]:
        """Return the blob path and decoded metadata for an existing upload."""
        blob_path, metadata_path = self.get_paths(file_id)

        if not await aiofiles.os.path.isfile(blob_path):
            raise NotFound(f"Blob {file_id} not found")

        try:
            async with aiofiles.open(metadata_path, 'rb') as f:
                content = await f.read()
        except FileNotFoundError as e:
            raise StorageCorruption(f"Blob {file_id} has no metadata at {metadata_path}") from e
        except OSError as e:
            raise IOFailure(f"Error reading metadata {metadata_path}: {e}") from e

        try:
            metadata = decode_metadata(content)
        except MetadataDecodeError as e:
            raise StorageCorruption(f"Corrupted metadata for blob {file_id}: {e}") from e

        return blob_path, metadata

    async def free_space(self) -> int:
        """Bytes available on the filesystem holding the uploads directory."""
        try:
            usage = await asyncio.to_thread(shutil.disk_usage, str(self.uploads_dir))
        except OSError as e:
            raise IOFailure(f"Error querying free space of {self.uploads_dir}: {e}") from e
        return usage.free
