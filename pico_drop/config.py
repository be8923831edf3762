"""Configuration settings for the pico-drop file server."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from pico_drop.app.errors import ConfigError

# Upload limits
MAX_UPLOAD_BYTES = 5_000_000  # whole request body, multipart framing included
UPLOAD_FIELD_NAME = "file"
DEFAULT_MIME_TYPE = "application/octet-stream"

# Storage layout
METADATA_SUFFIX = ".meta.json"

# Server
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

# Directory paths
STATIC_DIR = Path(__file__).resolve().parent / "static"
LOG_DIR = os.getenv("PICO_LOG_DIR", "logs")

# Environment variables
UPLOADS_ENV = "PICO_UPLOADS"
KEEP_DIGITS_ENV = "PICO_KEEP_DIGITS"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    uploads_dir: Path
    keep_digits: bool = False
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    static_dir: Path = STATIC_DIR

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """Build settings from environment variables.

        Raises ConfigError when the uploads directory is not configured.
        """
        environ = os.environ if environ is None else environ

        uploads_dir = environ.get(UPLOADS_ENV, "").strip()
        if not uploads_dir:
            raise ConfigError(f"Set {UPLOADS_ENV} env var to proceed")

        keep_digits = environ.get(KEEP_DIGITS_ENV, "").strip().lower() in _TRUTHY

        return cls(uploads_dir=Path(uploads_dir), keep_digits=keep_digits)
