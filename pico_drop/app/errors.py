"""Error types raised by the services and translated to HTTP responses in main.

The message passed to a FileDropError is server-side detail for the log. Clients
only ever see the class-level ``public_message``.
"""


class ConfigError(RuntimeError):
    """Raised at startup when required configuration is missing."""


class MetadataDecodeError(ValueError):
    """Raised when a metadata sidecar cannot be decoded."""


class FileDropError(Exception):
    status_code = 500
    public_message = "Internal Server Error"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.public_message)
        self.detail = detail or self.public_message


class ClientInputError(FileDropError):
    status_code = 400
    public_message = "Bad Request"


class PayloadTooLarge(ClientInputError):
    public_message = "Payload too large"


class MissingFileField(ClientInputError):
    public_message = "Missing file field"


class InvalidFileId(ClientInputError):
    # Malformed ids look exactly like unknown ones
    status_code = 404
    public_message = "Not Found"


class NotFound(FileDropError):
    status_code = 404
    public_message = "Not Found"


class StorageCorruption(FileDropError):
    """Blob exists but its metadata sidecar is missing or undecodable."""


class IOFailure(FileDropError):
    """Disk read/write or filesystem query failed."""
