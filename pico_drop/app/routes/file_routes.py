from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, PlainTextResponse
from starlette.requests import ClientDisconnect

from pico_drop import config
from pico_drop.app.errors import ClientInputError, MissingFileField
from pico_drop.app.services.form_reader import FilePartReader, check_content_length, limit_stream
from pico_drop.app.services.free_space import format_binary_size
from pico_drop.app.services.metadata_codec import FileMetadata
from pico_drop.app.services.name_sanitizer import sanitize_name
from pico_drop.logger_config import setup_logger

logger = setup_logger()

router = APIRouter()


@router.post("/upload", response_class=PlainTextResponse)
async def upload_file(request: Request):
    """Store the form's ``file`` part and return its new id as plain text."""
    settings = request.app.state.settings
    storage_manager = request.app.state.storage_manager

    check_content_length(request.headers, settings.max_upload_bytes)

    reader = FilePartReader(
        request.headers,
        limit_stream(request.stream(), settings.max_upload_bytes),
        config.UPLOAD_FIELD_NAME,
    )
    try:
        part = await reader.read()
    except ClientDisconnect:
        raise ClientInputError("Client disconnected before the upload finished")

    if part is None:
        raise MissingFileField(f"No '{config.UPLOAD_FIELD_NAME}' field in upload form")

    file_id = storage_manager.new_file_id()
    metadata = FileMetadata(
        original_name=part.filename if part.filename is not None else file_id,
        mime_type=part.content_type or config.DEFAULT_MIME_TYPE,
    )

    await storage_manager.store_file(file_id, bytes(part.data), metadata)

    logger.info(f"Stored upload {file_id}: {len(part.data)} bytes, {metadata.mime_type}")
    return file_id


@router.get("/file/{file_id}")
async def download_file(file_id: str, request: Request):
    """Stream a stored blob back with its original name and content type."""
    settings = request.app.state.settings
    storage_manager = request.app.state.storage_manager

    blob_path, metadata = await storage_manager.load_metadata(file_id)
    filename = sanitize_name(metadata.original_name, keep_digits=settings.keep_digits)

    logger.info(f"Serving {file_id} as '{filename}'")
    # An explicit content-type header keeps Starlette from appending a charset
    return FileResponse(
        blob_path,
        headers={"content-type": metadata.mime_type},
        filename=filename,
        content_disposition_type="attachment",
    )


@router.get("/free_space", response_class=PlainTextResponse)
async def free_space(request: Request):
    storage_manager = request.app.state.storage_manager
    return format_binary_size(await storage_manager.free_space())


@router.get("/", include_in_schema=False)
async def index(request: Request):
    return FileResponse(request.app.state.settings.static_dir / "index.html")
