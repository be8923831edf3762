import argparse
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from pico_drop import config
from pico_drop.app.errors import ClientInputError, ConfigError, FileDropError, NotFound
from pico_drop.app.routes.file_routes import router
from pico_drop.app.services.storage_manager import StorageManager
from pico_drop.config import Settings
from pico_drop.logger_config import setup_logger

# Logger setup
logger = setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await app.state.storage_manager.initialize()
    yield


async def handle_file_drop_error(request: Request, exc: FileDropError):
    if isinstance(exc, (ClientInputError, NotFound)):
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    else:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}", exc_info=exc)
    return PlainTextResponse(exc.public_message, status_code=exc.status_code)


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}", exc_info=exc)
    return PlainTextResponse("Internal Server Error", status_code=500)


def create_app(settings: Settings) -> FastAPI:
    """Build the application around one immutable Settings value."""
    app = FastAPI(title="pico-drop", lifespan=lifespan)

    app.state.settings = settings
    app.state.storage_manager = StorageManager(settings.uploads_dir)

    app.add_exception_handler(FileDropError, handle_file_drop_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(router)
    app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")

    return app


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Minimal HTTP file drop server')
    parser.add_argument('port', type=int, nargs='?', default=config.DEFAULT_PORT,
                        help=f'Port to listen on (default {config.DEFAULT_PORT})')
    parser.add_argument('--host', type=str, default=config.DEFAULT_HOST,
                        help=f'Address to bind (default {config.DEFAULT_HOST})')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info("Starting pico-drop server...")
    logger.info(f"Uploads directory: {settings.uploads_dir}")
    logger.info(f"Maximum upload size: {settings.max_upload_bytes} bytes")
    uvicorn.run(create_app(settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
