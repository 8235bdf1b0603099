"""Upload service backend application.

Main entry point for the upload backend. Uploaded files are written under
``uploads.base_path`` and served back under ``uploads.static_prefix``.

Modules:
    - upload_file: file upload endpoints and storage service
    - config: YAML-backed settings
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.config import get_config
from app.upload_file.router import router as upload_router
from app.upload_file.service import UploadFileService, ensure_directory

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# multipart logs every parsed part at DEBUG.
for _noisy in ("multipart", "python_multipart", "httpx", "httpcore"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config = get_config()

    # Apply configured log level to root logger so that
    # `logging.level: "debug"` in upload.settings.yaml activates DEBUG output.
    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    service = UploadFileService.get_instance()
    ensure_directory(Path(service.settings.base_path))
    logger.info(
        f"Uploads stored in {service.settings.base_path}, "
        f"served at {service.settings.static_prefix}"
    )

    yield  # Application runs here

    # Shutdown
    logger.info("Application shutdown complete")


class UploadStaticFiles:
    """Serve files from the active upload service's storage root.

    One StaticFiles app is kept per storage root, built on first request.
    """

    def __init__(self):
        self._apps: Dict[str, StaticFiles] = {}

    async def __call__(self, scope, receive, send):
        root = UploadFileService.get_instance().settings.storage_root
        static_app = self._apps.get(root)
        if static_app is None:
            static_app = StaticFiles(directory=root, check_dir=False)
            self._apps[root] = static_app
        await static_app(scope, receive, send)


_config = get_config()

# Create FastAPI application with metadata
app = FastAPI(
    title="Upload API",
    description="File upload service with date-partitioned storage",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(upload_router)

app.mount(
    _config.uploads.static_prefix,
    UploadStaticFiles(),
    name="static",
)


@app.get("/health")
async def health() -> dict:
    """Health check endpoint.

    Returns:
        dict: Status object indicating the server is running.
    """
    return {"status": "ok"}


def run() -> None:
    """Run the server with uvicorn using the configured host and port."""
    import uvicorn

    server = _config.server
    uvicorn.run(
        "app.main:app",
        host=server.host,
        port=server.port,
        reload=server.reload,
        log_level=server.log_level,
    )
