"""Shared test fixtures and configuration for backend tests."""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from app.config import UploadSettings
from app.main import app
from app.upload_file.service import UploadFileService

FIXED_NOW = datetime(2024, 3, 7, 9, 30, 0)


@pytest.fixture
def fixed_now():
    """The instant the upload_service clock always reports."""
    return FIXED_NOW


@pytest.fixture
def upload_settings(tmp_path):
    """Upload settings rooted in a temp directory."""
    return UploadSettings(
        storage_root=str(tmp_path / "public"),
        base_path=str(tmp_path / "public" / "uploads"),
        static_prefix="/static",
        max_file_size_bytes=1024,
        category_extensions={"avatars": [".png", "JPG"]},
    )


@pytest.fixture
def upload_service(upload_settings, fixed_now):
    """Install an UploadFileService with a fixed clock as the singleton."""
    UploadFileService.reset_instance()
    service = UploadFileService(upload_settings, clock=lambda: fixed_now)
    UploadFileService._instance = service
    yield service
    UploadFileService.reset_instance()


@pytest.fixture
def api_client(upload_service):
    """Provide a TestClient for the main FastAPI app backed by a temp upload dir."""
    return TestClient(app)
