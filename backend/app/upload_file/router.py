"""FastAPI router for file upload endpoints."""
import logging
from typing import List, Optional, Union

from fastapi import APIRouter, File, HTTPException, UploadFile

from .schemas import FileDescriptor, ManyFiles, SingleFile, StoredFile, UploadRequest
from .service import UploadError, UploadFileService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])


def _service() -> UploadFileService:
    return UploadFileService.get_instance()


async def _descriptor(file: UploadFile) -> FileDescriptor:
    content = await file.read()
    return FileDescriptor(original_name=file.filename or "", buffer=content)


def _store(request: UploadRequest) -> Union[StoredFile, List[StoredFile]]:
    try:
        return _service().upload_file(request)
    except UploadError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except OSError as e:
        logger.error(f"File upload failed: {e}")
        raise HTTPException(status_code=500, detail=f"Upload failed: {str(e)}")


@router.post("/{category}", response_model=StoredFile)
async def upload_single(category: str, file: Optional[UploadFile] = File(None)):
    """Upload one file into a category.

    The category's allow-list comes from ``uploads.category_extensions``
    (falling back to ``uploads.default_extensions``).

    Args:
        category: Subdirectory the file is grouped under
        file: The file to upload

    Returns:
        StoredFile with the public URL and original filename

    Raises:
        HTTPException 400: If no file was sent
        HTTPException 406: If the extension is not allowed
        HTTPException 413: If the file exceeds the size limit
    """
    payload = SingleFile(file=await _descriptor(file)) if file is not None else None
    request = UploadRequest(
        files=payload,
        category=category,
        allowed_extensions=_service().allowed_extensions_for(category),
    )
    stored = _store(request)
    logger.info(f"Uploaded {stored.file_name} to category {category}: {stored.url}")
    return stored


@router.post("/{category}/many", response_model=Union[List[StoredFile], StoredFile])
async def upload_many(category: str, files: Optional[List[UploadFile]] = File(None)):
    """Upload a batch of files into a category.

    Files are stored in the order they were sent. The first rejected file
    fails the whole request; files stored before it are kept.

    Returns:
        List of StoredFile, or a single empty StoredFile when no files were sent
    """
    descriptors = [await _descriptor(f) for f in files or []]
    request = UploadRequest(
        files=ManyFiles(files=descriptors),
        category=category,
        allowed_extensions=_service().allowed_extensions_for(category),
    )
    stored = _store(request)
    logger.info("Uploaded %d file(s) to category %s", len(descriptors), category)
    return stored
