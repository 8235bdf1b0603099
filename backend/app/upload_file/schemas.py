"""Pydantic schemas for the upload service.

- FileDescriptor: one uploaded file (original name + raw bytes)
- SingleFile / ManyFiles: the two shapes an upload payload can take
- UploadRequest: payload plus category and extension allow-list
- StoredFile: public URL and original name of a stored file
"""
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class FileDescriptor(BaseModel):
    """An uploaded file as handed over by the multipart parser."""
    original_name: str = Field(..., description="Filename as sent by the client")
    buffer: bytes = Field(..., description="File content")


class SingleFile(BaseModel):
    kind: Literal["single"] = "single"
    file: FileDescriptor


class ManyFiles(BaseModel):
    kind: Literal["many"] = "many"
    files: List[FileDescriptor] = Field(default_factory=list)


class UploadRequest(BaseModel):
    """Everything the service needs to store one upload.

    ``files`` is None when the transport layer could not make sense of the
    payload; the service rejects such requests with a 400.
    """
    files: Optional[Union[SingleFile, ManyFiles]] = Field(
        None, description="Single file or ordered batch of files"
    )
    category: str = Field("", description="Subdirectory grouping the uploads")
    allowed_extensions: List[str] = Field(
        default_factory=list,
        description="Permitted extensions, e.g. ['.png', '.jpg']; empty allows everything",
    )


class StoredFile(BaseModel):
    """Response item for a stored file.

    Serialized as ``{"url": ..., "fileName": ...}``.
    """
    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(..., description="Public URL of the stored file")
    file_name: str = Field(..., alias="fileName", description="Original filename")
