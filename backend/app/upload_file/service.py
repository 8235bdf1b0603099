"""Upload storage service.

Writes uploaded files to disk under a date-partitioned tree and returns the
public URL for each one:

    {base_path}/{category}/{YYYY}/{MM}/{DD}/{uuid}{ext}
"""
import logging
import uuid
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Union

from app.config import UploadSettings, get_config, normalize_extension

from .schemas import FileDescriptor, ManyFiles, SingleFile, StoredFile, UploadRequest

logger = logging.getLogger(__name__)


class UploadError(ValueError):
    """Base class for upload failures the client is responsible for."""
    status_code: int = 400


class InvalidUploadError(UploadError):
    """The payload is neither a single file nor a list of files."""
    status_code = 400


class UnsupportedFileTypeError(UploadError):
    status_code = 406

    def __init__(self, extension: str, allowed: List[str]):
        self.extension = extension
        self.allowed = list(allowed)
        super().__init__(
            f"Upload file type must be one of [{','.join(self.allowed)}], "
            f"got: {extension or '(none)'}"
        )


class FileTooLargeError(UploadError):
    status_code = 413


def ensure_directory(path: Path) -> bool:
    """Create ``path`` and any missing ancestors, parent first.

    An existing directory counts as success. Other filesystem errors
    (permissions, a file in the way) propagate.
    """
    if path.is_dir():
        return True
    if path.parent != path:
        ensure_directory(path.parent)
    try:
        path.mkdir()
        logger.debug("Created directory: %s", path)
    except FileExistsError:
        # Lost a race with a concurrent upload, or a file is in the way.
        if not path.is_dir():
            raise
    return True


class UploadFileService:
    """Service for validating and storing uploaded files."""

    _instance: Optional["UploadFileService"] = None

    def __init__(
        self,
        settings: Optional[UploadSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._settings = settings or get_config().uploads
        self._clock = clock
        self._base_path = Path(self._settings.base_path)
        self._storage_root = Path(self._settings.storage_root)

    @classmethod
    def get_instance(cls, settings: Optional[UploadSettings] = None) -> "UploadFileService":
        """Get or create the singleton instance."""
        if cls._instance is None:
            cls._instance = cls(settings)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (for testing)."""
        cls._instance = None

    @property
    def settings(self) -> UploadSettings:
        return self._settings

    def allowed_extensions_for(self, category: str) -> List[str]:
        """Configured allow-list for a category, or the default list."""
        return list(
            self._settings.category_extensions.get(
                category, self._settings.default_extensions
            )
        )

    def upload_file(self, request: UploadRequest) -> Union[StoredFile, List[StoredFile]]:
        """Store the file(s) in ``request`` and return their public URLs.

        Returns a single StoredFile for a single upload and a list for a
        batch. An empty batch returns one StoredFile with empty fields.

        Raises:
            InvalidUploadError: Payload missing or category not a relative path
            UnsupportedFileTypeError: Extension not in a non-empty allow-list
            FileTooLargeError: File exceeds max_file_size_bytes
        """
        target_dir = self._target_dir(request.category)
        ensure_directory(target_dir)

        allowed = [normalize_extension(e) for e in request.allowed_extensions if e.strip()]

        if isinstance(request.files, SingleFile):
            return self._single_file(target_dir, request.files.file, allowed)
        elif isinstance(request.files, ManyFiles):
            return self._many_files(target_dir, request.files.files, allowed)
        else:
            logger.warning("Rejected upload without file payload (category=%r)", request.category)
            raise InvalidUploadError("Upload failed: no file payload")

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    def _target_dir(self, category: str) -> Path:
        if any(ord(ch) < 32 or ord(ch) == 127 for ch in category):
            raise InvalidUploadError(f"Invalid upload category: {category!r}")
        category_path = PurePosixPath(category.replace("\\", "/"))
        if category_path.is_absolute() or ".." in category_path.parts:
            raise InvalidUploadError(f"Invalid upload category: {category!r}")
        date_dir = self._clock().strftime("%Y/%m/%d")
        return self._base_path / category_path / date_dir

    def _many_files(
        self, target_dir: Path, files: List[FileDescriptor], allowed: List[str]
    ) -> Union[StoredFile, List[StoredFile]]:
        if not files:
            return StoredFile(url="", file_name="")
        # A rejected file aborts the batch; earlier files stay on disk.
        return [self._single_file(target_dir, f, allowed) for f in files]

    def _single_file(
        self, target_dir: Path, file: FileDescriptor, allowed: List[str]
    ) -> StoredFile:
        ext = Path(file.original_name).suffix.lower()
        if allowed and ext not in allowed:
            logger.warning(
                "Rejected %s: extension %r not in %s", file.original_name, ext, allowed
            )
            raise UnsupportedFileTypeError(ext, allowed)

        limit = self._settings.max_file_size_bytes
        size_bytes = len(file.buffer)
        if limit and size_bytes > limit:
            raise FileTooLargeError(
                f"File size ({size_bytes} bytes) exceeds limit ({limit} bytes)"
            )

        target = target_dir / f"{uuid.uuid4().hex}{ext}"
        target.write_bytes(file.buffer)
        logger.info(f"Saved file: {target} ({size_bytes} bytes)")

        return StoredFile(url=self._public_url(target), file_name=file.original_name)

    def _public_url(self, target: Path) -> str:
        rel = target.relative_to(self._storage_root).as_posix()
        return f"{self._settings.static_prefix.rstrip('/')}/{rel}"
