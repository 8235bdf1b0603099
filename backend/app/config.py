"""Upload service configuration.

Settings are read from a single YAML file:
  * upload.settings.yaml  — server, logging and upload storage settings

The path can be overridden with the UPLOAD_SETTINGS_PATH environment variable.
A missing file is not an error; every setting has a default.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path, PurePath
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("upload.settings.yaml")
SETTINGS_ENV_VAR = "UPLOAD_SETTINGS_PATH"


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def normalize_extension(ext: str) -> str:
    """Lowercase an extension and make sure it starts with a dot."""
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host:      str  = "0.0.0.0"
    port:      int  = 8000
    reload:    bool = False
    log_level: str  = "info"


class LoggingSettings(BaseModel):
    level: str = "info"


class UploadSettings(BaseModel):
    """Where uploads are written and how they are exposed.

    ``base_path`` must live under ``storage_root``: public URLs are built by
    swapping the ``storage_root`` prefix for ``static_prefix``.
    """
    storage_root:        str                  = "public"
    base_path:           str                  = "public/uploads"
    static_prefix:       str                  = "/static"
    max_file_size_bytes: int                  = 20 * 1024 * 1024
    default_extensions:  List[str]            = Field(default_factory=list)
    category_extensions: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("static_prefix")
    @classmethod
    def _prefix_starts_with_slash(cls, v: str) -> str:
        v = "/" + v.strip("/")
        return v

    @field_validator("max_file_size_bytes")
    @classmethod
    def _non_negative_size(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_file_size_bytes must be >= 0 (0 disables the limit)")
        return v

    @field_validator("default_extensions")
    @classmethod
    def _normalize_default(cls, v: List[str]) -> List[str]:
        return [normalize_extension(e) for e in v if e.strip()]

    @field_validator("category_extensions")
    @classmethod
    def _normalize_categories(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {
            category: [normalize_extension(e) for e in exts if e.strip()]
            for category, exts in v.items()
        }

    @model_validator(mode="after")
    def _base_path_under_storage_root(self) -> "UploadSettings":
        for name in ("storage_root", "base_path"):
            if ".." in PurePath(getattr(self, name)).parts:
                raise ValueError(f"uploads.{name} must not contain '..' segments")
        try:
            PurePath(self.base_path).relative_to(self.storage_root)
        except ValueError:
            raise ValueError(
                f"uploads.base_path ({self.base_path}) must be inside "
                f"uploads.storage_root ({self.storage_root})"
            )
        return self


class AppConfig(BaseModel):
    server:  ServerSettings  = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    uploads: UploadSettings  = Field(default_factory=UploadSettings)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------

_config: Optional[AppConfig] = None


def load_config(settings_path: Optional[Union[str, Path]] = None) -> AppConfig:
    """Load *AppConfig* from YAML.

    Resolution order for the settings file: explicit argument,
    UPLOAD_SETTINGS_PATH, then ./upload.settings.yaml.
    """
    if settings_path is None:
        settings_path = os.environ.get(SETTINGS_ENV_VAR) or SETTINGS_FILE
    settings_data = _load_yaml(Path(settings_path))

    config = AppConfig(**settings_data)
    logger.info(
        "Settings loaded (server=%s:%s, uploads.base_path=%s, static_prefix=%s)",
        config.server.host,
        config.server.port,
        config.uploads.base_path,
        config.uploads.static_prefix,
    )
    return config


def get_config() -> AppConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config (for testing)."""
    global _config
    _config = None
