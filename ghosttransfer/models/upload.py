"""Pydantic models for selected files and their upload lifecycle."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel


class UploadStatus(str, Enum):
    READY = "ready"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"


class SelectedFile(BaseModel):
    """A file picked by the user, before it becomes an upload entry.

    Either ``path`` (CLI) or ``content`` (browser upload) holds the bytes.
    """

    id: str
    name: str
    size_bytes: int
    path: Path | None = None
    content: bytes | None = None
    content_type: str | None = None

    def read(self) -> bytes:
        if self.content is not None:
            return self.content
        if self.path is None:
            raise ValueError(f"No data for file {self.name!r}")
        return self.path.read_bytes()


class UploadEntry(BaseModel):
    id: str
    name: str
    size_bytes: int
    status: UploadStatus = UploadStatus.READY
    remote_url: str | None = None
    error_message: str | None = None
    progress: float | None = None
    show_success: bool = False
