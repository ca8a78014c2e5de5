"""Data models for date buckets, uploads, and reconciliation reports."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class IncomingFile(BaseModel):
    """A single file part submitted for upload.

    Attributes:
        name: Original filename as supplied by the client.
        content: Raw file bytes.
        mime_type: MIME type declared by the client.
    """

    name: str
    content: bytes
    mime_type: str = ""


class UploadedImage(BaseModel):
    """A file persisted into a date bucket.

    Attributes:
        name: Original display name.
        path: Client-facing relative path under the store prefix.
        stored_name: Unique name of the file inside its bucket folder.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    stored_name: str


class UploadResult(BaseModel):
    """Outcome of an upload batch."""

    date: str
    files: List[UploadedImage] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def file_paths(self) -> List[str]:
        return [item.path for item in self.files]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def file_count(self) -> int:
        return len(self.files)


class FolderStatus(BaseModel):
    """Reconciliation status for one date bucket folder."""

    name: str
    has_images: bool
    note: Optional[str] = None


class ReconcileResult(BaseModel):
    """Outcome of rebuilding the folder index from the directory store."""

    folders: List[FolderStatus] = Field(default_factory=list)
    index: List[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def folder_count(self) -> int:
        return len(self.index)


__all__ = [
    "IncomingFile",
    "UploadedImage",
    "UploadResult",
    "FolderStatus",
    "ReconcileResult",
]
