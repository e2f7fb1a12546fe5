"""Ghost content request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class FileWriteRequest(BaseModel):
    """Request to store new content for a file."""

    folder: str = Field(min_length=1)
    file: str = Field(min_length=1)
    content: str


class FileContentResponse(BaseModel):
    """Stored content of one file."""

    folder: str
    file: str
    content: str


class FileListResponse(BaseModel):
    """Live files of a folder."""

    folder: str
    files: list[str]


class PendingRevisionResponse(BaseModel):
    """A revision not yet released."""

    file: str
    revision: str
    created_at: str
    created_by: str


class PendingFileResponse(BaseModel):
    """Current state of a file touched by pending revisions."""

    file: str
    content: str | None
    deleted: bool


class PendingFolderResponse(BaseModel):
    """Files and revision tokens to package for one folder."""

    files: list[PendingFileResponse]
    revisions: list[str]


class PendingResponse(BaseModel):
    """Pending revisions per folder."""

    folders: dict[str, list[PendingRevisionResponse]]


class PendingContentResponse(BaseModel):
    """Pending files and tokens per folder."""

    folders: dict[str, PendingFolderResponse]
