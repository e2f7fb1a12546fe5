"""Ghost content API endpoints: file access, pending revisions, export."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response

from ghostcontent.api.deps import get_ghost_store, require_token
from ghostcontent.filesystem.paths import validate_file_name
from ghostcontent.schemas.ghost import (
    FileContentResponse,
    FileListResponse,
    FileWriteRequest,
    PendingContentResponse,
    PendingFileResponse,
    PendingFolderResponse,
    PendingResponse,
    PendingRevisionResponse,
)
from ghostcontent.services.datetime_service import format_iso, now_utc
from ghostcontent.services.export_service import build_export_archive
from ghostcontent.services.ghost_store import GhostStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ghost", tags=["ghost"])


# ── Files ────────────────────────────────────────────


@router.get("/files", response_model=FileListResponse)
async def list_folder(
    store: Annotated[GhostStore, Depends(get_ghost_store)],
    folder: Annotated[str, Query(min_length=1)],
    suffix: str = "",
) -> FileListResponse:
    """List live files of a folder, optionally filtered by name suffix."""
    files = await store.list_files(folder, suffix)
    return FileListResponse(folder=store.normalize(folder).name, files=files)


@router.get("/file", response_model=FileContentResponse)
async def read_file(
    store: Annotated[GhostStore, Depends(get_ghost_store)],
    folder: Annotated[str, Query(min_length=1)],
    file: Annotated[str, Query(min_length=1)],
) -> FileContentResponse:
    """Return the current content of a file."""
    content = await store.read(folder, file)
    return FileContentResponse(
        folder=store.normalize(folder).name, file=validate_file_name(file), content=content
    )


@router.put("/file", status_code=status.HTTP_204_NO_CONTENT)
async def write_file(
    body: FileWriteRequest,
    store: Annotated[GhostStore, Depends(get_ghost_store)],
    _auth: Annotated[None, Depends(require_token)],
) -> None:
    """Store new content for a file, recording a revision if it changed."""
    await store.record_revision(body.folder, body.file, body.content)
    logger.info("Recorded %s/%s", body.folder, body.file)


@router.delete("/file", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(
    store: Annotated[GhostStore, Depends(get_ghost_store)],
    _auth: Annotated[None, Depends(require_token)],
    folder: Annotated[str, Query(min_length=1)],
    file: Annotated[str, Query(min_length=1)],
) -> None:
    """Delete a file."""
    await store.soft_delete(folder, file)
    logger.info("Deleted %s/%s", folder, file)


# ── Pending revisions ────────────────────────────────


def _pending_response(store: GhostStore) -> PendingResponse:
    return PendingResponse(
        folders={
            folder: [
                PendingRevisionResponse(
                    file=r.file,
                    revision=r.revision,
                    created_at=format_iso(r.created_at),
                    created_by=r.created_by,
                )
                for r in revisions
            ]
            for folder, revisions in store.get_pending().items()
        }
    )


@router.get("/pending", response_model=PendingResponse)
async def get_pending(
    store: Annotated[GhostStore, Depends(get_ghost_store)],
    _auth: Annotated[None, Depends(require_token)],
) -> PendingResponse:
    """Revisions not yet listed in their folder's manifest."""
    return _pending_response(store)


@router.get("/pending/content", response_model=PendingContentResponse)
async def get_pending_content(
    store: Annotated[GhostStore, Depends(get_ghost_store)],
    _auth: Annotated[None, Depends(require_token)],
) -> PendingContentResponse:
    """Files and revision tokens to package per folder."""
    pending = await store.get_pending_with_content()
    return PendingContentResponse(
        folders={
            folder: PendingFolderResponse(
                files=[
                    PendingFileResponse(file=f.file, content=f.content, deleted=f.deleted)
                    for f in content.files
                ],
                revisions=content.revisions,
            )
            for folder, content in pending.items()
        }
    )


@router.post("/refresh", response_model=PendingResponse)
async def refresh_pending(
    store: Annotated[GhostStore, Depends(get_ghost_store)],
    _auth: Annotated[None, Depends(require_token)],
) -> PendingResponse:
    """Recompute pending revisions, e.g. after another process wrote content."""
    await store.refresh_all()
    return _pending_response(store)


@router.get("/export")
async def export_pending(
    store: Annotated[GhostStore, Depends(get_ghost_store)],
    _auth: Annotated[None, Depends(require_token)],
) -> Response:
    """Download pending content as a gzipped tarball."""
    pending = await store.get_pending_with_content()
    archive = build_export_archive(pending, store.project_dir)
    stamp = format_iso(now_utc()).replace(":", "-")
    return Response(
        content=archive,
        media_type="application/gzip",
        headers={"Content-Disposition": f'attachment; filename="ghost-content-{stamp}.tgz"'},
    )
