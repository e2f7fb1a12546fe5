"""Export service: package pending ghost content as a release archive."""

from __future__ import annotations

import io
import json
import logging
import tarfile
from typing import TYPE_CHECKING

from ghostcontent.filesystem.manifest import (
    REVISIONS_FILE_NAME,
    append_revisions,
    read_manifest_text,
)
from ghostcontent.filesystem.paths import normalize_folder
from ghostcontent.services.datetime_service import now_utc

if TYPE_CHECKING:
    from pathlib import Path

    from ghostcontent.services.ghost_store import PendingFolderContent

logger = logging.getLogger(__name__)

EXPORT_INDEX_NAME = "ghost-export.json"


def _add_member(archive: tarfile.TarFile, name: str, data: bytes, mtime: float) -> None:
    info = tarfile.TarInfo(name=name)
    info.size = len(data)
    info.mtime = int(mtime)
    info.mode = 0o644
    archive.addfile(info, io.BytesIO(data))


def _member_name(folder: str, file: str) -> str:
    return file if folder == "." else f"{folder}/{file}"


def build_export_archive(
    pending: dict[str, PendingFolderContent],
    project_dir: Path,
) -> bytes:
    """Build a gzipped tarball of pending content, laid out like the project.

    For every folder the archive holds the current content of each live
    pending file and the folder's ``.ghost-revisions`` manifest extended with
    the pending tokens, so extracting it over the project marks them as
    released.  Deleted files cannot be expressed by extraction; they are
    listed in ``ghost-export.json`` together with the tokens.

    Raises ManifestReadError if an existing manifest cannot be read.
    """
    mtime = now_utc().timestamp()
    index: dict[str, dict[str, list[str]]] = {}
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for folder in sorted(pending):
            folder_content = pending[folder]
            deleted: list[str] = []
            for entry in folder_content.files:
                if entry.deleted or entry.content is None:
                    deleted.append(entry.file)
                    continue
                _add_member(
                    archive,
                    _member_name(folder, entry.file),
                    entry.content.encode("utf-8"),
                    mtime,
                )

            folder_path = normalize_folder(project_dir, folder).folder_path
            manifest_text = append_revisions(
                read_manifest_text(folder_path), folder_content.revisions
            )
            _add_member(
                archive,
                _member_name(folder, REVISIONS_FILE_NAME),
                manifest_text.encode("utf-8"),
                mtime,
            )
            index[folder] = {"revisions": list(folder_content.revisions), "deleted": deleted}
            logger.debug(
                "Exported %s: %d file(s), %d deleted, %d revision(s)",
                folder,
                len(folder_content.files) - len(deleted),
                len(deleted),
                len(folder_content.revisions),
            )

        _add_member(
            archive,
            EXPORT_INDEX_NAME,
            json.dumps(index, indent=2, sort_keys=True).encode("utf-8"),
            mtime,
        )

    logger.info("Built export archive for %d folder(s)", len(index))
    return buffer.getvalue()
