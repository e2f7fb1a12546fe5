"""Transparent ghost store: same API, proxies every call to the filesystem.

Used when durable tracking is disabled (typically in development).  There is
no history: writes land on disk immediately and nothing is ever pending.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ghostcontent.exceptions import ContentNotFoundError
from ghostcontent.filesystem import content_manager
from ghostcontent.filesystem.paths import validate_file_name
from ghostcontent.services.ghost_store import (
    GhostStore,
    PendingFolderContent,
    PendingRevision,
)

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class TransparentGhostStore(GhostStore):
    """Ghost store reading and writing files directly under the project directory."""

    durable = False

    def __init__(self, project_dir: Path) -> None:
        super().__init__(project_dir)
        logger.info("Ghost content store initialized (transparent)")

    async def register(self, root_folder: str | Path, glob_pattern: str) -> None:
        folder = self.normalize(root_folder)
        logger.debug("Added root folder %s (transparent), doing nothing", folder.name)

    async def read(self, root_folder: str | Path, file: str) -> str:
        folder = self.normalize(root_folder)
        file = validate_file_name(file)
        content = content_manager.read_file(folder.folder_path, file)
        if content is None:
            raise ContentNotFoundError(folder.name, file)
        return content

    async def record_revision(self, root_folder: str | Path, file: str, content: str) -> None:
        folder = self.normalize(root_folder)
        file = validate_file_name(file)
        content_manager.write_file(folder.folder_path, file, content)

    async def soft_delete(self, root_folder: str | Path, file: str) -> None:
        """Remove the file from disk; there is no tombstone."""
        folder = self.normalize(root_folder)
        file = validate_file_name(file)
        if not content_manager.delete_file(folder.folder_path, file):
            raise ContentNotFoundError(folder.name, file)

    async def list_files(self, root_folder: str | Path, suffix: str = "") -> list[str]:
        folder = self.normalize(root_folder)
        return content_manager.list_files(folder.folder_path, suffix)

    def get_pending(self) -> dict[str, list[PendingRevision]]:
        return {}

    async def get_pending_with_content(self) -> dict[str, PendingFolderContent]:
        return {}

    async def refresh(self, root_folder: str | Path) -> None:
        self.normalize(root_folder)

    async def refresh_all(self) -> None:
        pass
