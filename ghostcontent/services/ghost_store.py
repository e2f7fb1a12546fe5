"""Ghost store interface shared by the durable and transparent variants."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ghostcontent.filesystem.paths import NormalizedFolder, normalize_folder

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path


@dataclass(frozen=True)
class FolderRegistration:
    """A folder tracked by the store, with the glob used to resync it."""

    name: str
    folder_path: Path
    glob_pattern: str


@dataclass(frozen=True)
class PendingRevision:
    """A revision not yet listed in its folder's manifest."""

    id: int
    file: str
    revision: str
    created_at: datetime
    created_by: str


@dataclass(frozen=True)
class PendingFile:
    """Current state of a file referenced by pending revisions."""

    file: str
    content: str | None
    deleted: bool


@dataclass
class PendingFolderContent:
    """Everything export tooling needs to package one folder."""

    files: list[PendingFile] = field(default_factory=list)
    revisions: list[str] = field(default_factory=list)


class GhostStore(ABC):
    """Read/write named files by folder.

    Folder arguments are caller paths (absolute or relative to the project
    directory); they are normalized before use, so ``"flows"``, ``"./flows"``
    and ``"flows/"`` address the same folder.
    """

    durable: bool = False

    def __init__(self, project_dir: Path) -> None:
        self.project_dir = project_dir

    def normalize(self, root_folder: str | Path) -> NormalizedFolder:
        """Resolve a caller folder to its location and storage key."""
        return normalize_folder(self.project_dir, root_folder)

    @abstractmethod
    async def register(self, root_folder: str | Path, glob_pattern: str) -> None:
        """Start tracking a folder."""

    @abstractmethod
    async def read(self, root_folder: str | Path, file: str) -> str:
        """Return file content. Raises ContentNotFoundError."""

    @abstractmethod
    async def record_revision(self, root_folder: str | Path, file: str, content: str) -> None:
        """Write file content."""

    @abstractmethod
    async def soft_delete(self, root_folder: str | Path, file: str) -> None:
        """Delete a file. Raises ContentNotFoundError."""

    @abstractmethod
    async def list_files(self, root_folder: str | Path, suffix: str = "") -> list[str]:
        """Return sorted names of live files ending with suffix."""

    @abstractmethod
    def get_pending(self) -> dict[str, list[PendingRevision]]:
        """Snapshot of pending revisions per folder."""

    @abstractmethod
    async def get_pending_with_content(self) -> dict[str, PendingFolderContent]:
        """Pending files and revision tokens per folder."""

    @abstractmethod
    async def refresh(self, root_folder: str | Path) -> None:
        """Recompute the pending revisions of one folder."""

    @abstractmethod
    async def refresh_all(self) -> None:
        """Recompute the pending revisions of every known folder."""
