"""Durable ghost content store: database-backed content with revision tracking.

The database is the source of truth.  Every write or delete appends a
revision; revisions whose tokens appear in the folder's ``.ghost-revisions``
manifest count as released and are dropped on the next registration.  While a
folder has pending (unreleased) revisions, its database content is never
overwritten from the filesystem.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
import weakref
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from ghostcontent.exceptions import (
    ContentNotFoundError,
    ReconciliationError,
    TransactionFailedError,
)
from ghostcontent.filesystem.content_manager import discover_files
from ghostcontent.filesystem.manifest import read_known_revisions
from ghostcontent.filesystem.paths import validate_file_name
from ghostcontent.models.content import GhostContent, GhostRevision
from ghostcontent.services.ghost_store import (
    FolderRegistration,
    GhostStore,
    PendingFile,
    PendingFolderContent,
    PendingRevision,
)
from ghostcontent.services.transparent_service import TransparentGhostStore

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from ghostcontent.config import Settings
    from ghostcontent.filesystem.paths import NormalizedFolder

logger = logging.getLogger(__name__)

# Dialects with a native INSERT ... ON CONFLICT DO UPDATE.
_UPSERT_INSERTS: dict[str, Callable[..., Any]] = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


class DurableGhostStore(GhostStore):
    """Ghost store backed by the ``ghost_content`` and ``ghost_revisions`` tables."""

    durable = True

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        project_dir: Path,
        actor: str = "admin",
    ) -> None:
        super().__init__(project_dir)
        self._session_factory = session_factory
        self.actor = actor
        self._folders: dict[str, FolderRegistration] = {}
        self._pending: dict[str, list[PendingRevision]] = {}
        self._key_locks: weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._folder_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )
        logger.info("Ghost content store initialized (durable)")

    @property
    def folders(self) -> list[FolderRegistration]:
        """Registered folders, in registration order."""
        return list(self._folders.values())

    def _key_lock(self, folder: str, file: str) -> asyncio.Lock:
        """Per-file lock serializing mutations of one key within this process."""
        key = (folder, file)
        lock = self._key_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._key_locks[key] = lock
        return lock

    def _folder_lock(self, folder: str) -> asyncio.Lock:
        """Per-folder lock ordering updates of the folder's pending set."""
        lock = self._folder_locks.get(folder)
        if lock is None:
            lock = asyncio.Lock()
            self._folder_locks[folder] = lock
        return lock

    # ── Reconciliation ───────────────────────────────

    async def register(self, root_folder: str | Path, glob_pattern: str) -> None:
        """Track a folder and reconcile it with its manifest and the filesystem.

        Revisions listed in the manifest are deleted.  If any revision is left
        pending, the stored content wins and is left as is.  Otherwise the
        stored content is replaced by the files matching ``glob_pattern``
        without creating revisions, and entries for files no longer on disk
        are removed.

        Raises ManifestReadError if the manifest cannot be read and
        ReconciliationError on any other failure.
        """
        folder = self.normalize(root_folder)
        logger.debug("Adding folder %s", folder.name)
        self._folders[folder.name] = FolderRegistration(
            name=folder.name,
            folder_path=folder.folder_path,
            glob_pattern=glob_pattern,
        )

        async with self._folder_lock(folder.name):
            await self._reconcile(folder, glob_pattern)

    async def _reconcile(self, folder: NormalizedFolder, glob_pattern: str) -> None:
        known_revisions = read_known_revisions(folder.folder_path)

        try:
            async with self._session_factory() as session, session.begin():
                revisions = await self._fetch_revisions(session, folder.name)
                released = [r for r in revisions if r.revision in known_revisions]
                pending = [r for r in revisions if r.revision not in known_revisions]

                if released:
                    logger.debug(
                        "%s: deleting %d known revision(s)", folder.name, len(released)
                    )
                    await session.execute(
                        delete(GhostRevision).where(GhostRevision.id.in_([r.id for r in released]))
                    )

                if pending:
                    logger.debug("%s: %d pending revision(s)", folder.name, len(pending))
                else:
                    logger.debug(
                        "%s has no pending revisions, updating DB from the file system",
                        folder.name,
                    )
                    await self._resync_folder(session, folder, glob_pattern)
        except Exception as exc:
            logger.error("Failed to reconcile folder %s: %s", folder.name, exc)
            raise ReconciliationError(folder.name) from exc

        self._set_pending(folder.name, pending)

    async def _resync_folder(
        self, session: AsyncSession, folder: NormalizedFolder, glob_pattern: str
    ) -> None:
        """Make stored content for a folder mirror the files on disk."""
        files = discover_files(folder.folder_path, glob_pattern)
        for name in files:
            raw_content = (folder.folder_path / name).read_text(encoding="utf-8")
            await self._upsert_content(session, folder.name, name, raw_content)

        stale_stmt = select(GhostContent.id).where(GhostContent.folder == folder.name)
        if files:
            stale_stmt = stale_stmt.where(GhostContent.file.not_in(files))
        stale_ids = list((await session.scalars(stale_stmt)).all())
        if stale_ids:
            await session.execute(
                delete(GhostRevision).where(GhostRevision.content_id.in_(stale_ids))
            )
            await session.execute(delete(GhostContent).where(GhostContent.id.in_(stale_ids)))
        logger.debug(
            "%s: synced %d file(s), removed %d", folder.name, len(files), len(stale_ids)
        )

    # ── Content ──────────────────────────────────────

    async def _upsert_content(
        self, session: AsyncSession, folder: str, file: str, content: str
    ) -> int:
        """Insert or update a live content row and return its id."""
        values = {"content": content, "deleted": False}
        insert_fn = _UPSERT_INSERTS.get(session.get_bind().dialect.name)
        if insert_fn is not None:
            stmt = insert_fn(GhostContent).values(folder=folder, file=file, **values)
            stmt = stmt.on_conflict_do_update(index_elements=["folder", "file"], set_=values)
            await session.execute(stmt)
        else:
            # The unique constraint rejects a concurrent insert of the same key.
            existing_id = await session.scalar(
                select(GhostContent.id).where(
                    GhostContent.folder == folder, GhostContent.file == file
                )
            )
            if existing_id is None:
                session.add(GhostContent(folder=folder, file=file, **values))
                await session.flush()
            else:
                await session.execute(
                    update(GhostContent).where(GhostContent.id == existing_id).values(**values)
                )

        content_id = await session.scalar(
            select(GhostContent.id).where(GhostContent.folder == folder, GhostContent.file == file)
        )
        if content_id is None:
            raise SQLAlchemyError(f"Upserted row for {folder}/{file} is missing")
        return content_id

    def _new_revision(self, content_id: int) -> GhostRevision:
        return GhostRevision(
            content_id=content_id,
            revision=str(uuid.uuid4()),
            created_by=self.actor,
        )

    async def read(self, root_folder: str | Path, file: str) -> str:
        """Return the stored content of a live file."""
        folder = self.normalize(root_folder)
        file = validate_file_name(file)
        async with self._session_factory() as session:
            row = (
                await session.execute(
                    select(GhostContent.content, GhostContent.deleted).where(
                        GhostContent.folder == folder.name, GhostContent.file == file
                    )
                )
            ).first()
        if row is None or row.deleted or row.content is None:
            raise ContentNotFoundError(folder.name, file)
        return row.content

    async def record_revision(self, root_folder: str | Path, file: str, content: str) -> None:
        """Store new content for a file and append a revision.

        Saving content identical to what is stored does nothing.

        Raises TransactionFailedError if the transaction fails; nothing is
        written in that case.
        """
        folder = self.normalize(root_folder)
        file = validate_file_name(file)

        changed = False
        async with self._key_lock(folder.name, file):
            try:
                async with self._session_factory() as session, session.begin():
                    current = (
                        await session.execute(
                            select(GhostContent.content, GhostContent.deleted).where(
                                GhostContent.folder == folder.name, GhostContent.file == file
                            )
                        )
                    ).first()
                    if current is None or current.deleted or current.content != content:
                        content_id = await self._upsert_content(
                            session, folder.name, file, content
                        )
                        session.add(self._new_revision(content_id))
                        changed = True
            except SQLAlchemyError as exc:
                logger.error("Failed to record revision of %s/%s: %s", folder.name, file, exc)
                raise TransactionFailedError(folder.name, file, "write") from exc

        if not changed:
            logger.debug("%s/%s unchanged, no revision recorded", folder.name, file)
            return
        await self.refresh(folder.folder_path)

    async def soft_delete(self, root_folder: str | Path, file: str) -> None:
        """Tombstone a live file and append a revision.

        Raises ContentNotFoundError if the file is absent or already deleted,
        TransactionFailedError if the transaction fails.
        """
        folder = self.normalize(root_folder)
        file = validate_file_name(file)

        async with self._key_lock(folder.name, file):
            try:
                async with self._session_factory() as session, session.begin():
                    content_id = await session.scalar(
                        select(GhostContent.id).where(
                            GhostContent.folder == folder.name,
                            GhostContent.file == file,
                            GhostContent.deleted.is_(False),
                        )
                    )
                    if content_id is None:
                        raise ContentNotFoundError(folder.name, file)
                    await session.execute(
                        update(GhostContent)
                        .where(GhostContent.id == content_id)
                        .values(content=None, deleted=True)
                    )
                    session.add(self._new_revision(content_id))
            except SQLAlchemyError as exc:
                logger.error("Failed to delete %s/%s: %s", folder.name, file, exc)
                raise TransactionFailedError(folder.name, file, "delete") from exc

        await self.refresh(folder.folder_path)

    async def list_files(self, root_folder: str | Path, suffix: str = "") -> list[str]:
        """Return sorted names of live files in a folder ending with suffix."""
        folder = self.normalize(root_folder)
        stmt = (
            select(GhostContent.file)
            .where(GhostContent.folder == folder.name, GhostContent.deleted.is_(False))
            .order_by(GhostContent.file)
        )
        async with self._session_factory() as session:
            result = await session.scalars(stmt)
            names = result.all()
        # Case-sensitive, unlike LIKE on SQLite.
        return [name for name in names if name.endswith(suffix)]

    # ── Pending index ────────────────────────────────

    async def _fetch_revisions(self, session: AsyncSession, folder: str) -> list[PendingRevision]:
        """All revisions of a folder joined with their file name, newest first."""
        stmt = (
            select(
                GhostContent.file,
                GhostRevision.id,
                GhostRevision.revision,
                GhostRevision.created_at,
                GhostRevision.created_by,
            )
            .join(GhostContent, GhostContent.id == GhostRevision.content_id)
            .where(GhostContent.folder == folder)
            .order_by(GhostRevision.created_at.desc(), GhostRevision.id.desc())
        )
        result = await session.execute(stmt)
        return [
            PendingRevision(
                id=row.id,
                file=row.file,
                revision=row.revision,
                created_at=row.created_at,
                created_by=row.created_by,
            )
            for row in result.all()
        ]

    def _set_pending(self, folder: str, pending: list[PendingRevision]) -> None:
        if pending:
            self._pending[folder] = pending
        else:
            self._pending.pop(folder, None)

    async def refresh(self, root_folder: str | Path) -> None:
        """Recompute pending revisions of a folder from the database and manifest."""
        folder = self.normalize(root_folder)
        # One refresh per folder at a time; the last to start sets the final state.
        async with self._folder_lock(folder.name):
            known_revisions = read_known_revisions(folder.folder_path)
            async with self._session_factory() as session:
                revisions = await self._fetch_revisions(session, folder.name)
            self._set_pending(
                folder.name, [r for r in revisions if r.revision not in known_revisions]
            )

    async def refresh_all(self) -> None:
        """Refresh every registered folder and every folder with pending revisions."""
        names = list(dict.fromkeys([*self._folders, *self._pending]))
        for name in names:
            registration = self._folders.get(name)
            await self.refresh(registration.folder_path if registration else name)

    def get_pending(self) -> dict[str, list[PendingRevision]]:
        """Snapshot of pending revisions per folder, newest first."""
        return {folder: list(revisions) for folder, revisions in self._pending.items()}

    async def get_pending_with_content(self) -> dict[str, PendingFolderContent]:
        """Current content of every file touched by a pending revision."""
        snapshot = self.get_pending()
        result: dict[str, PendingFolderContent] = {}
        async with self._session_factory() as session:
            for folder, revisions in snapshot.items():
                file_names = list(dict.fromkeys(r.file for r in revisions))
                rows = await session.execute(
                    select(GhostContent.file, GhostContent.content, GhostContent.deleted)
                    .where(GhostContent.folder == folder, GhostContent.file.in_(file_names))
                    .order_by(GhostContent.file)
                )
                result[folder] = PendingFolderContent(
                    files=[
                        PendingFile(file=row.file, content=row.content, deleted=row.deleted)
                        for row in rows.all()
                    ],
                    revisions=list(dict.fromkeys(r.revision for r in revisions)),
                )
        return result


def create_ghost_store(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> GhostStore:
    """Build the ghost store selected by ``settings.ghost_enabled``.

    The durable store needs a session factory; the transparent one works on
    the project directory alone.
    """
    if not settings.ghost_enabled:
        return TransparentGhostStore(project_dir=settings.project_dir)
    if session_factory is None:
        raise ValueError("Durable ghost content requires a database session factory")
    return DurableGhostStore(
        session_factory=session_factory,
        project_dir=settings.project_dir,
        actor=settings.ghost_actor,
    )
