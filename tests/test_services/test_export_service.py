"""Tests for the release archive export."""

from __future__ import annotations

import io
import json
import tarfile
from typing import TYPE_CHECKING

from ghostcontent.filesystem.manifest import REVISIONS_FILE_NAME, parse_known_revisions
from ghostcontent.services.export_service import EXPORT_INDEX_NAME, build_export_archive
from ghostcontent.services.ghost_store import PendingFile, PendingFolderContent

if TYPE_CHECKING:
    from pathlib import Path

    from ghostcontent.services.ghost_service import DurableGhostStore


def _members(archive: bytes) -> dict[str, str]:
    with tarfile.open(fileobj=io.BytesIO(archive), mode="r:gz") as tar:
        result: dict[str, str] = {}
        for member in tar.getmembers():
            extracted = tar.extractfile(member)
            assert extracted is not None
            result[member.name] = extracted.read().decode("utf-8")
        return result


class TestBuildExportArchive:
    def test_empty_pending(self, project_dir: Path) -> None:
        members = _members(build_export_archive({}, project_dir))
        assert members == {EXPORT_INDEX_NAME: "{}"}

    def test_live_files_and_manifest(self, project_dir: Path) -> None:
        (project_dir / "flows" / REVISIONS_FILE_NAME).write_text("# released\nold-token\n")
        pending = {
            "flows": PendingFolderContent(
                files=[
                    PendingFile(file="a.json", content="v2", deleted=False),
                    PendingFile(file="b.json", content=None, deleted=True),
                ],
                revisions=["t2", "t1"],
            )
        }

        members = _members(build_export_archive(pending, project_dir))

        assert members["flows/a.json"] == "v2"
        assert "flows/b.json" not in members
        manifest = members[f"flows/{REVISIONS_FILE_NAME}"]
        assert manifest.startswith("# released\nold-token\n")
        assert parse_known_revisions(manifest) == {"old-token", "t1", "t2"}
        index = json.loads(members[EXPORT_INDEX_NAME])
        assert index == {"flows": {"revisions": ["t2", "t1"], "deleted": ["b.json"]}}

    def test_project_root_folder(self, project_dir: Path) -> None:
        pending = {
            ".": PendingFolderContent(
                files=[PendingFile(file="top.json", content="{}", deleted=False)],
                revisions=["t1"],
            )
        }
        members = _members(build_export_archive(pending, project_dir))
        assert members["top.json"] == "{}"
        assert members[REVISIONS_FILE_NAME] == "t1\n"

    async def test_extracting_export_releases_revisions(
        self,
        store: DurableGhostStore,
        project_dir: Path,
        flows_dir: Path,
    ) -> None:
        (flows_dir / "a.json").write_text("v1")
        await store.register("flows", "*.json")
        await store.record_revision("flows", "a.json", "v2")
        await store.record_revision("flows", "b.json", "new")

        archive = build_export_archive(await store.get_pending_with_content(), project_dir)
        with tarfile.open(fileobj=io.BytesIO(archive), mode="r:gz") as tar:
            tar.extractall(project_dir, filter="data")

        assert (flows_dir / "a.json").read_text() == "v2"
        await store.refresh("flows")
        assert store.get_pending() == {}
