"""Tests for the transparent (filesystem-only) ghost store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from ghostcontent.exceptions import ContentNotFoundError

if TYPE_CHECKING:
    from pathlib import Path

    from ghostcontent.services.ghost_store import GhostStore
    from ghostcontent.services.transparent_service import TransparentGhostStore


class TestTransparentStore:
    async def test_write_lands_on_disk(
        self, transparent_store: TransparentGhostStore, flows_dir: Path
    ) -> None:
        await transparent_store.record_revision("flows", "a.json", "v1")
        assert (flows_dir / "a.json").read_text(encoding="utf-8") == "v1"

    async def test_write_creates_parent_directories(
        self, transparent_store: TransparentGhostStore, project_dir: Path
    ) -> None:
        await transparent_store.record_revision("new/folder", "sub/a.json", "v1")
        assert (project_dir / "new" / "folder" / "sub" / "a.json").read_text() == "v1"

    async def test_read_from_disk(
        self, transparent_store: TransparentGhostStore, flows_dir: Path
    ) -> None:
        (flows_dir / "a.json").write_text("authored", encoding="utf-8")
        assert await transparent_store.read("flows", "a.json") == "authored"

    async def test_read_missing_raises(self, transparent_store: TransparentGhostStore) -> None:
        with pytest.raises(ContentNotFoundError):
            await transparent_store.read("flows", "missing.json")

    async def test_delete_removes_file(
        self, transparent_store: TransparentGhostStore, flows_dir: Path
    ) -> None:
        (flows_dir / "a.json").write_text("{}")
        await transparent_store.soft_delete("flows", "a.json")
        assert not (flows_dir / "a.json").exists()

    async def test_delete_missing_raises(self, transparent_store: TransparentGhostStore) -> None:
        with pytest.raises(ContentNotFoundError):
            await transparent_store.soft_delete("flows", "missing.json")

    async def test_list_skips_hidden_files(
        self, transparent_store: TransparentGhostStore, flows_dir: Path
    ) -> None:
        (flows_dir / "b.flow.json").write_text("{}")
        (flows_dir / "b.ui.json").write_text("{}")
        (flows_dir / ".ghost-revisions").write_text("")
        (flows_dir / "sub").mkdir()
        (flows_dir / "sub" / "a.flow.json").write_text("{}")
        assert await transparent_store.list_files("flows") == [
            "b.flow.json",
            "b.ui.json",
            "sub/a.flow.json",
        ]
        assert await transparent_store.list_files("flows", ".flow.json") == [
            "b.flow.json",
            "sub/a.flow.json",
        ]

    async def test_list_missing_folder(self, transparent_store: TransparentGhostStore) -> None:
        assert await transparent_store.list_files("nowhere") == []

    async def test_register_does_not_touch_disk(
        self, transparent_store: TransparentGhostStore, flows_dir: Path
    ) -> None:
        (flows_dir / "a.json").write_text("{}")
        await transparent_store.register("flows", "*.json")
        assert sorted(p.name for p in flows_dir.iterdir()) == ["a.json"]

    async def test_nothing_is_ever_pending(
        self, transparent_store: TransparentGhostStore
    ) -> None:
        await transparent_store.record_revision("flows", "a.json", "v1")
        await transparent_store.refresh("flows")
        await transparent_store.refresh_all()
        assert transparent_store.get_pending() == {}
        assert await transparent_store.get_pending_with_content() == {}

    async def test_path_traversal_rejected(
        self, transparent_store: TransparentGhostStore
    ) -> None:
        with pytest.raises(ValueError):
            await transparent_store.record_revision("flows", "../../escape.json", "x")
        with pytest.raises(ValueError):
            await transparent_store.read("../..", "etc/passwd")


@pytest.fixture(params=["store", "transparent_store"])
def any_store(request: pytest.FixtureRequest) -> GhostStore:
    """Each store variant in turn."""
    return request.getfixturevalue(request.param)


class TestSharedContract:
    """Behaviour callers rely on regardless of the active variant."""

    async def test_write_read_list_delete(self, any_store: GhostStore, flows_dir: Path) -> None:
        (flows_dir / "a.json").write_text('{"a": 1}')
        (flows_dir / "b.json").write_text('{"b": 1}')
        await any_store.register("flows", "*.json")
        assert await any_store.list_files("flows") == ["a.json", "b.json"]

        await any_store.record_revision("flows", "a.json", "v2")
        assert await any_store.read("flows", "a.json") == "v2"

        await any_store.soft_delete("flows", "b.json")
        assert await any_store.list_files("flows") == ["a.json"]
        with pytest.raises(ContentNotFoundError):
            await any_store.read("flows", "b.json")
        with pytest.raises(ContentNotFoundError):
            await any_store.soft_delete("flows", "b.json")

    async def test_invalid_names_rejected(self, any_store: GhostStore) -> None:
        with pytest.raises(ValueError):
            await any_store.record_revision("flows", "", "x")
        with pytest.raises(ValueError):
            await any_store.record_revision("flows", "/abs.json", "x")
        with pytest.raises(ValueError):
            await any_store.list_files("../outside")

    async def test_aliased_names_address_one_file(
        self, any_store: GhostStore, flows_dir: Path
    ) -> None:
        (flows_dir / "a.json").write_text("disk")
        (flows_dir / "sub").mkdir()
        (flows_dir / "sub" / "b.json").write_text("disk")
        await any_store.register("flows", "**/*.json")

        await any_store.record_revision("flows", "./a.json", "alias")
        await any_store.record_revision("flows", "sub//./b.json", "alias")

        assert await any_store.list_files("flows") == ["a.json", "sub/b.json"]
        assert await any_store.read("flows", "a.json") == "alias"
        assert await any_store.read("flows", "sub/./b.json") == "alias"

        await any_store.soft_delete("flows", "./a.json")
        assert await any_store.list_files("flows") == ["sub/b.json"]

    @pytest.mark.parametrize("name", [".ghost-revisions", ".hidden.json", "sub/.cache/a.json"])
    async def test_hidden_names_rejected(
        self, any_store: GhostStore, flows_dir: Path, name: str
    ) -> None:
        await any_store.register("flows", "*.json")
        with pytest.raises(ValueError, match="Hidden"):
            await any_store.record_revision("flows", name, "bogus")
        with pytest.raises(ValueError, match="Hidden"):
            await any_store.read("flows", name)
        assert await any_store.list_files("flows") == []
        assert not (flows_dir / ".ghost-revisions").exists()
