"""Folder scanner and file manager for tracked content folders."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ghostcontent.filesystem.paths import validate_file_name

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def _is_hidden(rel_path: Path) -> bool:
    return any(part.startswith(".") for part in rel_path.parts)


def discover_files(folder_path: Path, glob_pattern: str) -> list[str]:
    """Find files under folder_path matching glob_pattern.

    Returns sorted folder-relative names with forward slashes.  Dot-files and
    anything inside dot-directories are skipped, so the revisions manifest
    never shows up as content.
    """
    if not folder_path.is_dir():
        return []
    names: set[str] = set()
    for match in folder_path.glob(glob_pattern):
        if not match.is_file():
            continue
        rel = match.relative_to(folder_path)
        if _is_hidden(rel):
            continue
        names.add(rel.as_posix())
    return sorted(names)


def list_files(folder_path: Path, suffix: str = "") -> list[str]:
    """List every visible file under folder_path whose name ends with suffix."""
    return [name for name in discover_files(folder_path, "**/*") if name.endswith(suffix)]


def resolve_file(folder_path: Path, file: str) -> Path:
    """Validate that a file name stays within its folder.

    Raises ValueError if the resolved path escapes folder_path.
    """
    file = validate_file_name(file)
    full_path = (folder_path / file).resolve()
    if not full_path.is_relative_to(folder_path.resolve()):
        raise ValueError(f"Path traversal detected: {file}")
    return full_path


def read_file(folder_path: Path, file: str) -> str | None:
    """Read a file by folder-relative name, or None if it doesn't exist."""
    full_path = resolve_file(folder_path, file)
    if not full_path.is_file():
        return None
    return full_path.read_text(encoding="utf-8")


def write_file(folder_path: Path, file: str, content: str) -> None:
    """Write a file to disk, creating parent directories."""
    full_path = resolve_file(folder_path, file)
    full_path.parent.mkdir(parents=True, exist_ok=True)
    full_path.write_text(content, encoding="utf-8")


def delete_file(folder_path: Path, file: str) -> bool:
    """Delete a file from disk. Returns True if file existed."""
    full_path = resolve_file(folder_path, file)
    if full_path.is_file():
        full_path.unlink()
        return True
    return False
