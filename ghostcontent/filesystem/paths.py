"""Folder name normalization and file name validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath


@dataclass(frozen=True)
class NormalizedFolder:
    """A tracked folder: absolute location plus its storage key."""

    folder_path: Path
    name: str


def normalize_folder(project_dir: Path, root_folder: str | Path) -> NormalizedFolder:
    """Map a caller-supplied folder to its canonical project-relative name.

    Relative folders are resolved against ``project_dir``.  The name uses
    forward slashes with no leading or trailing slash; the project directory
    itself is ``"."``.

    Raises ValueError if the folder resolves outside the project directory.
    """
    project_root = project_dir.resolve()
    folder_path = (project_root / root_folder).resolve()
    if not folder_path.is_relative_to(project_root):
        raise ValueError(f"Folder outside project directory: {root_folder}")
    relative = folder_path.relative_to(project_root).as_posix()
    return NormalizedFolder(folder_path=folder_path, name=relative or ".")


def validate_file_name(file: str) -> str:
    """Validate a file name relative to its folder and return its canonical form.

    Nested names (``sub/a.json``) are allowed and come back with forward
    slashes, redundant ``./`` segments and doubled separators removed, so every
    spelling of a file maps to one storage key.  Absolute names, names that
    climb out of the folder and hidden names (any segment starting with a dot,
    which covers the revisions manifest) are rejected.
    """
    if not file or not file.strip():
        raise ValueError("File name must not be empty")
    posix = PurePosixPath(file.replace("\\", "/"))
    if posix.is_absolute() or ".." in posix.parts:
        raise ValueError(f"Invalid file name: {file}")
    if not posix.parts:
        raise ValueError(f"Invalid file name: {file}")
    if any(part.startswith(".") for part in posix.parts):
        raise ValueError(f"Hidden file names are not allowed: {file}")
    return posix.as_posix()
