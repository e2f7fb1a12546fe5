"""Known-revisions manifest reader.

Each tracked folder may hold a ``.ghost-revisions`` file listing revision
tokens that an external release process has already exported.  One token
per line; blank lines and ``#`` comments are ignored.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ghostcontent.exceptions import ManifestReadError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

logger = logging.getLogger(__name__)

REVISIONS_FILE_NAME = ".ghost-revisions"


def parse_known_revisions(text: str) -> set[str]:
    """Parse manifest text into a set of revision tokens."""
    tokens: set[str] = set()
    for line in text.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            tokens.add(stripped)
    return tokens


def read_manifest_text(folder_path: Path) -> str:
    """Return raw manifest text for a folder, or ``""`` if it has none.

    Raises ManifestReadError on any I/O error other than a missing file.
    """
    manifest_path = folder_path / REVISIONS_FILE_NAME
    try:
        return manifest_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Failed to read revisions manifest %s: %s", manifest_path, exc)
        raise ManifestReadError(manifest_path) from exc


def read_known_revisions(folder_path: Path) -> set[str]:
    """Load the set of released revision tokens for a folder."""
    return parse_known_revisions(read_manifest_text(folder_path))


def append_revisions(text: str, revisions: Iterable[str]) -> str:
    """Return manifest text with new tokens appended, skipping known ones."""
    known = parse_known_revisions(text)
    lines = text.splitlines()
    for revision in revisions:
        if revision not in known:
            lines.append(revision)
            known.add(revision)
    return "\n".join(lines) + "\n" if lines else ""
