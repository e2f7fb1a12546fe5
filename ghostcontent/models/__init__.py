"""SQLAlchemy ORM models for the ghost content store."""

from ghostcontent.models.base import Base
from ghostcontent.models.content import GhostContent, GhostRevision

__all__ = [
    "Base",
    "GhostContent",
    "GhostRevision",
]
