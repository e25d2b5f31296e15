"""File change data models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class FileStatus(str, Enum):
    """Status of a file in a commit comparison."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    RENAMED = "renamed"
    COPIED = "copied"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


class ComparedFile(BaseModel):
    """One file entry from a base..head commit comparison."""

    filename: str
    status: FileStatus
    patch: Optional[str] = None


class ChangedFile(BaseModel):
    """Changed file paired with its current content for review."""

    path: str
    unified_diff: str = ""
    content: str = ""


class RepositoryFile(BaseModel):
    """File read from a checked-out repository tree."""

    absolute_path: str
    relative_path: str
    content: str
    truncated: bool = False
