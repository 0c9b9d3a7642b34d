"""Drive folder records and provisioning results."""
from enum import Enum

from pydantic import BaseModel


class Folder(BaseModel):
    id: str
    name: str
    parents: list[str] = []


class FolderStatus(str, Enum):
    FOUND = "found"
    CREATED = "created"
    NOT_FOUND = "not_found"
    ERROR = "error"


class FolderResult(BaseModel):
    """Outcome of a lookup or ensure. Absence and remote failure are different statuses."""

    status: FolderStatus
    folder: Folder | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.folder is not None

    @classmethod
    def found(cls, folder: Folder) -> "FolderResult":
        return cls(status=FolderStatus.FOUND, folder=folder)

    @classmethod
    def created(cls, folder: Folder) -> "FolderResult":
        return cls(status=FolderStatus.CREATED, folder=folder)

    @classmethod
    def not_found(cls) -> "FolderResult":
        return cls(status=FolderStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: Exception | str) -> "FolderResult":
        return cls(status=FolderStatus.ERROR, error=str(error))
