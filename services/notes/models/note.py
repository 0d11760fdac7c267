from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StorageType(str, Enum):
    TABLE = "table"
    FILE = "file"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["StorageType"]:
        """Map a persisted or user-supplied value to a StorageType.

        Accepts the legacy names ("sqlite", "file-system") written by older
        clients. Returns None for empty, unknown or non-string values.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        v = value.strip().lower()
        if not v:
            return None
        v = _LEGACY_TYPES.get(v, v)
        try:
            return cls(v)
        except ValueError:
            return None


_LEGACY_TYPES = {
    "sqlite": "table",
    "file-system": "file",
    "filesystem": "file",
}

DEFAULT_STORAGE_TYPE = StorageType.TABLE


class SearchField(str, Enum):
    ALL = "all"
    TITLE = "title"
    CONTENT = "content"
    DATE = "date"
    TIME = "time"


class Note(BaseModel):
    id: str = ""
    title: str
    content: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM

    model_config = ConfigDict(from_attributes=True)


class NoteIn(BaseModel):
    """Request body for create/overwrite; id comes from the path or is generated."""
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    time: str = Field(pattern=r"^\d{2}:\d{2}$")


class StorageSwitchIn(BaseModel):
    storage_type: StorageType


class StorageTypeOut(BaseModel):
    storage_type: StorageType
    switched: bool = False
    warning: Optional[str] = None
