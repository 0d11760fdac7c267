from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from services.notes.core import shared
from services.notes.core.errors import ValidationError
from services.notes.models.note import StorageType
from services.notes.repo.base import NotesRepo
from services.notes.repo.files import FileNotesRepo
from services.notes.repo.table import TableNotesRepo

RepoFactory = Callable[[StorageType], NotesRepo]


def build_repo(
    storage_type: StorageType,
    *,
    database_url: str,
    notes_dir: Path,
    strict_reads: bool = False,
) -> NotesRepo:
    if storage_type is StorageType.TABLE:
        return TableNotesRepo(database_url)
    if storage_type is StorageType.FILE:
        return FileNotesRepo(notes_dir, strict=strict_reads)
    raise ValidationError(f"unknown storage type: {storage_type!r}")


def repo_factory(state_dir: Optional[Path] = None) -> RepoFactory:
    """Bind backend locations for a state directory (env overrides apply)."""
    database_url = shared._database_url(state_dir)
    notes_dir = shared._notes_dir(state_dir)
    strict_reads = shared._strict_reads()

    def _build(storage_type: StorageType) -> NotesRepo:
        return build_repo(
            storage_type,
            database_url=database_url,
            notes_dir=notes_dir,
            strict_reads=strict_reads,
        )

    return _build
