"""
Backend contract shared by the table and file stores.

Both backends expose the same async operations; the matching, ordering and
validation rules below are the single definition of that behaviour.
"""
from __future__ import annotations

import uuid
from typing import Iterable, List, Optional, Protocol

from services.notes.core.errors import ValidationError
from services.notes.models.note import Note, SearchField, StorageType


class NotesRepo(Protocol):
    storage_type: StorageType

    async def init(self) -> None: ...

    async def get_all(self) -> List[Note]: ...

    async def get_by_id(self, note_id: str) -> Optional[Note]: ...

    async def save(self, note: Note) -> Note: ...

    async def delete(self, note_id: str) -> None: ...

    async def search(self, query: str, field: SearchField | str = SearchField.ALL) -> List[Note]: ...


def new_note_id() -> str:
    return str(uuid.uuid4())


def prepare_for_save(note: Note) -> Note:
    """Check the save preconditions and return a copy that carries an id."""
    if not (note.title or "").strip():
        raise ValidationError("note title must not be empty")
    if not (note.content or "").strip():
        raise ValidationError("note content must not be empty")
    if not note.id:
        return note.model_copy(update={"id": new_note_id()})
    return note.model_copy()


def parse_field(field: SearchField | str | None) -> SearchField:
    if field is None or field == "":
        return SearchField.ALL
    try:
        return SearchField(field)
    except ValueError:
        raise ValidationError(f"unknown search field: {field!r}") from None


def is_blank(query: Optional[str]) -> bool:
    return not (query or "").strip()


def note_matches(note: Note, query: str, field: SearchField) -> bool:
    q = query.lower()
    checks = {
        SearchField.TITLE: lambda: q in note.title.lower(),
        SearchField.CONTENT: lambda: q in note.content.lower(),
        SearchField.DATE: lambda: q in note.date,
        SearchField.TIME: lambda: q in note.time,
    }
    if field is SearchField.ALL:
        return any(check() for check in checks.values())
    return checks[field]()


def sort_newest_first(notes: Iterable[Note]) -> List[Note]:
    # date/time are fixed-width strings, so lexical order is chronological
    return sorted(notes, key=lambda n: (n.date, n.time), reverse=True)
