# services/notes/tests/utils.py
from __future__ import annotations

from services.notes.models.note import Note


def make_note(
    title: str = "A",
    content: str = "b",
    date: str = "2024-01-01",
    time: str = "09:00",
    id: str = "",
) -> Note:
    return Note(id=id, title=title, content=content, date=date, time=time)
