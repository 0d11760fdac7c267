# services/notes/routes/notes.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from services.notes.models.note import Note, NoteIn, SearchField
from services.notes.storage.manager import StorageManager


def get_storage(request: Request) -> StorageManager:
    return request.app.state.storage


router = APIRouter(prefix="/api/notes", tags=["notes"])


@router.get("", response_model=List[Note])
async def api_notes_list(
    q: Optional[str] = Query(None, description="Substring to search for"),
    field: SearchField = Query(SearchField.ALL),
    storage: StorageManager = Depends(get_storage),
):
    if q is None:
        return await storage.get_notes()
    return await storage.search_notes(q, field)


@router.post("", status_code=201, response_model=Note)
async def api_notes_create(payload: NoteIn, storage: StorageManager = Depends(get_storage)):
    return await storage.save_note(Note(**payload.model_dump()))


@router.get("/{note_id}", response_model=Note)
async def api_notes_get(note_id: str, storage: StorageManager = Depends(get_storage)):
    doc = await storage.get_note_by_id(note_id)
    if doc is None:
        raise HTTPException(status_code=404, detail="Note not found")
    return doc


@router.put("/{note_id}", response_model=Note)
async def api_notes_put(note_id: str, payload: NoteIn, storage: StorageManager = Depends(get_storage)):
    # full overwrite; creates the note when the id is new
    return await storage.save_note(Note(id=note_id, **payload.model_dump()))


@router.delete("/{note_id}", status_code=204)
async def api_notes_delete(note_id: str, storage: StorageManager = Depends(get_storage)):
    await storage.delete_note(note_id)
    return Response(status_code=204)
