"""
Storage coordinator.

Owns exactly one active notes backend, persists which one the user picked and
exposes the CRUD + search surface callers use. Switching backends changes what
is visible; it never copies notes from one backend to the other.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Protocol

from services.notes.core.errors import MediumIOError, ValidationError
from services.notes.core.settings import STORAGE_TYPE_KEY, JsonSettingsStore
from services.notes.models.note import DEFAULT_STORAGE_TYPE, Note, SearchField, StorageType
from services.notes.repo.base import NotesRepo, is_blank, parse_field
from services.notes.repo.factory import RepoFactory, repo_factory

logger = logging.getLogger(__name__)

NO_MIGRATION_WARNING = (
    "Notes are not migrated between storage types. Notes saved under "
    "'{old}' stay there and are hidden until you switch back to it."
)


class SettingsStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...


class StorageManager:
    def __init__(self, settings: SettingsStore, factory: RepoFactory):
        self._settings = settings
        self._factory = factory
        self._repo: Optional[NotesRepo] = None
        self._storage_type: StorageType = DEFAULT_STORAGE_TYPE
        self._lock = asyncio.Lock()

    @classmethod
    def for_state_dir(cls, state_dir: Path) -> "StorageManager":
        return cls(JsonSettingsStore(state_dir), repo_factory(state_dir))

    @property
    def ready(self) -> bool:
        return self._repo is not None

    # ---------- selection ----------

    async def init(self) -> None:
        async with self._lock:
            raw = await asyncio.to_thread(self._settings.get_item, STORAGE_TYPE_KEY)
            saved = StorageType.parse(raw)
            if raw and saved is None:
                logger.warning("unknown persisted storage type %r; using %s", raw, DEFAULT_STORAGE_TYPE.value)
            await self._activate(saved or self._storage_type)

    async def _activate(self, storage_type: StorageType) -> None:
        if self._repo is not None and self._storage_type is storage_type:
            return
        repo = self._factory(storage_type)
        # a failing init leaves the previous backend and selection in place
        await repo.init()
        # persist before swapping so the saved choice always names the live backend
        try:
            await asyncio.to_thread(self._settings.set_item, STORAGE_TYPE_KEY, storage_type.value)
        except OSError as e:
            raise MediumIOError(f"cannot persist storage type {storage_type.value!r}: {e}") from e
        self._repo = repo
        self._storage_type = storage_type
        logger.info("notes storage active: %s", storage_type.value)

    async def switch_storage_type(self, new_type: StorageType | str) -> bool:
        """Make new_type the active backend. Returns False if it already was."""
        target = StorageType.parse(new_type)
        if target is None:
            raise ValidationError(f"unknown storage type: {new_type!r}")
        if self._repo is None:
            await self.init()
        async with self._lock:
            if self._storage_type is target:
                return False
            previous = self._storage_type
            await self._activate(target)
        logger.warning(NO_MIGRATION_WARNING.format(old=previous.value))
        return True

    def get_current_storage_type(self) -> StorageType:
        return self._storage_type

    async def _active(self) -> NotesRepo:
        if self._repo is None:
            await self.init()
        return self._repo

    # ---------- delegated notes API ----------

    async def get_notes(self) -> List[Note]:
        repo = await self._active()
        return await repo.get_all()

    async def get_note_by_id(self, note_id: str) -> Optional[Note]:
        repo = await self._active()
        return await repo.get_by_id(note_id)

    async def save_note(self, note: Note) -> Note:
        repo = await self._active()
        return await repo.save(note)

    async def delete_note(self, note_id: str) -> None:
        repo = await self._active()
        await repo.delete(note_id)

    async def search_notes(self, query: str, field: SearchField | str = SearchField.ALL) -> List[Note]:
        field = parse_field(field)
        if is_blank(query):
            return await self.get_notes()
        repo = await self._active()
        return await repo.search(query, field)
