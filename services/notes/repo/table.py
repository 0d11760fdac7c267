# services/notes/repo/table.py
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from sqlalchemy import (
    MetaData, Table, Column, String, select, delete as sa_delete, desc, func, or_,
)
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from services.notes.core.errors import MediumIOError, NotInitializedError, StorageInitError
from services.notes.core.shared import _create_engine
from services.notes.db import dsn_summary, normalize_db_url
from services.notes.models.note import Note, SearchField, StorageType
from services.notes.repo.base import is_blank, parse_field, prepare_for_save

logger = logging.getLogger(__name__)

_NOTES_METADATA = MetaData()

_NOTES_TABLE = Table(
    "notes",
    _NOTES_METADATA,
    Column("id", String, primary_key=True),
    Column("title", String, nullable=False),
    Column("content", String, nullable=False),
    Column("date", String, nullable=False),   # YYYY-MM-DD
    Column("time", String, nullable=False),   # HH:MM
)

_NOTE_COLUMNS = ("title", "content", "date", "time")

# Dialects with a native single-statement upsert
_UPSERT_BUILDERS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


def ensure_notes_schema(engine: Engine) -> None:
    _NOTES_METADATA.create_all(engine)


def _newest_first(stmt):
    return stmt.order_by(desc(_NOTES_TABLE.c.date), desc(_NOTES_TABLE.c.time))


class TableNotesRepo:
    """Notes in a single relational table; filtering and ordering run in SQL."""

    storage_type = StorageType.TABLE

    def __init__(self, url: str):
        self.url = url
        self.engine: Optional[Engine] = None

    # ---------- lifecycle ----------

    async def init(self) -> None:
        await asyncio.to_thread(self._init_sync)

    def _init_sync(self) -> None:
        try:
            engine = self.engine or _create_engine(normalize_db_url(self.url))
        except (SQLAlchemyError, ImportError) as e:
            raise StorageInitError(f"cannot open notes table at {dsn_summary(self.url)}: {e}") from e
        try:
            if engine.dialect.name not in _UPSERT_BUILDERS:
                raise StorageInitError(f"unsupported database dialect: {engine.dialect.name}")
            ensure_notes_schema(engine)
        except (StorageInitError, SQLAlchemyError, OSError) as e:
            if engine is not self.engine:
                engine.dispose()
            if isinstance(e, StorageInitError):
                raise
            raise StorageInitError(f"cannot open notes table at {dsn_summary(self.url)}: {e}") from e
        if self.engine is None:
            logger.info("table store ready at %s", dsn_summary(self.url))
        self.engine = engine

    def _require_engine(self) -> Engine:
        if self.engine is None:
            raise NotInitializedError("table store used before init()")
        return self.engine

    # ---------- reads ----------

    async def get_all(self) -> List[Note]:
        return await asyncio.to_thread(self._fetch_all, _newest_first(select(_NOTES_TABLE)))

    async def get_by_id(self, note_id: str) -> Optional[Note]:
        rows = await asyncio.to_thread(
            self._fetch_all, select(_NOTES_TABLE).where(_NOTES_TABLE.c.id == note_id)
        )
        return rows[0] if rows else None

    async def search(self, query: str, field: SearchField | str = SearchField.ALL) -> List[Note]:
        field = parse_field(field)
        if is_blank(query):
            return await self.get_all()
        needle = query.lower()
        if field is SearchField.ALL:
            columns = _NOTE_COLUMNS
        else:
            columns = (field.value,)
        predicate = or_(
            *(
                func.lower(_NOTES_TABLE.c[name], type_=String).contains(needle, autoescape=True)
                for name in columns
            )
        )
        stmt = _newest_first(select(_NOTES_TABLE).where(predicate))
        return await asyncio.to_thread(self._fetch_all, stmt)

    def _fetch_all(self, stmt) -> List[Note]:
        engine = self._require_engine()
        try:
            with engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as e:
            raise MediumIOError(f"notes query failed: {e}") from e
        return [Note.model_validate(dict(row)) for row in rows]

    # ---------- writes ----------

    async def save(self, note: Note) -> Note:
        stored = prepare_for_save(note)
        await asyncio.to_thread(self._upsert, stored)
        return stored

    def _upsert(self, note: Note) -> None:
        engine = self._require_engine()
        build = _UPSERT_BUILDERS[engine.dialect.name]
        stmt = build(_NOTES_TABLE).values(**note.model_dump())
        stmt = stmt.on_conflict_do_update(
            index_elements=[_NOTES_TABLE.c.id],
            set_={name: stmt.excluded[name] for name in _NOTE_COLUMNS},
        )
        try:
            with engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as e:
            raise MediumIOError(f"saving note {note.id} failed: {e}") from e

    async def delete(self, note_id: str) -> None:
        await asyncio.to_thread(self._delete, note_id)

    def _delete(self, note_id: str) -> None:
        engine = self._require_engine()
        try:
            with engine.begin() as conn:
                conn.execute(sa_delete(_NOTES_TABLE).where(_NOTES_TABLE.c.id == note_id))
        except SQLAlchemyError as e:
            raise MediumIOError(f"deleting note {note_id} failed: {e}") from e
