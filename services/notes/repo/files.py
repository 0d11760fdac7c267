# services/notes/repo/files.py
from __future__ import annotations

import asyncio
import logging
import tempfile
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError as SchemaError

from services.notes.core.errors import (
    MediumIOError, NotInitializedError, StorageInitError, ValidationError,
)
from services.notes.models.note import Note, SearchField, StorageType
from services.notes.repo.base import (
    is_blank, note_matches, parse_field, prepare_for_save, sort_newest_first,
)

logger = logging.getLogger(__name__)

_SUFFIX = ".json"


def _safe_name(note_id: str) -> bool:
    # ids become file names; anything that could leave the directory is rejected
    if not note_id or "\x00" in note_id or note_id.startswith("."):
        return False
    return Path(note_id).name == note_id


class FileNotesRepo:
    """
    One JSON file per note (<id>.json) inside a single directory.

    Reads are lenient: a note that cannot be parsed is logged and skipped by
    get_all() and reported as missing by get_by_id(). Pass strict=True to make
    get_by_id() raise MediumIOError for corrupt files instead.
    """

    storage_type = StorageType.FILE

    def __init__(self, root_dir: Path, strict: bool = False):
        self.root_dir = Path(root_dir)
        self.strict = strict
        self._ready = False

    async def init(self) -> None:
        await asyncio.to_thread(self._init_sync)

    def _init_sync(self) -> None:
        try:
            self.root_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageInitError(f"cannot create notes directory {self.root_dir}: {e}") from e
        if not self._ready:
            logger.info("file store ready at %s", self.root_dir)
        self._ready = True

    def _require_ready(self) -> None:
        if not self._ready:
            raise NotInitializedError("file store used before init()")

    def _path(self, note_id: str) -> Path:
        return self.root_dir / f"{note_id}{_SUFFIX}"

    @staticmethod
    def _read(path: Path) -> Note:
        return Note.model_validate_json(path.read_text(encoding="utf-8"))

    # ---------- reads ----------

    async def get_all(self) -> List[Note]:
        return await asyncio.to_thread(self._get_all_sync)

    def _get_all_sync(self) -> List[Note]:
        self._require_ready()
        try:
            paths = sorted(p for p in self.root_dir.iterdir() if p.suffix == _SUFFIX and p.is_file())
        except OSError as e:
            raise MediumIOError(f"cannot list {self.root_dir}: {e}") from e
        notes: List[Note] = []
        for path in paths:
            try:
                notes.append(self._read(path))
            except (OSError, UnicodeDecodeError, SchemaError) as e:
                logger.warning("skipping unreadable note file %s: %s", path.name, e)
        return sort_newest_first(notes)

    async def get_by_id(self, note_id: str) -> Optional[Note]:
        return await asyncio.to_thread(self._get_by_id_sync, note_id)

    def _get_by_id_sync(self, note_id: str) -> Optional[Note]:
        self._require_ready()
        if not _safe_name(note_id):
            return None
        path = self._path(note_id)
        try:
            return self._read(path)
        except FileNotFoundError:
            logger.debug("note %s not found in %s", note_id, self.root_dir)
            return None
        except (OSError, UnicodeDecodeError, SchemaError) as e:
            if self.strict:
                raise MediumIOError(f"note file {path.name} is unreadable: {e}") from e
            logger.warning("error reading note file %s: %s", path.name, e)
            return None

    async def search(self, query: str, field: SearchField | str = SearchField.ALL) -> List[Note]:
        field = parse_field(field)
        notes = await self.get_all()
        if is_blank(query):
            return notes
        return [n for n in notes if note_matches(n, query, field)]

    # ---------- writes ----------

    async def save(self, note: Note) -> Note:
        stored = prepare_for_save(note)
        if not _safe_name(stored.id):
            raise ValidationError(f"note id {stored.id!r} cannot be used as a file name")
        await asyncio.to_thread(self._write, stored)
        return stored

    def _write(self, note: Note) -> None:
        self._require_ready()
        tmp = None
        try:
            # whole-file replace: write a sibling temp file, then swap it in
            with tempfile.NamedTemporaryFile(
                "w", delete=False, dir=str(self.root_dir), suffix=".tmp", encoding="utf-8"
            ) as fh:
                tmp = Path(fh.name)
                fh.write(note.model_dump_json())
            tmp.replace(self._path(note.id))
            tmp = None
        except OSError as e:
            raise MediumIOError(f"saving note {note.id} failed: {e}") from e
        finally:
            if tmp is not None:
                tmp.unlink(missing_ok=True)

    async def delete(self, note_id: str) -> None:
        await asyncio.to_thread(self._delete, note_id)

    def _delete(self, note_id: str) -> None:
        self._require_ready()
        if not _safe_name(note_id):
            return
        path = self._path(note_id)
        if not path.exists():
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise MediumIOError(f"deleting note {note_id} failed: {e}") from e
