import asyncio
from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from services.notes.core import shared
from services.notes.core.errors import StorageInitError
from services.notes.repo.table import TableNotesRepo, _NOTES_TABLE, ensure_notes_schema
from services.notes.tests.utils import make_note


def test_ensure_notes_schema_creates_table(tmp_path: Path):
    db_file = tmp_path / "notes.db"
    engine = create_engine(f"sqlite+pysqlite:///{db_file}", future=True)

    insp = inspect(engine)
    assert "notes" not in insp.get_table_names()

    ensure_notes_schema(engine)

    insp = inspect(engine)
    assert "notes" in insp.get_table_names()
    cols = {c["name"]: c for c in insp.get_columns("notes")}
    assert list(cols) == ["id", "title", "content", "date", "time"]
    assert insp.get_pk_constraint("notes")["constrained_columns"] == ["id"]


def test_default_url_points_at_state_dir(tmp_path):
    url = shared._database_url(tmp_path)
    assert url.startswith("sqlite:///")
    assert url.split("?")[0].endswith("/notes.db")


def test_database_url_env_wins(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///elsewhere.db")
    assert shared._database_url(tmp_path) == "sqlite:///elsewhere.db"


def test_upsert_leaves_one_row_per_id(table_repo):
    async def scenario():
        await table_repo.init()
        for i in range(5):
            await table_repo.save(make_note(id="dup", title=f"v{i}"))

    asyncio.run(scenario())
    with table_repo.engine.connect() as conn:
        rows = conn.execute(select(_NOTES_TABLE)).all()
    assert len(rows) == 1
    assert rows[0].title == "v4"


def test_data_survives_a_new_repo_instance(tmp_path):
    url = shared._database_url(tmp_path)

    async def write():
        repo = TableNotesRepo(url)
        await repo.init()
        return await repo.save(make_note(title="persisted"))

    async def read(note_id):
        repo = TableNotesRepo(url)
        await repo.init()
        return await repo.get_by_id(note_id)

    saved = asyncio.run(write())
    assert asyncio.run(read(saved.id)) == saved


def test_init_fails_for_unreachable_database(tmp_path):
    missing_parent = tmp_path / "no" / "such" / "dir" / "notes.db"
    repo = TableNotesRepo(f"sqlite:///{missing_parent.as_posix()}")
    with pytest.raises(StorageInitError):
        asyncio.run(repo.init())
    assert repo.engine is None


def test_init_rejects_dialect_without_upsert(tmp_path, monkeypatch):
    import services.notes.repo.table as table_mod

    monkeypatch.setattr(table_mod, "_UPSERT_BUILDERS", {"postgresql": table_mod.pg_insert})
    repo = TableNotesRepo(shared._database_url(tmp_path))
    with pytest.raises(StorageInitError):
        asyncio.run(repo.init())


def test_failed_schema_setup_disposes_engine(tmp_path, monkeypatch):
    import services.notes.repo.table as table_mod

    created, disposed = [], []
    real_create = table_mod._create_engine

    def tracking_create(url):
        engine = real_create(url)
        created.append(engine)
        return engine

    def broken_schema(engine):
        raise OperationalError("CREATE TABLE notes", {}, Exception("disk I/O error"))

    monkeypatch.setattr(table_mod, "_create_engine", tracking_create)
    monkeypatch.setattr(table_mod, "ensure_notes_schema", broken_schema)
    monkeypatch.setattr(Engine, "dispose", lambda self, close=True: disposed.append(self))

    repo = TableNotesRepo(shared._database_url(tmp_path))
    with pytest.raises(StorageInitError):
        asyncio.run(repo.init())
    assert repo.engine is None
    assert len(created) == 1 and disposed == created
