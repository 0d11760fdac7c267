from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, URL


@lru_cache(maxsize=1)
def _repo_root() -> Path:
    # Prefer APP_STATE_DIR (tests set this per-test), then REPO_ROOT
    env_root = os.getenv("APP_STATE_DIR") or os.getenv("REPO_ROOT")
    if env_root:
        p = Path(env_root)
        p.mkdir(parents=True, exist_ok=True)
        return p

    # Default to the working directory. If not writable, use /tmp.
    p = Path.cwd()
    try:
        (p / ".write_test").write_text("ok", encoding="utf-8")
        (p / ".write_test").unlink(missing_ok=True)
        return p
    except OSError:
        tmp = Path("/tmp/org-notes")
        tmp.mkdir(parents=True, exist_ok=True)
        return tmp


def _reset_repo_root_cache_for_tests() -> None:
    _repo_root.cache_clear()


def _state_dir(repo_root: Path | str | None = None) -> Path:
    return Path(repo_root) if repo_root is not None else _repo_root()


def _notes_db_path(repo_root: Path | str | None = None) -> Path:
    db_path = _state_dir(repo_root) / "notes.db"
    # SQLite will not create missing parent directories itself
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


def _database_url(repo_root: Path | str | None = None) -> str:
    """
    If DATABASE_URL is set, return it verbatim.
    Otherwise, return a portable SQLite URL pointing to notes.db under the
    given repo_root (or the cached _repo_root() if None).
    """
    url = (os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url

    db_path = _notes_db_path(repo_root)
    # Use URL.create to avoid Windows backslash issues and to set options cleanly
    url_obj = URL.create(
        "sqlite",
        database=db_path.as_posix(),
        # connections are used from worker threads (asyncio.to_thread)
        query={"check_same_thread": "false"},
    )
    return url_obj.render_as_string(hide_password=False)


def _notes_dir(repo_root: Path | str | None = None) -> Path:
    override = (os.getenv("NOTES_DIR") or "").strip()
    if override:
        return Path(override)
    return _state_dir(repo_root) / "notes"


def _strict_reads() -> bool:
    return str(os.getenv("NOTES_STRICT_READS", "")).strip().lower() in {"on", "1", "true", "yes"}


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _create_engine(url: str) -> Engine:
    engine = create_engine(url, future=True)
    if engine.dialect.name == "sqlite":
        # SQLite's built-in lower() only folds ASCII
        @event.listens_for(engine, "connect")
        def _register_lower(dbapi_conn, _record):
            dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)

    return engine
