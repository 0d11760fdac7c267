import pytest
import services.notes.core.shared as shared
from services.notes.repo.files import FileNotesRepo
from services.notes.repo.table import TableNotesRepo
from services.notes.storage.manager import StorageManager

_ENV_KEYS = ("APP_STATE_DIR", "REPO_ROOT", "DATABASE_URL", "NOTES_DIR", "NOTES_STRICT_READS")


@pytest.fixture(autouse=True)
def isolate_env_and_cache(monkeypatch):
    # Ensure env vars do not leak into tests
    for k in _ENV_KEYS:
        monkeypatch.delenv(k, raising=False)
    # Clear the shared module repo-root cache before each test
    shared._reset_repo_root_cache_for_tests()
    yield
    for k in _ENV_KEYS:
        monkeypatch.delenv(k, raising=False)
    shared._reset_repo_root_cache_for_tests()


@pytest.fixture
def repo_root(tmp_path, monkeypatch):
    """
    Fixture that provides a temporary state directory and sets it in the environment.
    """
    monkeypatch.setenv("REPO_ROOT", str(tmp_path))
    shared._reset_repo_root_cache_for_tests()
    return tmp_path


@pytest.fixture
def table_repo(tmp_path):
    return TableNotesRepo(shared._database_url(tmp_path))


@pytest.fixture
def file_repo(tmp_path):
    return FileNotesRepo(tmp_path / "notes")


@pytest.fixture(params=["table", "file"])
def any_repo(request, tmp_path):
    if request.param == "table":
        return TableNotesRepo(shared._database_url(tmp_path))
    return FileNotesRepo(tmp_path / "notes")


@pytest.fixture
def manager(tmp_path):
    return StorageManager.for_state_dir(tmp_path)
