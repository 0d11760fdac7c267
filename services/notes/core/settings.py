from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Defaults live here. Keep keys stable; the storage coordinator depends on them.
STORAGE_TYPE_KEY = "preferred_storage_type"

_DEFAULTS: Dict[str, Any] = {
    STORAGE_TYPE_KEY: "",                  # "" (unset) | "table" | "file"
}

def _settings_path(state_dir: Path) -> Path:
    return Path(state_dir) / "settings.json"

def load_settings(state_dir: Path) -> Dict[str, Any]:
    p = _settings_path(state_dir)
    if not p.exists():
        return _DEFAULTS.copy()
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        # corrupted file → return defaults (fail-safe)
        logger.warning("settings file %s unreadable, using defaults: %s", p, e)
        return _DEFAULTS.copy()
    # merge unknown keys conservatively
    out = _DEFAULTS.copy()
    if isinstance(data, dict):
        out.update({k: v for k, v in data.items() if k in _DEFAULTS})
    return out

def save_settings(state_dir: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
    p = _settings_path(state_dir)
    p.parent.mkdir(parents=True, exist_ok=True)
    # only persist known keys
    payload = _DEFAULTS.copy()
    payload.update({k: v for k, v in (cfg or {}).items() if k in _DEFAULTS})
    # write atomically
    tmp = p.with_name(p.name + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(p)
    return payload

def update_settings(state_dir: Path, partial: Dict[str, Any]) -> Dict[str, Any]:
    current = load_settings(state_dir)
    current.update({k: v for k, v in (partial or {}).items() if k in _DEFAULTS})
    return save_settings(state_dir, current)


class JsonSettingsStore:
    """Key-value view over settings.json, one value per key."""

    def __init__(self, state_dir: Path):
        self.state_dir = Path(state_dir)

    def get_item(self, key: str) -> Optional[str]:
        value = load_settings(self.state_dir).get(key)
        if value is None or value == "":
            return None
        # hand-edited files can hold numbers or lists; callers expect text
        return value if isinstance(value, str) else str(value)

    def set_item(self, key: str, value: str) -> None:
        update_settings(self.state_dir, {key: value})
