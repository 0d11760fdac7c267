# services/notes/tools/storage_init.py
"""Prepare the notes storage for a state directory and optionally switch backend.

    python -m services.notes.tools.storage_init [--type table|file] [--state-dir DIR]
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from services.notes.core import shared
from services.notes.core.errors import StorageError
from services.notes.models.note import StorageType
from services.notes.storage.manager import StorageManager


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    p.add_argument("--type", dest="storage_type", choices=[t.value for t in StorageType],
                   help="switch the active backend (notes are not migrated)")
    p.add_argument("--state-dir", type=Path, default=None,
                   help="directory holding settings.json, notes.db and notes/ (default: APP_STATE_DIR/REPO_ROOT/cwd)")
    return p


async def _run(state_dir: Path, storage_type: Optional[str]) -> StorageType:
    manager = StorageManager.for_state_dir(state_dir)
    await manager.init()
    if storage_type:
        # logs the no-migration warning when the type actually changes
        await manager.switch_storage_type(storage_type)
    return manager.get_current_storage_type()


def main(argv: Optional[List[str]] = None) -> int:
    args = _parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    state_dir = args.state_dir if args.state_dir is not None else shared._repo_root()
    try:
        active = asyncio.run(_run(state_dir, args.storage_type))
    except StorageError as e:
        print(f"[storage_init] ERROR: {e}", file=sys.stderr)
        return 1
    print(f"[storage_init] active storage: {active.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
