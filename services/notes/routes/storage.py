from __future__ import annotations

from fastapi import APIRouter, Depends

from services.notes.models.note import StorageSwitchIn, StorageTypeOut
from services.notes.routes.notes import get_storage
from services.notes.storage.manager import NO_MIGRATION_WARNING, StorageManager

router = APIRouter(prefix="/api/storage", tags=["storage"])


@router.get("", response_model=StorageTypeOut)
async def api_storage_get(storage: StorageManager = Depends(get_storage)):
    if not storage.ready:
        await storage.init()
    return StorageTypeOut(storage_type=storage.get_current_storage_type())


@router.put("", response_model=StorageTypeOut)
async def api_storage_switch(payload: StorageSwitchIn, storage: StorageManager = Depends(get_storage)):
    if not storage.ready:
        await storage.init()
    previous = storage.get_current_storage_type()
    switched = await storage.switch_storage_type(payload.storage_type)
    return StorageTypeOut(
        storage_type=storage.get_current_storage_type(),
        switched=switched,
        warning=NO_MIGRATION_WARNING.format(old=previous.value) if switched else None,
    )
