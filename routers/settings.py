from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from pymongo.database import Database

from auth import require_admin
from database import get_db
from site_settings import SiteSettingsStore

router = APIRouter(prefix="/settings", tags=["settings"])


def get_site_settings(db: Database = Depends(get_db)) -> SiteSettingsStore:
    return SiteSettingsStore(db)


@router.get("")
def get_settings(store: SiteSettingsStore = Depends(get_site_settings)):
    return {"success": True, "data": store.get()}


@router.put("")
def update_settings(changes: Dict[str, Any] = Body(...), store: SiteSettingsStore = Depends(get_site_settings),
                    admin: Dict[str, Any] = Depends(require_admin)):
    return {"success": True, "message": "Settings updated", "data": store.update(changes)}


@router.post("/reset")
def reset_settings(store: SiteSettingsStore = Depends(get_site_settings),
                   admin: Dict[str, Any] = Depends(require_admin)):
    return {"success": True, "message": "Settings reset to defaults", "data": store.reset_theme()}
