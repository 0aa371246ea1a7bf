from typing import Any, Dict, Literal

from fastapi import APIRouter, Depends
from pymongo.database import Database

import stats
from auth import require_admin
from database import get_db

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.post("/visit")
def track_visit(db: Database = Depends(get_db)):
    stats.record_visit(db)
    return {"success": True}


@router.get("/dashboard")
def dashboard(range: Literal["today", "week", "month"] = "today", db: Database = Depends(get_db),
              admin: Dict[str, Any] = Depends(require_admin)):
    return {"success": True, "data": stats.dashboard(db, range)}
