"""Storefront settings: theme, branding and contact details.

One document under a fixed key. ``initialize()`` runs at startup and is an
idempotent upsert; reads go through the same upsert so a wiped collection
heals itself instead of failing.
"""

from typing import Any, Dict

import structlog
from pymongo import ReturnDocument
from pymongo.database import Database

from database import now, serialize_doc
from schemas import THEME_FIELDS, SiteSettings

logger = structlog.get_logger(__name__)

SETTINGS_KEY = "site"


class SiteSettingsStore:
    def __init__(self, db: Database):
        self.collection = db["settings"]

    def _defaults(self) -> Dict[str, Any]:
        return SiteSettings().model_dump(by_alias=True)

    def initialize(self) -> Dict[str, Any]:
        document = self.collection.find_one_and_update(
            {"_id": SETTINGS_KEY},
            {"$setOnInsert": {**self._defaults(), "createdAt": now(), "updatedAt": now()}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return serialize_doc(document)

    def get(self) -> Dict[str, Any]:
        return self.initialize()

    def update(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        known = set(self._defaults())
        changes = {k: v for k, v in changes.items() if k in known}
        self.initialize()
        document = self.collection.find_one_and_update(
            {"_id": SETTINGS_KEY},
            {"$set": {**changes, "updatedAt": now()}},
            return_document=ReturnDocument.AFTER,
        )
        logger.info("Settings updated", fields=sorted(changes))
        return serialize_doc(document)

    def reset_theme(self) -> Dict[str, Any]:
        """Restore theme colors and font; branding and contact details are kept."""
        return self.update(SiteSettings().model_dump(by_alias=True, include=set(THEME_FIELDS)))
