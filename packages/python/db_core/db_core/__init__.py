"""Minimal MongoDB helpers shared across domain repositories.

Example usage in a domain repository:

    from db_core import get_db

    async def list_items():
        db = get_db()
        cursor = db["ideas"].find({"owner_id": "user-123"}).sort("rank", 1)
        return await cursor.to_list(length=100)

Blocking code (scripts, maintenance jobs) uses ``get_sync_db`` instead.
"""

from .settings import MongoSettings, configure, get_settings, mask_uri, settings
from .mongo import get_db, get_mongo_client, get_sync_client, get_sync_db, ping, ping_sync, reset_clients
from .typing import MongoDocument, MongoFilter, RawDocument, SortLike, SortSpec

__all__ = [
    "MongoSettings",
    "settings",
    "configure",
    "get_settings",
    "mask_uri",
    "get_mongo_client",
    "get_sync_client",
    "get_db",
    "get_sync_db",
    "reset_clients",
    "ping",
    "ping_sync",
    "MongoDocument",
    "MongoFilter",
    "RawDocument",
    "SortLike",
    "SortSpec",
]
