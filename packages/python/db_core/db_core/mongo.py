"""MongoDB client helpers built on top of PyMongo (blocking) and Motor (async).

Only generic utilities live here; domain repositories import these helpers and
build their own repositories and schemas on top."""

from functools import lru_cache
from typing import Any

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import MongoClient
from pymongo.database import Database

from .settings import get_settings, mask_uri


@lru_cache
def get_mongo_client() -> AsyncIOMotorClient:
    """Return a cached Motor client configured via ``db_core.settings``."""

    current = get_settings()
    logger.debug(f"Creating Motor client for {mask_uri(current.uri)}")
    return AsyncIOMotorClient(current.uri, **current.client_kwargs())


@lru_cache
def get_sync_client() -> MongoClient:
    """Return a cached blocking PyMongo client configured via ``db_core.settings``."""

    current = get_settings()
    logger.debug(f"Creating PyMongo client for {mask_uri(current.uri)}")
    return MongoClient(current.uri, **current.client_kwargs())


def get_db() -> AsyncIOMotorDatabase:
    """Return the main application database defined by ``settings.db_name``."""

    client = get_mongo_client()
    return client[get_settings().db_name]


def get_sync_db() -> Database:
    """Blocking counterpart of ``get_db``."""

    client = get_sync_client()
    return client[get_settings().db_name]


def reset_clients() -> None:
    """Close and forget cached clients so the next call picks up new settings."""

    for factory in (get_mongo_client, get_sync_client):
        if factory.cache_info().currsize:
            factory().close()
        factory.cache_clear()


async def ping() -> dict[str, Any]:
    """Run a simple ``ping`` command against the configured MongoDB server."""

    db = get_db()
    await db.command("ping")
    return {"ok": True}


def ping_sync() -> dict[str, Any]:
    db = get_sync_db()
    db.command("ping")
    return {"ok": True}
