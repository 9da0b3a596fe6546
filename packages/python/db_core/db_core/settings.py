"""Configuration helpers for MongoDB connections used by db_core.

Values are read from ``MONGO_*`` environment variables (or a ``.env`` file).
Applications can call ``configure`` at startup, before the first call to
``get_db`` / ``get_sync_db``, to override the defaults.
"""
from __future__ import annotations

from typing import Any, Optional

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict


class MongoSettings(BaseSettings):
    """Basic MongoDB configuration that domain apps can extend if needed."""

    model_config = SettingsConfigDict(env_prefix="MONGO_", env_file=".env", extra="ignore")

    uri: str = "mongodb://mongo_default:27017"
    db_name: str = "ideas"
    server_selection_timeout_ms: int = 5000
    app_name: Optional[str] = None
    uuid_representation: str = "standard"

    def client_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "serverSelectionTimeoutMS": self.server_selection_timeout_ms,
            "uuidRepresentation": self.uuid_representation,
        }
        if self.app_name:
            kwargs["appname"] = self.app_name
        return kwargs


def mask_uri(uri: str) -> str:
    """Hide the password part of a MongoDB URI for safe logging."""

    if "://" not in uri or "@" not in uri:
        return uri
    scheme, rest = uri.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    if ":" not in credentials:
        return uri
    username = credentials.split(":", 1)[0]
    return f"{scheme}://{username}:***@{host}"


def get_settings() -> "MongoSettings":
    """Return the active settings, including any applied by ``configure``."""

    return settings


def _default_settings() -> "MongoSettings":
    return MongoSettings()


settings: MongoSettings = _default_settings()
logger.info(f"MongoSettings initialized with uri={mask_uri(settings.uri)} db_name={settings.db_name}")


def configure(new_settings: Optional[MongoSettings] = None, **overrides: Any) -> MongoSettings:
    """Replace the active settings and drop any cached clients."""

    global settings
    base = new_settings or settings
    settings = base.model_copy(update=overrides) if overrides else base

    from .mongo import reset_clients

    reset_clients()
    logger.info(f"MongoSettings reconfigured with uri={mask_uri(settings.uri)} db_name={settings.db_name}")
    return settings
