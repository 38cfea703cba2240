"""Shared infrastructure: settings, database, delivery queue and request signing."""

from core.config import settings
from core.db import AsyncSessionLocal, Base, engine, get_db
from core.redis import close_redis, enqueue_delivery, get_redis
from core.security import sign_body, verify_body_signature

__all__ = [
    "settings",
    "Base",
    "engine",
    "AsyncSessionLocal",
    "get_db",
    "get_redis",
    "close_redis",
    "enqueue_delivery",
    "sign_body",
    "verify_body_signature",
]
