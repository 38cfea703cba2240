from __future__ import annotations

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("INTERNAL_API_SECRET", "test-internal-secret")
os.environ.setdefault("ENVIRONMENT", "test")

import httpx
import pytest
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from core.db import Base
from core.security import sign_body
from models.location import Location
from models.user import User
from services.notifications import NotificationCenter


class RecordingQueue:
    """Stands in for the Redis delivery stream."""

    def __init__(self, fail: bool = False) -> None:
        self.ids: list[int] = []
        self.fail = fail

    async def __call__(self, notification_id: int) -> str:
        if self.fail:
            raise ConnectionError("redis unavailable")
        self.ids.append(notification_id)
        return f"{len(self.ids)}-0"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def queue():
    return RecordingQueue()


@pytest.fixture
def notifications(db, queue):
    return NotificationCenter(db, enqueue=queue)


async def add_user(db, user_id, username=None, interests=(), region=None, is_active=True):
    user = User(
        id=user_id,
        username=username or f"user{user_id}",
        interests=list(interests),
        region=region,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    return user


async def add_location(db, name, category, subcategories=(), coordinates="47.2357,39.7015", region=None, rating=None):
    location = Location(
        name=name,
        coordinates=coordinates,
        category=category,
        subcategories=list(subcategories),
        region=region,
        rating=rating,
    )
    db.add(location)
    await db.commit()
    return location


def signed_headers(user_id: int, body: bytes = b"") -> dict[str, str]:
    return {
        "X-User-Id": str(user_id),
        "X-Signature": sign_body(body, os.environ["INTERNAL_API_SECRET"]),
        "Content-Type": "application/json",
    }


@pytest.fixture
async def client(session_factory, queue):
    from apps.api.deps import get_db, get_notification_center
    from apps.api.main import app

    async def _get_db():
        async with session_factory() as session:
            yield session

    def _get_notification_center(session: AsyncSession = Depends(get_db)):
        return NotificationCenter(session, enqueue=queue)

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_notification_center] = _get_notification_center

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
