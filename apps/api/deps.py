"""FastAPI dependencies."""

from collections.abc import AsyncGenerator

import redis.asyncio as redis
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.db import get_db as _get_db
from core.redis import get_redis as _get_redis
from services.matching import MatchingEngine
from services.notifications import NotificationCenter
from services.favorites import FavoritesService
from services.people import PeopleSearch
from services.suggestions import LocationSuggestionWorkflow


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async for session in _get_db():
        yield session


async def get_redis_client() -> redis.Redis:
    """Get Redis client dependency."""
    return await _get_redis()


def get_notification_center(db: AsyncSession = Depends(get_db)) -> NotificationCenter:
    return NotificationCenter(db)


def get_matching_engine(
    db: AsyncSession = Depends(get_db), notifications: NotificationCenter = Depends(get_notification_center)
) -> MatchingEngine:
    return MatchingEngine(db, notifications)


def get_people_search(db: AsyncSession = Depends(get_db)) -> PeopleSearch:
    return PeopleSearch(db)


def get_suggestion_workflow(
    db: AsyncSession = Depends(get_db), notifications: NotificationCenter = Depends(get_notification_center)
) -> LocationSuggestionWorkflow:
    return LocationSuggestionWorkflow(db, notifications)


def get_favorites_service(db: AsyncSession = Depends(get_db)) -> FavoritesService:
    return FavoritesService(db)
