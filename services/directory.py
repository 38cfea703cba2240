"""Read access to the user directory and the location catalog."""

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.location import Location
from models.user import User, UserBlock


@dataclass(frozen=True)
class UserProfile:
    id: int
    username: str
    interests: tuple[str, ...]
    region: str | None
    blocked: frozenset[int]  # blocked by or blocking this user


class UserDirectory:
    """Resolves user IDs to the profile data matching and suggestions need."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def resolve(self, user_id: int) -> UserProfile | None:
        user = await self.db.scalar(select(User).where(User.id == user_id, User.is_active.is_(True)))
        if user is None:
            return None

        result = await self.db.execute(
            select(UserBlock.user_id, UserBlock.blocked_id).where(
                or_(UserBlock.user_id == user_id, UserBlock.blocked_id == user_id)
            )
        )
        blocked = {other for row in result.all() for other in row if other != user_id}

        return UserProfile(
            id=user.id,
            username=user.username,
            interests=tuple(user.interests or ()),
            region=user.region,
            blocked=frozenset(blocked),
        )

    async def existing_ids(self, user_ids: Iterable[int]) -> set[int]:
        """Subset of user_ids that resolve to active users."""
        result = await self.db.execute(select(User.id).where(User.id.in_(list(user_ids)), User.is_active.is_(True)))
        return {row[0] for row in result.all()}

    async def list_active(self, exclude: Iterable[int] = ()) -> list[User]:
        query = select(User).where(User.is_active.is_(True))
        excluded = list(exclude)
        if excluded:
            query = query.where(User.id.not_in(excluded))
        result = await self.db.execute(query.order_by(User.id))
        return list(result.scalars().all())


class LocationCatalog:
    """Active catalog locations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, location_id: int) -> Location | None:
        return await self.db.scalar(select(Location).where(Location.id == location_id, Location.is_active.is_(True)))

    async def list_active(self, region: str | None = None) -> list[Location]:
        query = select(Location).where(Location.is_active.is_(True))
        if region:
            query = query.where(func.lower(Location.region) == region.strip().lower())
        result = await self.db.execute(query.order_by(Location.id))
        return list(result.scalars().all())
