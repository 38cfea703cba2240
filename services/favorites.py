"""Saved (favorite) locations and the people who share them."""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Insert, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.db import insert_or_ignore
from models.favorite import FavoriteLocation
from models.location import Location
from models.user import User
from services.directory import LocationCatalog, UserDirectory
from services.errors import Failure, ValidationError
from services.pagination import Page, paginate, validate_pagination

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 500


@dataclass(frozen=True)
class SavedLocation:
    favorite: FavoriteLocation
    location: Location


def favorite_row(db: AsyncSession, user_id: int, location_id: int, notes: str | None = None) -> Insert:
    """Insert-or-ignore statement for one favorite; callers control the transaction."""
    return insert_or_ignore(
        db,
        FavoriteLocation,
        ["user_id", "location_id"],
        user_id=user_id,
        location_id=location_id,
        notes=notes,
        created_at=datetime.utcnow(),
    )


async def favorite_location_ids(db: AsyncSession, user_id: int) -> set[int]:
    result = await db.execute(select(FavoriteLocation.location_id).where(FavoriteLocation.user_id == user_id))
    return {row[0] for row in result.all()}


class FavoritesService:
    """Per-user favorite locations."""

    def __init__(
        self, db: AsyncSession, directory: UserDirectory | None = None, catalog: LocationCatalog | None = None
    ) -> None:
        self.db = db
        self.directory = directory or UserDirectory(db)
        self.catalog = catalog or LocationCatalog(db)

    async def list_for(self, user_id: int) -> list[SavedLocation]:
        """User's favorites, most recently saved first."""
        result = await self.db.execute(
            select(FavoriteLocation, Location)
            .join(Location, Location.id == FavoriteLocation.location_id)
            .where(FavoriteLocation.user_id == user_id)
            .order_by(FavoriteLocation.created_at.desc(), FavoriteLocation.location_id.desc())
        )
        return [SavedLocation(favorite=favorite, location=location) for favorite, location in result.all()]

    async def add(self, user_id: int, location_id: int, notes: str | None = None) -> SavedLocation | Failure:
        """
        Save a location.

        Returns:
            The saved location, not_found for an unknown user or location,
            or conflict when it is already a favorite

        Raises:
            ValidationError: If notes exceed 500 characters
        """
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationError(f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")

        if not await self.directory.existing_ids([user_id]):
            return Failure.not_found(f"User {user_id} not found")
        location = await self.catalog.get(location_id)
        if location is None:
            return Failure.not_found(f"Location {location_id} not found")

        stmt = favorite_row(self.db, user_id, location_id, notes).returning(FavoriteLocation.location_id)
        inserted = (await self.db.execute(stmt)).scalar_one_or_none()
        await self.db.commit()
        if inserted is None:
            return Failure.conflict("Location is already in favorites")

        logger.info(f"User {user_id} saved location {location_id}")
        favorite = await self.db.scalar(
            select(FavoriteLocation).where(
                FavoriteLocation.user_id == user_id, FavoriteLocation.location_id == location_id
            )
        )
        return SavedLocation(favorite=favorite, location=location)

    async def remove(self, user_id: int, location_id: int) -> bool | Failure:
        result = await self.db.execute(
            delete(FavoriteLocation).where(
                FavoriteLocation.user_id == user_id, FavoriteLocation.location_id == location_id
            )
        )
        await self.db.commit()
        if result.rowcount == 0:
            return Failure.not_found(f"Location {location_id} is not in favorites")
        logger.info(f"User {user_id} removed location {location_id} from favorites")
        return True

    async def companions(self, user_id: int, location_id: int, page: int = 1, page_size: int = 20) -> Page[User] | Failure:
        """
        Other active users who saved the location, ordered by username.

        Users blocked in either direction are left out.

        Raises:
            ValidationError: If page < 1 or page_size is outside [1, 100]
        """
        validate_pagination(page, page_size)

        profile = await self.directory.resolve(user_id)
        if profile is None:
            return Failure.not_found(f"User {user_id} not found")
        if await self.catalog.get(location_id) is None:
            return Failure.not_found(f"Location {location_id} not found")

        result = await self.db.execute(
            select(User)
            .join(FavoriteLocation, FavoriteLocation.user_id == User.id)
            .where(
                FavoriteLocation.location_id == location_id,
                User.id != user_id,
                User.is_active.is_(True),
            )
        )
        users = [user for user in result.scalars().all() if user.id not in profile.blocked]
        users.sort(key=lambda user: (user.username.lower(), user.id))
        return paginate(users, page, page_size)
