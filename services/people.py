"""People search by overlapping (expanded) interests or shared favorite locations."""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.favorite import FavoriteLocation
from models.user import User
from services.directory import UserDirectory
from services.errors import Failure
from services.favorites import favorite_location_ids
from services.interests import InterestExpander, get_expander
from services.matching import interacted_user_ids
from services.pagination import Page, paginate, validate_pagination


@dataclass(frozen=True)
class PersonMatch:
    user: User
    shared_interests: list[str]


@dataclass(frozen=True)
class PersonByLocations:
    user: User
    shared_location_ids: list[int]


class PeopleSearch:
    def __init__(
        self, db: AsyncSession, expander: InterestExpander | None = None, directory: UserDirectory | None = None
    ) -> None:
        self.db = db
        self.expander = expander or get_expander()
        self.directory = directory or UserDirectory(db)

    async def search(self, user_id: int, page: int = 1, page_size: int = 20) -> Page[PersonMatch] | Failure:
        """
        Find users sharing at least one expanded interest with the caller.

        Excludes the caller, users already liked or disliked by the caller,
        and blocked users. Ordered by overlap size, then username.
        """
        validate_pagination(page, page_size)

        profile = await self.directory.resolve(user_id)
        if profile is None:
            return Failure.not_found(f"User {user_id} not found")

        mine = self.expander.expand_keys(profile.interests)
        if not mine:
            return paginate([], page, page_size)

        excluded = {user_id} | profile.blocked | await interacted_user_ids(self.db, user_id)
        candidates = await self.directory.list_active(exclude=excluded)

        found: list[PersonMatch] = []
        for candidate in candidates:
            shared = mine & self.expander.expand_keys(candidate.interests)
            if shared:
                found.append(PersonMatch(user=candidate, shared_interests=sorted(shared)))

        found.sort(key=lambda item: (-len(item.shared_interests), item.user.username.lower(), item.user.id))
        return paginate(found, page, page_size)

    async def search_by_locations(
        self, user_id: int, page: int = 1, page_size: int = 20
    ) -> Page[PersonByLocations] | Failure:
        """
        Find users who saved at least one of the caller's favorite locations.

        Same exclusions as ``search``. Ordered by number of shared
        favorites, then username.
        """
        validate_pagination(page, page_size)

        profile = await self.directory.resolve(user_id)
        if profile is None:
            return Failure.not_found(f"User {user_id} not found")

        mine = await favorite_location_ids(self.db, user_id)
        if not mine:
            return paginate([], page, page_size)

        excluded = {user_id} | profile.blocked | await interacted_user_ids(self.db, user_id)
        result = await self.db.execute(
            select(User, FavoriteLocation.location_id)
            .join(FavoriteLocation, FavoriteLocation.user_id == User.id)
            .where(
                FavoriteLocation.location_id.in_(list(mine)),
                User.id.not_in(list(excluded)),
                User.is_active.is_(True),
            )
        )

        users: dict[int, User] = {}
        shared: dict[int, set[int]] = {}
        for user, location_id in result.all():
            users[user.id] = user
            shared.setdefault(user.id, set()).add(location_id)

        found = [PersonByLocations(user=users[uid], shared_location_ids=sorted(ids)) for uid, ids in shared.items()]
        found.sort(key=lambda item: (-len(item.shared_location_ids), item.user.username.lower(), item.user.id))
        return paginate(found, page, page_size)
