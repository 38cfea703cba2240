"""Location suggestions: interest/region filtered candidates and accept/reject decisions."""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.db import insert_or_ignore
from core.metrics import suggestions_resolved_total
from models.location import Location
from models.notification import Notification
from models.suggestion import LocationSuggestion
from services.directory import LocationCatalog, UserDirectory
from services.errors import Failure
from services.favorites import favorite_location_ids, favorite_row
from services.interests import InterestExpander, get_expander
from services.notifications import NotificationCenter
from services.pagination import Page, paginate, validate_pagination

logger = logging.getLogger(__name__)

PENDING = "pending"
ACCEPTED = "accepted"
REJECTED = "rejected"


@dataclass(frozen=True)
class ScoredLocation:
    location: Location
    matched_tokens: int


@dataclass(frozen=True)
class Decision:
    suggestion: LocationSuggestion
    # Outcome of marking the accompanying notification read, None when no notification was given
    notification: Notification | Failure | None = None

    @property
    def notification_marked_read(self) -> bool | None:
        if self.notification is None:
            return None
        return not isinstance(self.notification, Failure)


class LocationSuggestionWorkflow:
    """Recommends locations and tracks each user's irreversible accept/reject decision."""

    def __init__(
        self,
        db: AsyncSession,
        notifications: NotificationCenter,
        expander: InterestExpander | None = None,
        directory: UserDirectory | None = None,
        catalog: LocationCatalog | None = None,
    ) -> None:
        self.db = db
        self.notifications = notifications
        self.expander = expander or get_expander()
        self.directory = directory or UserDirectory(db)
        self.catalog = catalog or LocationCatalog(db)

    async def get_suggestions(self, user_id: int, page: int = 1, page_size: int = 20) -> Page[ScoredLocation] | Failure:
        """
        Page through locations matching the user's interests and region.

        Locations the user already accepted, rejected or saved as favorites are
        excluded. Order is
        (matched interest count desc, rating desc, id asc).

        Raises:
            ValidationError: If page < 1 or page_size is outside [1, 100]
        """
        validate_pagination(page, page_size)

        profile = await self.directory.resolve(user_id)
        if profile is None:
            return Failure.not_found(f"User {user_id} not found")

        interests = self.expander.expand_keys(profile.interests)
        if not interests:
            return paginate([], page, page_size)

        resolved = await self.db.execute(
            select(LocationSuggestion.location_id).where(
                LocationSuggestion.user_id == user_id, LocationSuggestion.status.in_([ACCEPTED, REJECTED])
            )
        )
        hidden_ids = {row[0] for row in resolved.all()} | await favorite_location_ids(self.db, user_id)

        scored: list[ScoredLocation] = []
        for location in await self.catalog.list_active(region=profile.region):
            if location.id in hidden_ids:
                continue
            matched = len(location.interest_tokens & interests)
            if matched:
                scored.append(ScoredLocation(location=location, matched_tokens=matched))

        scored.sort(key=lambda item: (-item.matched_tokens, -(item.location.rating or 0.0), item.location.id))
        return paginate(scored, page, page_size)

    async def suggest(self, user_id: int, location_id: int) -> Notification | Failure:
        """Open a pending suggestion and notify the user about it."""
        failure = await self._check_exists(user_id, location_id)
        if failure:
            return failure

        await self.db.execute(self._pending_row(user_id, location_id))
        status = await self._status(user_id, location_id)
        await self.db.commit()

        if status != PENDING:
            return Failure.conflict(f"Suggestion already {status}")

        return await self.notifications.create_location_suggestion(user_id, location_id)

    async def accept(self, location_id: int, user_id: int, notification_id: int | None = None) -> Decision | Failure:
        """Resolve pending -> accepted and save the location as a favorite; Conflict if already resolved."""
        return await self._resolve(location_id, user_id, ACCEPTED, notification_id)

    async def reject(self, location_id: int, user_id: int, notification_id: int | None = None) -> Decision | Failure:
        """Resolve pending -> rejected; Conflict if already resolved."""
        return await self._resolve(location_id, user_id, REJECTED, notification_id)

    async def _resolve(
        self, location_id: int, user_id: int, status: str, notification_id: int | None
    ) -> Decision | Failure:
        failure = await self._check_exists(user_id, location_id)
        if failure:
            return failure

        await self.db.execute(self._pending_row(user_id, location_id))

        # Optimistic check: only a pending row can move, so exactly one racer wins
        result = await self.db.execute(
            update(LocationSuggestion)
            .where(
                LocationSuggestion.user_id == user_id,
                LocationSuggestion.location_id == location_id,
                LocationSuggestion.status == PENDING,
            )
            .values(status=status, resolved_at=datetime.utcnow())
        )
        if result.rowcount != 1:
            await self.db.commit()
            current = await self._status(user_id, location_id)
            suggestions_resolved_total.labels(status="conflict").inc()
            logger.info(f"Suggestion for user {user_id}, location {location_id} already {current}")
            return Failure.conflict(f"Suggestion already {current}")

        if status == ACCEPTED:
            # Same transaction as the status change; an existing favorite is kept as is
            await self.db.execute(favorite_row(self.db, user_id, location_id))

        await self.db.commit()
        suggestions_resolved_total.labels(status=status).inc()
        logger.info(f"Suggestion {status}: user={user_id}, location={location_id}")

        marked: Notification | Failure | None = None
        if notification_id is not None:
            marked = await self.notifications.mark_as_read(notification_id, user_id)
            if isinstance(marked, Failure):
                logger.warning(f"Could not mark notification {notification_id} read: {marked.message}")

        suggestion = await self.db.scalar(
            select(LocationSuggestion)
            .where(LocationSuggestion.user_id == user_id, LocationSuggestion.location_id == location_id)
            .execution_options(populate_existing=True)
        )
        return Decision(suggestion=suggestion, notification=marked)

    async def _check_exists(self, user_id: int, location_id: int) -> Failure | None:
        if not await self.directory.existing_ids([user_id]):
            return Failure.not_found(f"User {user_id} not found")
        if await self.catalog.get(location_id) is None:
            return Failure.not_found(f"Location {location_id} not found")
        return None

    def _pending_row(self, user_id: int, location_id: int):
        return insert_or_ignore(
            self.db,
            LocationSuggestion,
            ["user_id", "location_id"],
            user_id=user_id,
            location_id=location_id,
            status=PENDING,
            created_at=datetime.utcnow(),
        )

    async def _status(self, user_id: int, location_id: int) -> str | None:
        return await self.db.scalar(
            select(LocationSuggestion.status).where(
                LocationSuggestion.user_id == user_id, LocationSuggestion.location_id == location_id
            )
        )
