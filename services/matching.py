"""Likes, dislikes and mutual-like match detection."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.db import insert_or_ignore, upsert
from core.metrics import dislikes_total, likes_total, matches_created_total
from models.dislike import UserDislike
from models.like import UserLike
from models.match import Match
from services.directory import UserDirectory
from services.errors import Failure, ValidationError
from services.notifications import LikePayload, MatchPayload, NotificationCenter

logger = logging.getLogger(__name__)

MAX_LIKE_MESSAGE_LENGTH = 500


@dataclass(frozen=True)
class LikeResult:
    is_match: bool
    created: bool  # False when the like already existed
    match: Match | None = None


def canonical_pair(user_a: int, user_b: int) -> tuple[int, int]:
    """Ordered (min, max) key for an unordered pair."""
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


async def interacted_user_ids(db: AsyncSession, user_id: int) -> set[int]:
    """Users this user already liked or still actively dislikes."""
    liked = await db.execute(select(UserLike.target_id).where(UserLike.liker_id == user_id))
    disliked = await db.execute(
        select(UserDislike.target_id).where(
            UserDislike.user_id == user_id,
            or_(UserDislike.until.is_(None), UserDislike.until > datetime.utcnow()),
        )
    )
    return {row[0] for row in liked.all()} | {row[0] for row in disliked.all()}


class MatchingEngine:
    """
    Records likes and dislikes and turns mutual likes into matches.

    Match creation relies on the unique (u_lo, u_hi) constraint with
    insert-or-ignore, so simultaneous opposite likes produce exactly one
    match on any number of service instances.
    """

    def __init__(
        self, db: AsyncSession, notifications: NotificationCenter, directory: UserDirectory | None = None
    ) -> None:
        self.db = db
        self.notifications = notifications
        self.directory = directory or UserDirectory(db)

    async def like_user(self, liker_id: int, target_id: int, message: str | None = None) -> LikeResult | Failure:
        """
        Like another user.

        Args:
            liker_id: User giving the like
            target_id: User receiving the like
            message: Optional note shown with the like notification

        Returns:
            LikeResult, or a not_found Failure

        Raises:
            ValidationError: On self-like or an over-long message
        """
        if liker_id == target_id:
            raise ValidationError("Cannot like yourself")
        if message is not None and len(message) > MAX_LIKE_MESSAGE_LENGTH:
            raise ValidationError(f"Message cannot exceed {MAX_LIKE_MESSAGE_LENGTH} characters")

        missing = {liker_id, target_id} - await self.directory.existing_ids([liker_id, target_id])
        if missing:
            return Failure.not_found(f"User(s) not found: {sorted(missing)}")

        # Edge is committed before the reverse check so concurrent opposite likes always see each other
        insert_stmt = insert_or_ignore(
            self.db,
            UserLike,
            ["liker_id", "target_id"],
            liker_id=liker_id,
            target_id=target_id,
            message=message,
            created_at=datetime.utcnow(),
        ).returning(UserLike.liker_id)
        created = (await self.db.execute(insert_stmt)).scalar_one_or_none() is not None
        await self.db.commit()
        likes_total.labels(outcome="created" if created else "repeat").inc()

        reverse = await self.db.scalar(
            select(UserLike.liker_id).where(UserLike.liker_id == target_id, UserLike.target_id == liker_id)
        )
        if reverse is not None:
            return await self._ensure_match(liker_id, target_id, created)

        if not created:
            logger.debug(f"User {liker_id} already liked user {target_id}")
            return LikeResult(is_match=False, created=False)

        await self.notifications.create(target_id, LikePayload(from_user=liker_id, message=message))
        return LikeResult(is_match=False, created=True)

    async def _ensure_match(self, liker_id: int, target_id: int, created: bool) -> LikeResult:
        u_lo, u_hi = canonical_pair(liker_id, target_id)

        insert_stmt = insert_or_ignore(
            self.db, Match, ["u_lo", "u_hi"], u_lo=u_lo, u_hi=u_hi, created_at=datetime.utcnow()
        ).returning(Match.id)
        match_id = (await self.db.execute(insert_stmt)).scalar_one_or_none()

        if match_id is None:
            # Another request (or an earlier like) already created it; nothing was written
            await self.db.commit()
            match = await self.db.scalar(select(Match).where(Match.u_lo == u_lo, Match.u_hi == u_hi))
            logger.debug(f"Match already exists for pair ({u_lo}, {u_hi})")
            return LikeResult(is_match=True, created=created, match=match)

        # Match and both notifications commit together
        staged = [
            self.notifications.stage(liker_id, MatchPayload(match_id=match_id, partner=target_id)),
            self.notifications.stage(target_id, MatchPayload(match_id=match_id, partner=liker_id)),
        ]
        await self.db.commit()
        await self.notifications.dispatch(staged)

        matches_created_total.inc()
        logger.info(f"Match {match_id} created between users {liker_id} and {target_id}")

        match = await self.db.get(Match, match_id)
        return LikeResult(is_match=True, created=created, match=match)

    async def dislike_user(self, user_id: int, target_id: int) -> UserDislike | Failure:
        """
        Suppress target from user's future candidate lists.

        Repeating the call refreshes the suppression window under a TTL policy.

        Raises:
            ValidationError: On self-dislike
        """
        if user_id == target_id:
            raise ValidationError("Cannot dislike yourself")

        missing = {user_id, target_id} - await self.directory.existing_ids([user_id, target_id])
        if missing:
            return Failure.not_found(f"User(s) not found: {sorted(missing)}")

        now = datetime.utcnow()
        until = now + timedelta(days=settings.dislike_ttl_days) if settings.dislike_ttl_days else None

        await self.db.execute(
            upsert(
                self.db,
                UserDislike,
                ["user_id", "target_id"],
                ["until"],
                user_id=user_id,
                target_id=target_id,
                created_at=now,
                until=until,
            )
        )
        await self.db.commit()
        dislikes_total.inc()

        dislike = await self.db.scalar(
            select(UserDislike)
            .where(UserDislike.user_id == user_id, UserDislike.target_id == target_id)
            .execution_options(populate_existing=True)
        )
        return dislike
