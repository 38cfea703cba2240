from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select, update

from core.config import settings
from models.dislike import UserDislike
from models.like import UserLike
from models.match import Match
from models.notification import Notification
from services.errors import Failure, FailureReason, ValidationError
from services.matching import MatchingEngine, canonical_pair, interacted_user_ids
from tests.conftest import add_user


@pytest.fixture
async def engine_with_users(db, notifications):
    for user_id in (1, 2, 3):
        await add_user(db, user_id)
    return MatchingEngine(db, notifications)


async def _count(db, model, *where):
    return await db.scalar(select(func.count()).select_from(model).where(*where))


async def _notifications_of(db, kind):
    result = await db.execute(select(Notification).where(Notification.kind == kind).order_by(Notification.id))
    return list(result.scalars().all())


def test_canonical_pair():
    assert canonical_pair(5, 2) == (2, 5)
    assert canonical_pair(2, 5) == (2, 5)


async def test_first_like_notifies_target(engine_with_users, db, queue):
    result = await engine_with_users.like_user(1, 2, message="hi there")

    assert not result.is_match
    assert result.created
    likes = await _notifications_of(db, "like")
    assert len(likes) == 1
    assert likes[0].recipient_id == 2
    assert likes[0].payload == {"from_user": 1, "message": "hi there"}
    assert queue.ids == [likes[0].id]


@pytest.mark.parametrize("first,second", [(1, 2), (2, 1)])
async def test_mutual_like_creates_single_match(engine_with_users, db, first, second):
    await engine_with_users.like_user(first, second)
    result = await engine_with_users.like_user(second, first)

    assert result.is_match
    assert (result.match.u_lo, result.match.u_hi) == (1, 2)
    assert await _count(db, Match) == 1

    matches = await _notifications_of(db, "match")
    assert sorted(n.recipient_id for n in matches) == [1, 2]
    assert {n.payload["match_id"] for n in matches} == {result.match.id}
    partners = {n.recipient_id: n.payload["partner"] for n in matches}
    assert partners == {1: 2, 2: 1}

    # Only the opening like produced a like notification
    likes = await _notifications_of(db, "like")
    assert [n.recipient_id for n in likes] == [second]


async def test_interleaved_opposite_likes_match_once(engine_with_users, db, queue):
    # Both edges land before either request runs its reverse check
    db.add_all([UserLike(liker_id=1, target_id=2), UserLike(liker_id=2, target_id=1)])
    await db.commit()

    first = await engine_with_users.like_user(1, 2)
    second = await engine_with_users.like_user(2, 1)

    assert first.is_match and second.is_match
    assert first.match.id == second.match.id
    assert await _count(db, Match) == 1
    assert len(await _notifications_of(db, "match")) == 2
    assert await _notifications_of(db, "like") == []
    assert len(queue.ids) == 2


async def test_repeat_like_is_idempotent(engine_with_users, db):
    await engine_with_users.like_user(1, 3)
    again = await engine_with_users.like_user(1, 3)

    assert not again.created
    assert await _count(db, UserLike, UserLike.liker_id == 1, UserLike.target_id == 3) == 1
    assert len(await _notifications_of(db, "like")) == 1


async def test_match_after_repeat_likes_stays_single(engine_with_users, db):
    await engine_with_users.like_user(1, 2)
    await engine_with_users.like_user(2, 1)
    await engine_with_users.like_user(1, 2)
    await engine_with_users.like_user(2, 1)

    assert await _count(db, Match) == 1
    assert len(await _notifications_of(db, "match")) == 2


async def test_self_like_rejected(engine_with_users):
    with pytest.raises(ValidationError):
        await engine_with_users.like_user(1, 1)


async def test_long_message_rejected(engine_with_users):
    with pytest.raises(ValidationError):
        await engine_with_users.like_user(1, 2, message="x" * 501)


async def test_like_unknown_user(engine_with_users, db):
    result = await engine_with_users.like_user(1, 999)

    assert isinstance(result, Failure)
    assert result.reason is FailureReason.NOT_FOUND
    assert await _count(db, UserLike) == 0


async def test_like_inactive_user_not_found(db, notifications):
    await add_user(db, 1)
    await add_user(db, 2, is_active=False)

    result = await MatchingEngine(db, notifications).like_user(1, 2)

    assert isinstance(result, Failure)


async def test_like_survives_queue_outage(db):
    from services.notifications import NotificationCenter
    from tests.conftest import RecordingQueue

    await add_user(db, 1)
    await add_user(db, 2)
    engine = MatchingEngine(db, NotificationCenter(db, enqueue=RecordingQueue(fail=True)))

    await engine.like_user(1, 2)
    result = await engine.like_user(2, 1)

    assert result.is_match
    assert len(await _notifications_of(db, "match")) == 2


async def test_dislike_is_idempotent(engine_with_users, db):
    await engine_with_users.dislike_user(1, 2)
    dislike = await engine_with_users.dislike_user(1, 2)

    assert isinstance(dislike, UserDislike)
    assert dislike.until is None
    assert await _count(db, UserDislike) == 1
    assert await interacted_user_ids(db, 1) == {2}


async def test_self_dislike_rejected(engine_with_users):
    with pytest.raises(ValidationError):
        await engine_with_users.dislike_user(2, 2)


async def test_dislike_unknown_user(engine_with_users):
    result = await engine_with_users.dislike_user(1, 404)
    assert isinstance(result, Failure)
    assert result.reason is FailureReason.NOT_FOUND


async def test_dislike_with_ttl_expires(engine_with_users, db, monkeypatch):
    monkeypatch.setattr(settings, "dislike_ttl_days", 7)

    dislike = await engine_with_users.dislike_user(1, 3)
    assert dislike.until is not None
    assert dislike.until > datetime.utcnow() + timedelta(days=6)
    assert await interacted_user_ids(db, 1) == {3}

    await db.execute(
        update(UserDislike)
        .where(UserDislike.user_id == 1, UserDislike.target_id == 3)
        .values(until=datetime.utcnow() - timedelta(minutes=1))
    )
    await db.commit()

    assert await interacted_user_ids(db, 1) == set()


async def test_liked_users_count_as_interacted(engine_with_users, db):
    await engine_with_users.like_user(1, 2)
    await engine_with_users.dislike_user(1, 3)

    assert await interacted_user_ids(db, 1) == {2, 3}
    assert await interacted_user_ids(db, 2) == set()
