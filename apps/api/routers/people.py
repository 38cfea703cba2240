"""Like, dislike and people search endpoints."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from apps.api.deps import get_favorites_service, get_matching_engine, get_people_search
from apps.api.errors import unwrap
from apps.api.schemas import PageMeta
from core.auth import caller_auth
from services.favorites import FavoritesService
from services.matching import MatchingEngine
from services.people import PeopleSearch

router = APIRouter(prefix="/people", tags=["people"])


class LikeIn(BaseModel):
    """Input model for liking a user."""

    target_id: int
    message: str | None = Field(default=None, max_length=500)


class DislikeIn(BaseModel):
    """Input model for disliking a user."""

    target_id: int


class MatchOut(BaseModel):
    id: int
    users: tuple[int, int]


class LikeOut(BaseModel):
    is_match: bool
    created: bool
    match: MatchOut | None = None


class PersonOut(BaseModel):
    id: int
    username: str
    interests: list[str]
    shared_interests: list[str]


class PeoplePage(PageMeta):
    items: list[PersonOut]


class PersonByLocationsOut(BaseModel):
    id: int
    username: str
    shared_location_ids: list[int]


class PeopleByLocationsPage(PageMeta):
    items: list[PersonByLocationsOut]


class CompanionOut(BaseModel):
    id: int
    username: str
    interests: list[str]


class CompanionsPage(PageMeta):
    items: list[CompanionOut]


@router.post("/like")
async def like_user(
    body: LikeIn,
    engine: MatchingEngine = Depends(get_matching_engine),
    caller_id: int = Depends(caller_auth),
) -> LikeOut:
    """
    Like another user.

    Creates a match (and notifies both users) when the like is mutual,
    otherwise notifies the target. Repeating a like is a no-op.

    Raises:
        HTTPException: 400 on self-like, 404 if either user is unknown
    """
    result = unwrap(await engine.like_user(caller_id, body.target_id, body.message))
    match = None
    if result.match is not None:
        match = MatchOut(id=result.match.id, users=(result.match.u_lo, result.match.u_hi))
    return LikeOut(is_match=result.is_match, created=result.created, match=match)


@router.post("/dislike")
async def dislike_user(
    body: DislikeIn,
    engine: MatchingEngine = Depends(get_matching_engine),
    caller_id: int = Depends(caller_auth),
) -> dict[str, bool]:
    """Hide a user from the caller's future candidate lists."""
    unwrap(await engine.dislike_user(caller_id, body.target_id))
    return {"ok": True}


@router.get("/search")
async def search_people(
    page: int = Query(1),
    page_size: int = Query(20),
    people: PeopleSearch = Depends(get_people_search),
    caller_id: int = Depends(caller_auth),
) -> PeoplePage:
    """Users sharing at least one interest with the caller."""
    result = unwrap(await people.search(caller_id, page, page_size))
    return PeoplePage(
        items=[
            PersonOut(
                id=item.user.id,
                username=item.user.username,
                interests=list(item.user.interests or []),
                shared_interests=item.shared_interests,
            )
            for item in result.items
        ],
        page=result.page,
        page_size=result.page_size,
        total_count=result.total_count,
        total_pages=result.total_pages,
        has_previous=result.has_previous,
        has_next=result.has_next,
    )


@router.get("/search/by-locations")
async def search_people_by_locations(
    page: int = Query(1),
    page_size: int = Query(20),
    people: PeopleSearch = Depends(get_people_search),
    caller_id: int = Depends(caller_auth),
) -> PeopleByLocationsPage:
    """Users who saved at least one of the caller's favorite locations."""
    result = unwrap(await people.search_by_locations(caller_id, page, page_size))
    return PeopleByLocationsPage(
        items=[
            PersonByLocationsOut(
                id=item.user.id, username=item.user.username, shared_location_ids=item.shared_location_ids
            )
            for item in result.items
        ],
        page=result.page,
        page_size=result.page_size,
        total_count=result.total_count,
        total_pages=result.total_pages,
        has_previous=result.has_previous,
        has_next=result.has_next,
    )


@router.get("/companions/{location_id}")
async def location_companions(
    location_id: int,
    page: int = Query(1),
    page_size: int = Query(20),
    favorites: FavoritesService = Depends(get_favorites_service),
    caller_id: int = Depends(caller_auth),
) -> CompanionsPage:
    """
    Other users who saved the location, to find company for a visit.

    Raises:
        HTTPException: 404 if the location is unknown
    """
    result = unwrap(await favorites.companions(caller_id, location_id, page, page_size))
    return CompanionsPage(
        items=[
            CompanionOut(id=user.id, username=user.username, interests=list(user.interests or []))
            for user in result.items
        ],
        page=result.page,
        page_size=result.page_size,
        total_count=result.total_count,
        total_pages=result.total_pages,
        has_previous=result.has_previous,
        has_next=result.has_next,
    )
