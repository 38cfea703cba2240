"""Favorite location endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from apps.api.deps import get_favorites_service
from apps.api.errors import unwrap
from apps.api.schemas import LocationOut
from core.auth import caller_auth
from services.favorites import FavoritesService, SavedLocation

router = APIRouter(prefix="/favorites", tags=["favorites"])


class FavoriteIn(BaseModel):
    """Input model for saving a location."""

    location_id: int
    notes: str | None = Field(default=None, max_length=500)


class FavoriteOut(BaseModel):
    location: LocationOut
    notes: str | None
    created_at: datetime

    @classmethod
    def from_saved(cls, saved: SavedLocation) -> "FavoriteOut":
        return cls(
            location=LocationOut.from_model(saved.location),
            notes=saved.favorite.notes,
            created_at=saved.favorite.created_at,
        )


@router.get("")
async def list_favorites(
    favorites: FavoritesService = Depends(get_favorites_service),
    caller_id: int = Depends(caller_auth),
) -> list[FavoriteOut]:
    """Caller's favorite locations, most recently saved first."""
    return [FavoriteOut.from_saved(saved) for saved in await favorites.list_for(caller_id)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_favorite(
    body: FavoriteIn,
    favorites: FavoritesService = Depends(get_favorites_service),
    caller_id: int = Depends(caller_auth),
) -> FavoriteOut:
    """
    Save a location.

    Raises:
        HTTPException: 404 if the location is unknown, 409 if already saved
    """
    saved = unwrap(await favorites.add(caller_id, body.location_id, body.notes))
    return FavoriteOut.from_saved(saved)


@router.delete("/{location_id}")
async def remove_favorite(
    location_id: int,
    favorites: FavoritesService = Depends(get_favorites_service),
    caller_id: int = Depends(caller_auth),
) -> dict[str, bool]:
    """Remove a location from the caller's favorites."""
    unwrap(await favorites.remove(caller_id, location_id))
    return {"ok": True}
