"""Location proximity endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from apps.api.deps import get_db
from apps.api.schemas import LocationOut
from services.directory import LocationCatalog
from services.geo import nearby_locations, parse_coordinates

router = APIRouter(prefix="/locations", tags=["locations"])


class NearbyLocationOut(LocationOut):
    distance_km: float


@router.get("/nearby")
async def get_nearby_locations(
    coordinates: str,
    radius_km: float = 5.0,
    db: AsyncSession = Depends(get_db),
) -> list[NearbyLocationOut]:
    """
    Locations within radius_km of a point, nearest first.

    Args:
        coordinates: Origin as "latitude,longitude"
        radius_km: Search radius in kilometres

    Raises:
        HTTPException: 400 on malformed coordinates or negative radius
    """
    origin = parse_coordinates(coordinates)
    candidates = await LocationCatalog(db).list_active()
    return [
        NearbyLocationOut(**LocationOut.from_model(item.location).model_dump(), distance_km=round(item.distance_km, 3))
        for item in nearby_locations(origin, radius_km, candidates)
    ]
