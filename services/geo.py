"""Coordinate parsing and great-circle proximity search."""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

from models.location import Location
from services.errors import ValidationError

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float

    def __str__(self) -> str:
        return format_coordinates(self.latitude, self.longitude)


@dataclass(frozen=True)
class NearbyLocation:
    location: Location
    distance_km: float


def parse_coordinates(raw: str | None) -> Coordinates:
    """
    Parse a "latitude,longitude" string.

    Raises:
        ValidationError: If the string is malformed or out of range
    """
    if raw is None or not raw.strip():
        raise ValidationError("Coordinates are required. Expected format: 'latitude,longitude'")

    parts = raw.split(",")
    if len(parts) != 2:
        raise ValidationError(f"Invalid coordinates format: {raw!r}. Expected format: 'latitude,longitude'")

    try:
        latitude, longitude = float(parts[0].strip()), float(parts[1].strip())
    except ValueError:
        raise ValidationError(f"Invalid coordinates format: {raw!r}. Expected format: 'latitude,longitude'") from None

    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ValidationError(f"Coordinates must be finite numbers: {raw!r}")
    if not -90.0 <= latitude <= 90.0:
        raise ValidationError(f"Latitude out of range [-90, 90]: {latitude}")
    if not -180.0 <= longitude <= 180.0:
        raise ValidationError(f"Longitude out of range [-180, 180]: {longitude}")

    return Coordinates(latitude, longitude)


def format_coordinates(latitude: float, longitude: float) -> str:
    return f"{latitude!r},{longitude!r}"


def haversine_km(origin: Coordinates, other: Coordinates) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(other.latitude - origin.latitude)
    d_lng = math.radians(other.longitude - origin.longitude)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.latitude)) * math.cos(math.radians(other.latitude)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def nearby_locations(origin: Coordinates, radius_km: float, candidates: Iterable[Location]) -> list[NearbyLocation]:
    """
    Filter candidates to those within radius_km of origin.

    Locations with malformed stored coordinates are skipped.

    Returns:
        Matches ordered by ascending distance, ties by ascending location id
    """
    if radius_km < 0 or not math.isfinite(radius_km):
        raise ValidationError("radius_km must be a non-negative number")

    results: list[NearbyLocation] = []
    for location in candidates:
        try:
            point = parse_coordinates(location.coordinates)
        except ValidationError:
            logger.warning(f"Skipping location {location.id} with malformed coordinates: {location.coordinates!r}")
            continue

        distance = haversine_km(origin, point)
        if distance <= radius_km:
            results.append(NearbyLocation(location=location, distance_km=distance))

    results.sort(key=lambda item: (item.distance_km, item.location.id))
    return results
