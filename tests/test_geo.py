from __future__ import annotations

import math

import pytest

from models.location import Location
from services.errors import ValidationError
from services.geo import Coordinates, format_coordinates, haversine_km, nearby_locations, parse_coordinates


def _reference_haversine(lat1, lon1, lat2, lon2):
    r = 6371.0
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dp, dl = math.radians(lat2 - lat1), math.radians(lon2 - lon1)
    h = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return 2 * r * math.asin(math.sqrt(h))


def _location(id_, coordinates):
    return Location(id=id_, name=f"loc{id_}", coordinates=coordinates, category="museums", subcategories=[])


def test_parse_coordinates():
    assert parse_coordinates(" 47.2357 , 39.7015 ") == Coordinates(47.2357, 39.7015)


@pytest.mark.parametrize("raw", ["", "47.2", "a,b", "1,2,3", "91,0", "0,181", "nan,0"])
def test_parse_coordinates_rejects_malformed(raw):
    with pytest.raises(ValidationError):
        parse_coordinates(raw)


def test_format_round_trips():
    assert parse_coordinates(format_coordinates(55.7558, 37.6173)) == Coordinates(55.7558, 37.6173)


def test_haversine_matches_reference():
    origin, other = Coordinates(0.0, 0.0), Coordinates(10.0, 10.0)
    expected = _reference_haversine(0.0, 0.0, 10.0, 10.0)
    assert abs(haversine_km(origin, other) - expected) / expected < 0.001
    assert 1560 < haversine_km(origin, other) < 1575


def test_haversine_moscow_rostov():
    distance = haversine_km(Coordinates(55.7558, 37.6173), Coordinates(47.2357, 39.7015))
    expected = _reference_haversine(55.7558, 37.6173, 47.2357, 39.7015)
    assert abs(distance - expected) / expected < 0.001


def test_nearby_excludes_far_location():
    result = nearby_locations(Coordinates(0.0, 0.0), 1.0, [_location(1, "10,10")])
    assert result == []


def test_nearby_orders_by_distance_then_id():
    candidates = [
        _location(3, "0.02,0"),
        _location(2, "0.01,0"),
        _location(1, "0.02,0"),
        _location(4, "5,5"),
    ]
    result = nearby_locations(Coordinates(0.0, 0.0), 5.0, candidates)
    assert [item.location.id for item in result] == [2, 1, 3]
    assert result[0].distance_km < result[1].distance_km


def test_nearby_includes_boundary_and_skips_malformed():
    exact = haversine_km(Coordinates(0, 0), Coordinates(0.01, 0))
    result = nearby_locations(Coordinates(0, 0), exact, [_location(1, "0.01,0"), _location(2, "broken")])
    assert [item.location.id for item in result] == [1]


def test_nearby_rejects_negative_radius():
    with pytest.raises(ValidationError):
        nearby_locations(Coordinates(0, 0), -1, [])
