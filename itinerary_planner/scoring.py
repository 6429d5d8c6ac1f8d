"""Distance and scoring helpers shared by the search and planning stages."""
from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Sequence, Tuple

from itinerary_planner.config import DEFAULT_TABLES, PlannerTables
from itinerary_planner.schemas import RecommendedPlace

_EARTH_RADIUS_KM = 6371.0
TAG_DELIMITER = " > "


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres between two WGS84 points."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return _EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    try:
        lat_f, lng_f = float(lat), float(lng)
    except (TypeError, ValueError):
        return False
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        return False
    return -90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0


def split_tags(category: str) -> list[str]:
    return [part.strip() for part in category.split(TAG_DELIMITER) if part.strip()]


def preference_score(
    place: RecommendedPlace,
    preferences: Iterable[str],
    table: Mapping[str, Sequence[str]] | None = None,
) -> float:
    """Keyword overlap between a place and the user's preferences.

    Per preference: +10 for each mapped keyword found in the category string,
    +5 for each tag that contains any mapped keyword, +15 when the place name
    itself mentions the preference.
    """
    table = DEFAULT_TABLES.preference_categories if table is None else table
    category = place.category.lower()
    name = place.name.lower()
    score = 0.0
    for preference in preferences:
        keywords = [kw.lower() for kw in table.get(preference, ())]
        for keyword in keywords:
            if keyword in category:
                score += 10
        for tag in place.tags:
            tag_lower = tag.lower()
            if any(keyword in tag_lower for keyword in keywords):
                score += 5
        if preference and preference.lower() in name:
            score += 15
    return score


def rating_score(place: RecommendedPlace) -> float:
    return (place.rating or 0) * 10


def review_score(place: RecommendedPlace) -> float:
    return min(20.0, (place.review_count or 0) / 10)


def popularity_score(place: RecommendedPlace) -> float:
    """Ranking key when no preference signal exists; also used for slot picks."""
    return (place.rating or 0) * 20 + (place.match_score or 0)


def final_score(place: RecommendedPlace) -> float:
    return popularity_score(place) + (place.review_count or 0) / 10


def suggested_visit_duration(category: str, tables: PlannerTables = DEFAULT_TABLES) -> int:
    for keywords, minutes in tables.visit_duration_rules:
        if any(keyword in category for keyword in keywords):
            return minutes
    return tables.default_visit_duration


def matches_any(category: str, keywords: Tuple[str, ...]) -> bool:
    return any(keyword in category for keyword in keywords)
