"""Place search aggregation across one or more providers."""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence
import logging
import os

from itinerary_planner.config import DEFAULT_TABLES, PlannerTables
from itinerary_planner.errors import SearchFailure
from itinerary_planner.schemas import LatLng, RecommendedPlace
from itinerary_planner.scoring import (
    haversine_km,
    popularity_score,
    preference_score,
    rating_score,
    review_score,
)
from itinerary_planner.tools.providers import PlaceSearchProvider

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

# Same-name places from different providers closer than this are one place.
MERGE_RADIUS_KM = 0.1


class PlaceSearchAggregator:
    def __init__(self, providers: Sequence[PlaceSearchProvider], *, tables: PlannerTables = DEFAULT_TABLES):
        self.providers = list(providers)
        self.tables = tables

    async def search(
        self,
        query: str,
        location: Optional[LatLng] = None,
        preferences: Optional[Iterable[str]] = None,
        radius: Optional[float] = None,
    ) -> List[RecommendedPlace]:
        """Search every provider for ``query`` and return scored, sorted places.

        With preferences, each place's ``match_score`` is raised by the
        preference, rating and review scores and results are ordered by it.
        Without them, rating dominates the order. When both ``location`` and
        ``radius`` are given, places farther than ``radius`` km are dropped
        after sorting and the rest carry their ``distance``.
        """
        prefs = [p for p in (preferences or []) if p]
        try:
            logger.info("Place search start: query=%s, preferences=%s, radius=%s", query, prefs, radius)
            places = await self._collect(query)

            if prefs:
                for place in places:
                    place.match_score = (
                        (place.match_score or 0)
                        + preference_score(place, prefs, self.tables.preference_categories)
                        + rating_score(place)
                        + review_score(place)
                    )
                places.sort(key=lambda p: p.match_score, reverse=True)
            else:
                places.sort(key=popularity_score, reverse=True)

            if location is not None and radius is not None:
                within: List[RecommendedPlace] = []
                for place in places:
                    place.distance = haversine_km(location.lat, location.lng, place.lat, place.lng)
                    if place.distance <= radius:
                        within.append(place)
                logger.debug("Radius %.2fkm kept %d of %d places", radius, len(within), len(places))
                places = within

            logger.info("Place search for '%s' produced %d places", query, len(places))
            return places
        except Exception as exc:
            logger.error("Place search failed for '%s'", query, exc_info=True)
            raise SearchFailure() from exc

    async def _collect(self, query: str) -> List[RecommendedPlace]:
        collected: List[RecommendedPlace] = []
        seen_ids: set[str] = set()
        for provider in self.providers:
            source = getattr(provider, "source", type(provider).__name__)
            try:
                raw_results = await provider.search(query)
            except Exception:
                logger.warning("Provider %s failed for query '%s'", source, query, exc_info=True)
                raw_results = []

            for rank, raw in enumerate(raw_results):
                place = provider.normalize(raw, rank)
                if place is None or place.id in seen_ids:
                    continue
                existing = _find_same_place(collected, place) if len(self.providers) > 1 else None
                if existing is not None:
                    _merge_into(existing, place)
                    continue
                seen_ids.add(place.id)
                collected.append(place)
            logger.debug("Provider %s returned %d raw results for '%s'", source, len(raw_results), query)
        return collected


def _find_same_place(places: List[RecommendedPlace], candidate: RecommendedPlace) -> Optional[RecommendedPlace]:
    for place in places:
        if place.source == candidate.source or place.name != candidate.name:
            continue
        if haversine_km(place.lat, place.lng, candidate.lat, candidate.lng) <= MERGE_RADIUS_KM:
            return place
    return None


def _merge_into(target: RecommendedPlace, other: RecommendedPlace) -> None:
    target.source = "combined"
    for attr in ("road_address", "phone", "description", "place_url"):
        if not getattr(target, attr) and getattr(other, attr):
            setattr(target, attr, getattr(other, attr))
    if not target.address:
        target.address = other.address
    for tag in other.tags:
        if tag not in target.tags:
            target.tags.append(tag)
