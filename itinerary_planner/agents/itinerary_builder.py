"""Day-by-day itinerary construction."""
from __future__ import annotations

from typing import Collection, Dict, Iterable, List, Optional, Sequence
import logging
import os

from itinerary_planner.agents.regional_discovery import RegionalDiscovery
from itinerary_planner.agents.route_adapter import DayRouteOptimizer
from itinerary_planner.config import DEFAULT_TABLES, PlannerTables
from itinerary_planner.errors import NoCandidatesFailure
from itinerary_planner.schemas import Itinerary, LatLng, RecommendedPlace, TransportType
from itinerary_planner.scoring import matches_any, popularity_score

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

Buckets = Dict[str, List[RecommendedPlace]]


class ItineraryBuilder:
    def __init__(
        self,
        discovery: RegionalDiscovery,
        route_optimizer: DayRouteOptimizer,
        *,
        tables: PlannerTables = DEFAULT_TABLES,
    ):
        self.discovery = discovery
        self.route_optimizer = route_optimizer
        self.tables = tables

    async def build(
        self,
        destination: str,
        preferences: Sequence[str],
        days: int,
        start_location: Optional[LatLng] = None,
        transport_type: TransportType = "driving",
        must_visit: Optional[Sequence[RecommendedPlace]] = None,
    ) -> Itinerary:
        """Plan ``days`` days in ``destination``.

        Raises ``DiscoveryFailure`` when candidate discovery fails outright and
        ``NoCandidatesFailure`` when it finds nothing. Any fault while assembling
        the days is logged and yields an empty itinerary instead, so a partial
        plan never reaches the caller.
        """
        logger.info(
            "Itinerary build start: destination=%s, preferences=%s, days=%d, transport=%s",
            destination,
            list(preferences),
            days,
            transport_type,
        )
        pool = await self.discovery.discover(
            destination,
            preferences,
            days * self.tables.candidates_per_day,
        )
        if not pool:
            raise NoCandidatesFailure()

        try:
            buckets = self.categorize(pool)
            logger.debug(
                "Bucket sizes: %s",
                {name: len(places) for name, places in buckets.items()},
            )
            pinned = _distribute(must_visit or [], days)
            reserved = {place.id for places in pinned.values() for place in places}

            itinerary: Itinerary = {}
            used_place_ids: set[str] = set()
            for day in range(days):
                day_places = self.plan_day(buckets, used_place_ids, pinned.get(day, []), reserved)
                optimized = await self.route_optimizer.optimize_day(day_places, start_location, transport_type)
                itinerary[day] = optimized
                used_place_ids.update(place.id for place in optimized)
                logger.info("Day %d planned with %d places", day + 1, len(optimized))
            return itinerary
        except Exception:
            logger.exception("Itinerary build for %s degraded to an empty plan", destination)
            return {}

    def categorize(self, places: Iterable[RecommendedPlace]) -> Buckets:
        """Sort places into keyword buckets; a place may land in several or none."""
        places = list(places)
        return {
            bucket: [place for place in places if matches_any(place.category, keywords)]
            for bucket, keywords in self.tables.category_buckets.items()
        }

    def plan_day(
        self,
        buckets: Buckets,
        used_place_ids: set[str],
        pinned: Sequence[RecommendedPlace] = (),
        reserved: Collection[str] = (),
    ) -> List[RecommendedPlace]:
        """Fill one day from the time-slot template, then backfill to the target size.

        Ids in ``reserved`` belong to must-visit places and are only placed
        through ``pinned``, so no slot claims them ahead of their own day.
        """
        target = self.tables.places_per_day
        day_plan: List[RecommendedPlace] = []
        in_day: set[str] = set()

        def _take(candidates: Iterable[RecommendedPlace], count: int) -> None:
            available = [
                p for p in candidates
                if p.id not in used_place_ids and p.id not in in_day and p.id not in reserved
            ]
            available.sort(key=popularity_score, reverse=True)
            for place in available[:count]:
                day_plan.append(place)
                in_day.add(place.id)

        for place in pinned:
            if place.id not in used_place_ids and place.id not in in_day:
                day_plan.append(place)
                in_day.add(place.id)

        for slot in self.tables.time_slots:
            _take(buckets.get(slot.bucket, []), slot.count)

        if len(day_plan) < target:
            _take(_flatten(buckets), target - len(day_plan))

        return day_plan[:target]


def _flatten(buckets: Buckets) -> List[RecommendedPlace]:
    seen: set[str] = set()
    flat: List[RecommendedPlace] = []
    for places in buckets.values():
        for place in places:
            if place.id in seen:
                continue
            seen.add(place.id)
            flat.append(place)
    return flat


def _distribute(places: Sequence[RecommendedPlace], days: int) -> Dict[int, List[RecommendedPlace]]:
    """Spread must-visit places round-robin across the days."""
    pinned: Dict[int, List[RecommendedPlace]] = {}
    for idx, place in enumerate(places):
        pinned.setdefault(idx % days, []).append(place)
    return pinned
