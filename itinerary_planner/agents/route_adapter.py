"""Apply an external route optimizer to one day's places."""
from __future__ import annotations

from typing import List, Optional
import logging
import os

from itinerary_planner.config import DEFAULT_TABLES, PlannerTables
from itinerary_planner.schemas import LatLng, RecommendedPlace, TransportType
from itinerary_planner.scoring import suggested_visit_duration
from itinerary_planner.tools.route_optimizer import RouteOptimizer, RouteStop, format_travel_time

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


class DayRouteOptimizer:
    def __init__(self, optimizer: RouteOptimizer, *, tables: PlannerTables = DEFAULT_TABLES):
        self.optimizer = optimizer
        self.tables = tables

    async def optimize_day(
        self,
        places: List[RecommendedPlace],
        start_location: Optional[LatLng] = None,
        transport_type: TransportType = "driving",
    ) -> List[RecommendedPlace]:
        """Reorder ``places`` for travel time and annotate each stop.

        Every stop after the first gets the leg that reaches it as
        ``travel_time_from_previous``; all stops get a suggested visit duration.
        Returns new place objects; the input list is left untouched.
        """
        if len(places) <= 1:
            return places

        start = start_location or LatLng(lat=places[0].lat, lng=places[0].lng)
        stops = [
            RouteStop(name=place.name, lat=place.lat, lng=place.lng, index=idx)
            for idx, place in enumerate(places)
        ]
        result = await self.optimizer.optimize(start, stops, transport_type)

        optimized: List[RecommendedPlace] = []
        claimed: set[int] = set()
        for position, stop in enumerate(result.optimized_route):
            idx = _resolve_index(stop, places)
            if idx is None:
                logger.warning("Optimizer returned unknown stop '%s'; dropping it", stop.name)
                continue
            if idx in claimed:
                logger.warning("Optimizer returned stop '%s' twice; keeping the first", stop.name)
                continue
            claimed.add(idx)
            original = places[idx]
            # The first place kept starts the day, even when the optimizer
            # led with a stop we dropped.
            segment = None
            if optimized and 0 < position <= len(result.travel_segments):
                segment = result.travel_segments[position - 1]
            optimized.append(
                original.model_copy(
                    update={
                        "travel_time_from_previous": segment.model_copy() if segment is not None else None,
                        "suggested_visit_duration": suggested_visit_duration(original.category, self.tables),
                        "tags": list(original.tags),
                    }
                )
            )

        logger.info(
            "Route optimized for %d stops: total travel %s, distance %.1fkm",
            len(optimized),
            format_travel_time(result.total_travel_time),
            result.total_distance,
        )
        return optimized


def _resolve_index(stop: RouteStop, places: List[RecommendedPlace]) -> Optional[int]:
    if stop.index is not None and 0 <= stop.index < len(places):
        return stop.index
    # Optimizers that drop our index fall back to the display name; with
    # duplicate names every match lands on the first one.
    for idx, place in enumerate(places):
        if place.name == stop.name:
            return idx
    return None
