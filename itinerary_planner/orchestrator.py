# itinerary_planner/orchestrator.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
import logging

from itinerary_planner.agents.itinerary_builder import ItineraryBuilder
from itinerary_planner.agents.place_search import PlaceSearchAggregator
from itinerary_planner.agents.regional_discovery import RegionalDiscovery
from itinerary_planner.agents.route_adapter import DayRouteOptimizer
from itinerary_planner.config import DEFAULT_TABLES, PlannerTables, Settings
from itinerary_planner.errors import SearchFailure
from itinerary_planner.metrics import calculate_itinerary_cost, calculate_itinerary_total_time
from itinerary_planner.schemas import (
    DaySummary,
    ItineraryRequest,
    ItineraryResponse,
    LatLng,
    RecommendedPlace,
)
from itinerary_planner.tools.kakao import KakaoPlaceSearch
from itinerary_planner.tools.naver import NaverPlaceSearch
from itinerary_planner.tools.providers import PlaceSearchProvider
from itinerary_planner.tools.route_optimizer import NearestNeighbourRouteOptimizer, RouteOptimizer

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

EMPTY_PLAN_NOTE = "일정을 생성하지 못했습니다. 조건을 바꿔 다시 시도해주세요."


@dataclass
class Pipeline:
    search: PlaceSearchAggregator
    discovery: RegionalDiscovery
    route: DayRouteOptimizer
    builder: ItineraryBuilder


def build_providers(settings: Settings) -> List[PlaceSearchProvider]:
    """Instantiate every provider that has credentials configured."""
    providers: List[PlaceSearchProvider] = []
    if settings.kakao_api_key:
        providers.append(
            KakaoPlaceSearch(settings.kakao_api_key, size=settings.search_size, timeout=settings.http_timeout)
        )
    if settings.naver_client_id and settings.naver_client_secret:
        providers.append(
            NaverPlaceSearch(
                settings.naver_client_id,
                settings.naver_client_secret,
                timeout=settings.http_timeout,
            )
        )
    if not providers:
        logger.warning("No place search provider configured; searches will return no candidates")
    return providers


def build_pipeline(
    providers: Optional[Sequence[PlaceSearchProvider]] = None,
    route_optimizer: Optional[RouteOptimizer] = None,
    *,
    settings: Optional[Settings] = None,
    tables: PlannerTables = DEFAULT_TABLES,
) -> Pipeline:
    if providers is None:
        providers = build_providers(settings or Settings.from_env())
    search = PlaceSearchAggregator(providers, tables=tables)
    discovery = RegionalDiscovery(search, tables=tables)
    route = DayRouteOptimizer(route_optimizer or NearestNeighbourRouteOptimizer(), tables=tables)
    builder = ItineraryBuilder(discovery, route, tables=tables)
    return Pipeline(search=search, discovery=discovery, route=route, builder=builder)


async def orchestrate_itinerary(
    payload: Dict[str, Any],
    pipeline: Optional[Pipeline] = None,
) -> Dict[str, Any]:
    """Validate a request, plan it, and return the JSON-ready response."""
    req = ItineraryRequest.model_validate(payload)
    pipeline = pipeline or build_pipeline()
    days = req.trip_days()
    logger.info(
        "Orchestration start: destination=%s, days=%d, preferences=%s, transport=%s, must_visit=%d",
        req.destination,
        days,
        req.preferences,
        req.transport_type,
        len(req.must_visit),
    )

    notes: List[str] = []
    start_location = await resolve_start_location(pipeline.search, req, notes)
    must_visit = await resolve_must_visit(pipeline.search, req.destination, req.must_visit, notes)

    itinerary = await pipeline.builder.build(
        req.destination,
        req.preferences,
        days,
        start_location=start_location,
        transport_type=req.transport_type,
        must_visit=must_visit,
    )
    if not itinerary:
        notes.append(EMPTY_PLAN_NOTE)

    summaries = [
        DaySummary(
            day=day,
            place_count=len(places),
            time=calculate_itinerary_total_time(places),
            cost=calculate_itinerary_cost(places),
        )
        for day, places in sorted(itinerary.items())
    ]
    response = ItineraryResponse(query_echo=req, itinerary=itinerary, summaries=summaries, notes=notes)
    logger.info(
        "Orchestration finished: %d day(s), %d place(s), %d note(s)",
        len(itinerary),
        sum(len(places) for places in itinerary.values()),
        len(notes),
    )
    return response.model_dump(mode="json", by_alias=True)


async def resolve_start_location(
    search: PlaceSearchAggregator,
    req: ItineraryRequest,
    notes: List[str],
) -> Optional[LatLng]:
    """Explicit start wins, then accommodation coordinates, then an accommodation lookup."""
    if req.start_location is not None:
        return req.start_location
    stay = req.accommodation
    if stay is None:
        return None
    if stay.lat is not None and stay.lng is not None:
        return LatLng(lat=stay.lat, lng=stay.lng)

    hit = await _first_hit(search, stay.address or f"{req.destination} {stay.name}")
    if hit is None:
        notes.append(f"숙소 '{stay.name}' 위치를 찾지 못해 첫 방문지에서 출발합니다.")
        return None
    return LatLng(lat=hit.lat, lng=hit.lng)


async def resolve_must_visit(
    search: PlaceSearchAggregator,
    destination: str,
    names: Sequence[str],
    notes: List[str],
) -> List[RecommendedPlace]:
    resolved: List[RecommendedPlace] = []
    for name in names:
        name = name.strip()
        if not name:
            continue
        hit = await _first_hit(search, f"{destination} {name}")
        if hit is None:
            notes.append(f"필수 방문지 '{name}'을(를) 찾지 못했습니다.")
            continue
        resolved.append(hit)
    logger.info("Resolved %d of %d must-visit place(s)", len(resolved), len(names))
    return resolved


async def _first_hit(search: PlaceSearchAggregator, query: str) -> Optional[RecommendedPlace]:
    try:
        places = await search.search(query)
    except SearchFailure:
        logger.warning("Lookup failed for '%s'", query, exc_info=True)
        return None
    return places[0] if places else None
