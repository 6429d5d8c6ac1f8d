"""Route optimizer contract, a local default implementation and formatters."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from itinerary_planner.schemas import LatLng, TransportType, TravelTimeInfo
from itinerary_planner.scoring import haversine_km


class RouteStop(BaseModel):
    name: str
    lat: float
    lng: float
    # Position in the caller's list; lets callers re-associate stops without
    # relying on display names.
    index: Optional[int] = None


class RouteResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    optimized_route: List[RouteStop] = Field(default_factory=list)
    # Legs between consecutive stops of ``optimized_route``.
    travel_segments: List[TravelTimeInfo] = Field(default_factory=list)
    total_travel_time: int = 0
    total_distance: float = 0.0


@runtime_checkable
class RouteOptimizer(Protocol):
    async def optimize(
        self,
        start: LatLng,
        stops: List[RouteStop],
        mode: TransportType,
    ) -> RouteResult:
        ...


@dataclass(frozen=True)
class ModeProfile:
    speed_kmh: float
    overhead_minutes: float = 0.0
    base_cost: float = 0.0
    cost_per_km: float = 0.0
    # Transit-style fares: free distance, then a step surcharge per block.
    included_km: float = 0.0
    surcharge_block_km: float = 0.0
    surcharge_per_block: float = 0.0


MODE_PROFILES: Dict[str, ModeProfile] = {
    "walking": ModeProfile(speed_kmh=4.5),
    "driving": ModeProfile(speed_kmh=30.0, overhead_minutes=5.0, cost_per_km=200.0),
    "transit": ModeProfile(
        speed_kmh=20.0,
        overhead_minutes=5.0,
        base_cost=1500.0,
        included_km=10.0,
        surcharge_block_km=5.0,
        surcharge_per_block=100.0,
    ),
}


def estimate_leg(distance_km: float, mode: TransportType) -> TravelTimeInfo:
    """Duration and cost for a single leg of ``distance_km`` road kilometres."""
    profile = MODE_PROFILES[mode]
    minutes = distance_km / profile.speed_kmh * 60 + profile.overhead_minutes
    cost = profile.base_cost + profile.cost_per_km * distance_km
    if profile.surcharge_block_km and distance_km > profile.included_km:
        extra_km = distance_km - profile.included_km
        blocks = int(-(-extra_km // profile.surcharge_block_km))
        cost += blocks * profile.surcharge_per_block
    return TravelTimeInfo(
        duration_minutes=max(0, round(minutes)),
        transport_type=mode,
        estimated_cost=round(cost, -1) if cost else 0.0,
        distance_km=round(distance_km, 2),
    )


class NearestNeighbourRouteOptimizer:
    """Greedy nearest-neighbour ordering over haversine distances.

    Straight-line distance is scaled by ``detour_factor`` to approximate the
    road network. Good enough for a day of at most a handful of stops.
    """

    def __init__(self, detour_factor: float = 1.3):
        self.detour_factor = detour_factor

    async def optimize(
        self,
        start: LatLng,
        stops: List[RouteStop],
        mode: TransportType,
    ) -> RouteResult:
        remaining = list(stops)
        route: List[RouteStop] = []
        cur_lat, cur_lng = start.lat, start.lng
        while remaining:
            nearest = min(remaining, key=lambda s: haversine_km(cur_lat, cur_lng, s.lat, s.lng))
            remaining.remove(nearest)
            route.append(nearest)
            cur_lat, cur_lng = nearest.lat, nearest.lng

        segments: List[TravelTimeInfo] = []
        total_distance = 0.0
        for prev, nxt in zip(route[:-1], route[1:]):
            distance = haversine_km(prev.lat, prev.lng, nxt.lat, nxt.lng) * self.detour_factor
            total_distance += distance
            segments.append(estimate_leg(distance, mode))

        return RouteResult(
            optimized_route=route,
            travel_segments=segments,
            total_travel_time=sum(seg.duration_minutes for seg in segments),
            total_distance=round(total_distance, 3),
        )


def format_travel_time(minutes: float) -> str:
    total = max(0, int(round(minutes)))
    if total < 60:
        return f"{total}분"
    hours, mins = divmod(total, 60)
    if mins == 0:
        return f"{hours}시간"
    return f"{hours}시간 {mins}분"


def format_travel_cost(amount: float) -> str:
    if amount <= 0:
        return "무료"
    return f"{amount:,.0f}원"
