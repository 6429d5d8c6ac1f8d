"""Per-day itinerary summaries."""
from __future__ import annotations

from typing import Dict, Iterable

from itinerary_planner.schemas import CostSummary, RecommendedPlace, TimeSummary
from itinerary_planner.tools.route_optimizer import format_travel_cost, format_travel_time


def calculate_itinerary_total_time(
    day_places: Iterable[RecommendedPlace],
    include_visit_time: bool = True,
) -> TimeSummary:
    total_travel_time = 0
    total_visit_time = 0
    for place in day_places:
        if place.travel_time_from_previous is not None:
            total_travel_time += place.travel_time_from_previous.duration_minutes
        if include_visit_time and place.suggested_visit_duration:
            total_visit_time += place.suggested_visit_duration

    total_time = total_travel_time + total_visit_time
    return TimeSummary(
        total_travel_time=total_travel_time,
        total_visit_time=total_visit_time,
        total_time=total_time,
        formatted_total_time=format_travel_time(total_time),
    )


def calculate_itinerary_cost(day_places: Iterable[RecommendedPlace]) -> CostSummary:
    total_travel_cost = 0.0
    cost_by_transport: Dict[str, float] = {}
    for place in day_places:
        leg = place.travel_time_from_previous
        if leg is None or not leg.estimated_cost:
            continue
        total_travel_cost += leg.estimated_cost
        cost_by_transport[leg.transport_type] = cost_by_transport.get(leg.transport_type, 0.0) + leg.estimated_cost

    return CostSummary(
        total_travel_cost=total_travel_cost,
        formatted_total_cost=format_travel_cost(total_travel_cost),
        cost_by_transport=cost_by_transport,
    )
