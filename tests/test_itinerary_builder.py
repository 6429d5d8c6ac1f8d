import asyncio
from typing import List

import pytest

from itinerary_planner.agents.itinerary_builder import ItineraryBuilder
from itinerary_planner.agents.place_search import PlaceSearchAggregator
from itinerary_planner.agents.regional_discovery import RegionalDiscovery
from itinerary_planner.agents.route_adapter import DayRouteOptimizer
from itinerary_planner.errors import DiscoveryFailure, NoCandidatesFailure
from itinerary_planner.schemas import RecommendedPlace
from itinerary_planner.tools.route_optimizer import NearestNeighbourRouteOptimizer


class StubDiscovery:
    def __init__(self, pool: List[RecommendedPlace], error: Exception | None = None):
        self.pool = pool
        self.error = error
        self.calls = []

    async def discover(self, region, preferences=None, limit=10):
        self.calls.append((region, list(preferences or []), limit))
        if self.error is not None:
            raise self.error
        return [place.model_copy() for place in self.pool]


class PassThroughRoute:
    def __init__(self, fail: bool = False):
        self.fail = fail

    async def optimize_day(self, places, start_location=None, transport_type="driving"):
        if self.fail:
            raise RuntimeError("optimizer offline")
        return list(places)


def _p(pid: str, category: str, rating: float, match: float = 0.0) -> RecommendedPlace:
    return RecommendedPlace(
        id=pid, name=f"장소-{pid}", category=category, rating=rating, match_score=match, lat=33.4, lng=126.5
    )


ATTRACTION = "여행 > 관광,명소"
RESTAURANT = "음식점 > 한식"
CULTURE = "문화,예술 > 공연장"
SHOPPING = "가정,생활 > 시장"
CAFE = "카페 > 커피전문점"
NIGHTLIFE = "술집 > 와인바"


def _full_pool() -> List[RecommendedPlace]:
    return [
        _p("A3", ATTRACTION, 4.0),
        _p("A1", ATTRACTION, 4.9),
        _p("A2", ATTRACTION, 4.5),
        _p("R3", RESTAURANT, 4.0),
        _p("R1", RESTAURANT, 4.8),
        _p("R2", RESTAURANT, 4.6),
        _p("C1", CULTURE, 4.1),
        _p("S1", SHOPPING, 4.2),
        _p("F1", CAFE, 4.3),
        _p("N1", NIGHTLIFE, 3.9),
    ]


def _builder(discovery, route=None) -> ItineraryBuilder:
    return ItineraryBuilder(discovery, route or PassThroughRoute())


def test_time_slots_fill_in_template_order():
    async def run() -> None:
        discovery = StubDiscovery(_full_pool())

        itinerary = await _builder(discovery).build("제주도", ["맛집"], 1)

        assert [p.id for p in itinerary[0]] == ["A1", "A2", "R1", "C1", "S1", "F1", "R2", "N1"]
        assert discovery.calls == [("제주도", ["맛집"], 12)]

    asyncio.run(run())


def test_place_in_two_buckets_is_used_once_per_day():
    async def run() -> None:
        pool = [
            _p("M", "문화,예술 > 박물관", 5.0),
            _p("A1", ATTRACTION, 4.0),
            _p("C1", CULTURE, 3.6),
        ]

        itinerary = await _builder(StubDiscovery(pool)).build("경주", [], 1)

        assert [p.id for p in itinerary[0]] == ["M", "A1", "C1"]

    asyncio.run(run())


def test_backfill_only_draws_from_categorised_places():
    async def run() -> None:
        pool = [
            _p("A1", ATTRACTION, 4.0),
            _p("A2", ATTRACTION, 4.2),
            _p("A3", ATTRACTION, 3.8),
            _p("H1", "숙박 > 호텔", 5.0),
        ]

        itinerary = await _builder(StubDiscovery(pool)).build("강릉", [], 1)

        assert [p.id for p in itinerary[0]] == ["A2", "A1", "A3"]

    asyncio.run(run())


def test_days_never_share_places_and_are_capped():
    async def run() -> None:
        pool = _full_pool() + [_p(f"X{i}", ATTRACTION, 3.7) for i in range(10)]

        itinerary = await _builder(StubDiscovery(pool)).build("제주도", [], 3)

        assert sorted(itinerary) == [0, 1, 2]
        seen = set()
        for day_places in itinerary.values():
            assert len(day_places) <= 8
            ids = {p.id for p in day_places}
            assert not ids & seen
            seen |= ids
        assert len(itinerary[0]) == 8
        assert len(itinerary[1]) == 8
        assert len(itinerary[2]) == 4

    asyncio.run(run())


def test_must_visit_places_are_pinned_round_robin():
    async def run() -> None:
        pinned = [_p("MV1", "여행 > 관광,명소 > 산", 3.0), _p("MV2", "음식점 > 일식", 3.0)]

        itinerary = await _builder(StubDiscovery(_full_pool())).build("제주도", [], 2, must_visit=pinned)

        assert itinerary[0][0].id == "MV1"
        assert itinerary[1][0].id == "MV2"
        assert len(itinerary[0]) == 8

    asyncio.run(run())


def test_must_visit_place_in_pool_waits_for_its_own_day():
    async def run() -> None:
        pinned = [_p("MV1", "여행 > 관광,명소 > 산", 3.0), _p("A1", ATTRACTION, 4.9)]

        itinerary = await _builder(StubDiscovery(_full_pool())).build("제주도", [], 2, must_visit=pinned)

        assert "A1" not in [p.id for p in itinerary[0]]
        assert [p.id for p in itinerary[0]][:3] == ["MV1", "A2", "A3"]
        assert itinerary[1][0].id == "A1"

    asyncio.run(run())


def test_empty_pool_raises_no_candidates():
    async def run() -> None:
        with pytest.raises(NoCandidatesFailure):
            await _builder(StubDiscovery([])).build("무인도", ["자연"], 2)

    asyncio.run(run())


def test_discovery_failure_propagates():
    async def run() -> None:
        with pytest.raises(DiscoveryFailure):
            await _builder(StubDiscovery([], error=DiscoveryFailure())).build("제주도", [], 2)

    asyncio.run(run())


def test_internal_fault_degrades_to_empty_itinerary():
    async def run() -> None:
        builder = _builder(StubDiscovery(_full_pool()), PassThroughRoute(fail=True))

        assert await builder.build("제주도", [], 2) == {}

    asyncio.run(run())


def test_jeju_two_day_scenario(region_provider):
    async def run() -> None:
        search = PlaceSearchAggregator([region_provider])
        builder = ItineraryBuilder(RegionalDiscovery(search), DayRouteOptimizer(NearestNeighbourRouteOptimizer()))

        itinerary = await builder.build("제주도", ["자연"], 2)

        assert sorted(itinerary) == [0, 1]
        day0 = {p.id for p in itinerary[0]}
        day1 = {p.id for p in itinerary[1]}
        assert not day0 & day1
        for places in itinerary.values():
            assert 0 < len(places) <= 8
            for place in places:
                assert place.lat is not None and place.lng is not None
                assert place.suggested_visit_duration is not None
            assert places[0].travel_time_from_previous is None
            assert all(p.travel_time_from_previous is not None for p in places[1:])

    asyncio.run(run())
