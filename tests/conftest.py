from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import pytest

from itinerary_planner.schemas import RecommendedPlace
from itinerary_planner.scoring import split_tags

CATEGORY_CYCLE = [
    "여행 > 관광,명소 > 자연경관",
    "음식점 > 한식 > 해물,생선",
    "문화,예술 > 전시관",
    "가정,생활 > 쇼핑 > 전통시장",
    "음식점 > 카페 > 디저트카페",
    "음식점 > 양식 > 이탈리안",
    "음식점 > 술집 > 야경 바",
    "여행 > 공원 > 도시근린공원",
]


def make_raw(
    place_id: str,
    name: str,
    *,
    category: str = "여행 > 관광,명소",
    rating: Optional[float] = 4.0,
    review_count: int = 100,
    match_score: float = 0.0,
    lat: float = 33.45,
    lng: float = 126.55,
    address: str = "",
) -> Dict[str, Any]:
    return {
        "id": place_id,
        "name": name,
        "category": category,
        "address": address,
        "lat": lat,
        "lng": lng,
        "rating": rating,
        "review_count": review_count,
        "match_score": match_score,
    }


class FakeProvider:
    """In-memory provider; raw records are already in ``RecommendedPlace`` shape."""

    source = "kakao"

    def __init__(
        self,
        responses: Dict[str, List[Dict[str, Any]]] | Callable[[str], List[Dict[str, Any]]] | None = None,
        *,
        fail_on: tuple = (),
        source: str = "kakao",
    ):
        self.responses = responses or {}
        self.fail_on = set(fail_on)
        self.source = source
        self.calls: List[str] = []

    async def search(self, query: str) -> List[Dict[str, Any]]:
        self.calls.append(query)
        if query in self.fail_on or "*" in self.fail_on:
            raise RuntimeError(f"provider down for {query}")
        if callable(self.responses):
            return self.responses(query)
        return list(self.responses.get(query, []))

    def normalize(self, raw: Dict[str, Any], rank: int) -> Optional[RecommendedPlace]:
        return RecommendedPlace.model_validate(
            {**raw, "source": self.source, "tags": split_tags(raw.get("category", ""))}
        )


def region_responses(query: str) -> List[Dict[str, Any]]:
    """Four well-rated, distinct places for any query, spread over every bucket."""
    seed = sum(ord(ch) for ch in query)
    places = []
    for j in range(4):
        key = f"{query}#{j}"
        places.append(
            make_raw(
                key,
                f"{query} 장소{j}",
                category=CATEGORY_CYCLE[(seed + j) % len(CATEGORY_CYCLE)],
                rating=round(3.6 + ((seed + j) % 14) / 10, 1),
                review_count=(seed * (j + 1)) % 900,
                match_score=float((seed + 3 * j) % 25),
                lat=33.25 + ((seed + j) % 30) / 100,
                lng=126.2 + ((seed * 7 + j) % 70) / 100,
                address=f"제주특별자치도 주소 {key}",
            )
        )
    return places


@pytest.fixture
def fake_provider_cls():
    return FakeProvider


@pytest.fixture
def raw_place():
    return make_raw


@pytest.fixture
def region_provider():
    return FakeProvider(region_responses)
