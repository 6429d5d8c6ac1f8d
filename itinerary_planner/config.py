"""Runtime settings and the lookup tables that drive scoring and slotting."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass(frozen=True)
class TimeSlot:
    name: str
    bucket: str
    count: int


@dataclass(frozen=True)
class Settings:
    kakao_api_key: Optional[str] = None
    naver_client_id: Optional[str] = None
    naver_client_secret: Optional[str] = None
    http_timeout: float = 10.0
    search_size: int = 15
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        raw_origins = os.getenv("ITINERARY_PLANNER_ALLOWED_ORIGINS") or "*"
        origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
        return cls(
            kakao_api_key=os.getenv("KAKAO_REST_API_KEY") or None,
            naver_client_id=os.getenv("NAVER_CLIENT_ID") or None,
            naver_client_secret=os.getenv("NAVER_CLIENT_SECRET") or None,
            http_timeout=_env_float("ITINERARY_PLANNER_HTTP_TIMEOUT", 10.0),
            search_size=int(_env_float("ITINERARY_PLANNER_SEARCH_SIZE", 15)),
            allowed_origins=origins or ["*"],
        )


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


# Preference -> category keywords. Kakao group codes (FD6, CE7, ...) are kept
# so they match when a provider surfaces them in the category string.
PREFERENCE_CATEGORY_MAP: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "맛집": ("음식점", "카페", "디저트", "FD6", "CE7"),
    "관광": ("관광명소", "박물관", "전시관", "AT4", "CT1"),
    "쇼핑": ("쇼핑몰", "백화점", "시장", "MT1", "CS2"),
    "자연": ("공원", "해수욕장", "산", "강", "AT4"),
    "문화": ("박물관", "미술관", "공연장", "문화재", "CT1", "AC5"),
    "체험": ("체험관", "테마파크", "스포츠", "AT4", "AD5"),
    "휴식": ("카페", "공원", "스파", "호텔", "CE7", "AT4"),
    "야경": ("전망대", "다리", "타워", "AT4"),
})

BASE_QUERY_SUFFIXES: Tuple[str, ...] = (
    "맛집",
    "관광지",
    "카페",
    "쇼핑",
    "박물관",
    "공원",
    "명소",
    "체험",
)

REGION_QUERIES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "제주도": ("제주 한라산", "제주 성산일출봉", "제주 우도", "제주 중문", "제주 협재해수욕장"),
    "부산": ("부산 해운대", "부산 광안리", "부산 감천문화마을", "부산 자갈치시장", "부산 태종대"),
    "서울": ("서울 강남", "서울 명동", "서울 홍대", "서울 인사동", "서울 경복궁"),
    "속초": ("속초 설악산", "속초 해수욕장", "속초 시장", "속초 케이블카", "속초 낙산사"),
    "강릉": ("강릉 안목해변", "강릉 정동진", "강릉 오죽헌", "강릉 커피거리", "강릉 경포대"),
    "전주": ("전주 한옥마을", "전주 비빔밥", "전주 객리단길", "전주 한지", "전주 풍남문"),
    "경주": ("경주 불국사", "경주 석굴암", "경주 첨성대", "경주 안압지", "경주 대릉원"),
    "여수": ("여수 밤바다", "여수 엑스포", "여수 오동도", "여수 향일암", "여수 케이블카"),
})

FALLBACK_QUERY_SUFFIXES: Tuple[str, ...] = ("유명한곳", "인기장소")

CATEGORY_BUCKETS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "attractions": ("관광", "명소", "공원", "박물관", "미술관"),
    "restaurants": ("음식점", "맛집", "한식", "중식", "일식", "양식"),
    "cafes": ("카페", "커피", "디저트"),
    "shopping": ("쇼핑", "시장", "백화점", "마트"),
    "culture": ("문화", "전시", "공연", "역사"),
    "nightlife": ("야경", "술집", "바", "클럽"),
})

TIME_SLOTS: Tuple[TimeSlot, ...] = (
    TimeSlot("morning", "attractions", 2),
    TimeSlot("lunch", "restaurants", 1),
    TimeSlot("afternoon1", "culture", 1),
    TimeSlot("afternoon2", "shopping", 1),
    TimeSlot("coffee", "cafes", 1),
    TimeSlot("dinner", "restaurants", 1),
    TimeSlot("evening", "nightlife", 1),
)

# Checked in order; the first rule with a keyword in the category wins.
VISIT_DURATION_RULES: Tuple[Tuple[Tuple[str, ...], int], ...] = (
    (("박물관", "미술관"), 90),
    (("관광", "명소", "공원"), 60),
    (("음식점", "맛집"), 90),
    (("카페", "디저트"), 45),
    (("쇼핑", "시장", "백화점"), 120),
    (("문화", "전시"), 75),
    (("체험", "테마파크"), 180),
)


@dataclass(frozen=True)
class PlannerTables:
    preference_categories: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: PREFERENCE_CATEGORY_MAP)
    base_query_suffixes: Tuple[str, ...] = BASE_QUERY_SUFFIXES
    region_queries: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: REGION_QUERIES)
    fallback_query_suffixes: Tuple[str, ...] = FALLBACK_QUERY_SUFFIXES
    category_buckets: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: CATEGORY_BUCKETS)
    time_slots: Tuple[TimeSlot, ...] = TIME_SLOTS
    visit_duration_rules: Tuple[Tuple[Tuple[str, ...], int], ...] = VISIT_DURATION_RULES
    default_visit_duration: int = 60
    min_discovery_rating: float = 3.5
    per_query_cap: int = 3
    places_per_day: int = 8
    candidates_per_day: int = 12


DEFAULT_TABLES = PlannerTables()
