from typing import Any, Dict, List, Optional
import logging
import os

import httpx

from itinerary_planner.errors import ProviderFailure
from itinerary_planner.schemas import RecommendedPlace
from itinerary_planner.scoring import is_valid_coordinate, split_tags
from itinerary_planner.tools.providers import derive_quality_signals

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


class KakaoPlaceSearch:
    """
    Kakao Local keyword search. Documents carry ``x`` (lng) and ``y`` (lat) as strings.
    """
    SEARCH_ENDPOINT = "https://dapi.kakao.com/v2/local/search/keyword.json"
    source = "kakao"

    def __init__(self, api_key: Optional[str] = None, *, size: int = 15, timeout: float = 10.0):
        self.api_key = api_key or os.getenv("KAKAO_REST_API_KEY")
        # Kakao caps page size at 15.
        self.size = max(1, min(15, size))
        self.timeout = timeout

    async def search(self, query: str) -> List[Dict[str, Any]]:
        if not self.api_key:
            raise ProviderFailure("KAKAO_REST_API_KEY environment variable not configured")

        headers = {"Authorization": f"KakaoAK {self.api_key}"}
        params = {"query": query, "size": self.size}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.SEARCH_ENDPOINT, params=params, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise ProviderFailure(f"Kakao search failed for '{query}': {exc}") from exc

        documents = data.get("documents") if isinstance(data, dict) else None
        if not isinstance(documents, list):
            raise ProviderFailure(f"Kakao search returned an unexpected payload for '{query}'")
        logger.debug("Kakao query '%s' returned %d documents", query, len(documents))
        return documents

    def normalize(self, raw: Dict[str, Any], rank: int) -> Optional[RecommendedPlace]:
        lat, lng = raw.get("y"), raw.get("x")
        if not is_valid_coordinate(lat, lng):
            logger.debug("Dropping Kakao document without usable coordinates: %s", raw.get("place_name"))
            return None
        name = (raw.get("place_name") or "").strip()
        if not name:
            return None

        place_id = str(raw.get("id") or f"kakao_{rank}")
        category = raw.get("category_name") or ""
        rating, review_count, popularity = derive_quality_signals(place_id, rank)
        return RecommendedPlace(
            id=place_id,
            name=name,
            category=category,
            address=raw.get("address_name") or "",
            road_address=raw.get("road_address_name") or None,
            lat=float(lat),
            lng=float(lng),
            phone=raw.get("phone") or None,
            description=category or None,
            place_url=raw.get("place_url") or None,
            source="kakao",
            tags=split_tags(category),
            rating=rating,
            review_count=review_count,
            match_score=popularity,
        )
