from typing import Any, Dict, List, Optional
import html
import logging
import os
import re

import httpx

from itinerary_planner.errors import ProviderFailure
from itinerary_planner.schemas import RecommendedPlace
from itinerary_planner.scoring import TAG_DELIMITER, is_valid_coordinate, split_tags
from itinerary_planner.tools.providers import derive_quality_signals

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

# mapx / mapy are WGS84 degrees scaled by 1e7.
_COORD_SCALE = 10_000_000


class NaverPlaceSearch:
    """
    Naver Local search. Titles come back with ``<b>`` highlight markup and
    categories use a bare ``>`` delimiter; both are cleaned up in ``normalize``.
    """
    SEARCH_ENDPOINT = "https://openapi.naver.com/v1/search/local.json"
    source = "naver"

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        *,
        display: int = 5,
        timeout: float = 10.0,
    ):
        self.client_id = client_id or os.getenv("NAVER_CLIENT_ID")
        self.client_secret = client_secret or os.getenv("NAVER_CLIENT_SECRET")
        # The local endpoint returns at most 5 items per call.
        self.display = max(1, min(5, display))
        self.timeout = timeout

    async def search(self, query: str) -> List[Dict[str, Any]]:
        if not (self.client_id and self.client_secret):
            raise ProviderFailure("NAVER_CLIENT_ID / NAVER_CLIENT_SECRET not configured")

        headers = {
            "X-Naver-Client-Id": self.client_id,
            "X-Naver-Client-Secret": self.client_secret,
        }
        params = {"query": query, "display": self.display, "start": 1, "sort": "random"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.SEARCH_ENDPOINT, params=params, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise ProviderFailure(f"Naver search failed for '{query}': {exc}") from exc

        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise ProviderFailure(f"Naver search returned an unexpected payload for '{query}'")
        logger.debug("Naver query '%s' returned %d items", query, len(items))
        return items

    def normalize(self, raw: Dict[str, Any], rank: int) -> Optional[RecommendedPlace]:
        try:
            lng = int(raw.get("mapx")) / _COORD_SCALE
            lat = int(raw.get("mapy")) / _COORD_SCALE
        except (TypeError, ValueError):
            return None
        if not is_valid_coordinate(lat, lng):
            return None
        name = _strip_markup(raw.get("title") or "")
        if not name:
            return None

        category = _normalize_category(raw.get("category") or "")
        # Naver has no place id; the name plus the raw coordinates is stable enough.
        place_id = f"naver_{raw.get('mapx')}_{raw.get('mapy')}_{name}"
        rating, review_count, popularity = derive_quality_signals(place_id, rank)
        return RecommendedPlace(
            id=place_id,
            name=name,
            category=category,
            address=raw.get("address") or "",
            road_address=raw.get("roadAddress") or None,
            lat=lat,
            lng=lng,
            phone=raw.get("telephone") or None,
            description=_strip_markup(raw.get("description") or "") or None,
            place_url=raw.get("link") or None,
            source="naver",
            tags=split_tags(category),
            rating=rating,
            review_count=review_count,
            match_score=popularity,
        )


def _strip_markup(text: str) -> str:
    return html.unescape(re.sub(r"<[^>]+>", "", text)).strip()


def _normalize_category(category: str) -> str:
    parts = [part.strip() for part in category.split(">") if part.strip()]
    return TAG_DELIMITER.join(parts)
