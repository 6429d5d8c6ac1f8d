"""Place search provider contract and helpers shared by provider adapters."""
from __future__ import annotations

import hashlib
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from itinerary_planner.schemas import RecommendedPlace


@runtime_checkable
class PlaceSearchProvider(Protocol):
    """Pluggable place search.

    ``search`` returns the provider's raw records; ``normalize`` maps one raw
    record (with its position in the result list) onto ``RecommendedPlace`` or
    returns ``None`` when the record is unusable.
    """

    source: str

    async def search(self, query: str) -> List[Dict[str, Any]]:
        ...

    def normalize(self, raw: Dict[str, Any], rank: int) -> Optional[RecommendedPlace]:
        ...


def derive_quality_signals(key: str, rank: int) -> Tuple[float, int, float]:
    """Return a simulated ``(rating, review_count, popularity)`` for a place.

    Neither Kakao nor Naver exposes ratings through their local search APIs.
    Values are derived from a stable hash of ``key`` so the same place always
    scores the same; popularity decays with the provider's result rank.
    """
    digest = hashlib.sha1(key.encode("utf-8")).digest()
    rating = round(3.0 + (digest[0] / 255) * 2.0, 1)
    review_count = 10 + int.from_bytes(digest[1:3], "big") % 990
    popularity = max(0.0, 30.0 - 2.0 * rank)
    return rating, review_count, popularity
