"""Region-wide candidate discovery built on the place search aggregator."""
from __future__ import annotations

from typing import Iterable, List, Optional
import logging
import os

from itinerary_planner.agents.place_search import PlaceSearchAggregator
from itinerary_planner.config import DEFAULT_TABLES, PlannerTables
from itinerary_planner.errors import DiscoveryFailure
from itinerary_planner.schemas import RecommendedPlace
from itinerary_planner.scoring import final_score

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("ITINERARY_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


class RegionalDiscovery:
    def __init__(self, search: PlaceSearchAggregator, *, tables: PlannerTables = DEFAULT_TABLES):
        self.search = search
        self.tables = tables

    def build_queries(self, region: str) -> List[str]:
        queries = [f"{region} {suffix}" for suffix in self.tables.base_query_suffixes]
        specific = self.tables.region_queries.get(region)
        if specific:
            queries.extend(specific)
        else:
            queries.extend(f"{region} {suffix}" for suffix in self.tables.fallback_query_suffixes)
        return queries

    async def discover(
        self,
        region: str,
        preferences: Optional[Iterable[str]] = None,
        limit: int = 10,
    ) -> List[RecommendedPlace]:
        """Return up to ``limit`` well-rated, de-duplicated places for ``region``."""
        prefs = list(preferences or [])
        try:
            queries = self.build_queries(region)
            logger.info("Regional discovery start: region=%s, queries=%d, limit=%d", region, len(queries), limit)

            pooled: List[RecommendedPlace] = []
            for query in queries:
                try:
                    places = await self.search.search(query, preferences=prefs)
                except Exception:
                    logger.warning("Discovery query '%s' failed; skipping", query, exc_info=True)
                    continue
                top = [
                    place for place in places
                    if place.rating is not None and place.rating >= self.tables.min_discovery_rating
                ][: self.tables.per_query_cap]
                logger.debug("Query '%s' kept %d high-quality results", query, len(top))
                pooled.extend(top)

            unique = _dedupe(pooled)
            ranked = [place.model_copy(update={"final_score": final_score(place)}) for place in unique]
            ranked.sort(key=lambda p: p.final_score, reverse=True)
            logger.info(
                "Regional discovery for %s: %d pooled, %d unique, returning %d",
                region,
                len(pooled),
                len(unique),
                min(limit, len(ranked)),
            )
            return ranked[:limit]
        except Exception as exc:
            logger.error("Regional discovery failed for %s", region, exc_info=True)
            raise DiscoveryFailure() from exc


def _dedupe(places: List[RecommendedPlace]) -> List[RecommendedPlace]:
    """Drop any place whose name, or non-empty address, appeared earlier in ``places``.

    Dropped places still count as "earlier", so a place sharing a name with a
    dropped duplicate is dropped too.
    """
    seen_names: set[str] = set()
    seen_addresses: set[str] = set()
    unique: List[RecommendedPlace] = []
    for place in places:
        duplicate = place.name in seen_names or bool(place.address and place.address in seen_addresses)
        seen_names.add(place.name)
        if place.address:
            seen_addresses.add(place.address)
        if not duplicate:
            unique.append(place)
    return unique
