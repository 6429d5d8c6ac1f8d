from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from itinerary_planner.config import Settings
from itinerary_planner.errors import PlannerError
from itinerary_planner.metrics import calculate_itinerary_cost, calculate_itinerary_total_time
from itinerary_planner.orchestrator import Pipeline, build_pipeline, orchestrate_itinerary
from itinerary_planner.schemas import ItineraryRequest, PlaceSearchRequest, RecommendedPlace

app = FastAPI(title="Itinerary Planner API")

# Operators can scope browser access via ITINERARY_PLANNER_ALLOWED_ORIGINS.
app.add_middleware(
    CORSMiddleware,
    allow_origins=Settings.from_env().allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PlannerError)
async def _planner_error_handler(request: Request, exc: PlannerError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind, "retryable": exc.retryable},
    )


@lru_cache(maxsize=1)
def get_pipeline() -> Pipeline:
    return build_pipeline()


def _dump(places: List[RecommendedPlace]) -> List[Dict[str, Any]]:
    return [place.model_dump(mode="json", by_alias=True) for place in places]


@app.post("/api/itinerary")
async def api_itinerary(
    payload: Dict[str, Any] = Body(...),
    pipeline: Pipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    """Primary endpoint consumed by the planner wizard's result step."""
    try:
        ItineraryRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False)) from exc
    return await orchestrate_itinerary(payload, pipeline)


@app.post("/api/places/search")
async def api_search_places(
    body: PlaceSearchRequest,
    pipeline: Pipeline = Depends(get_pipeline),
) -> List[Dict[str, Any]]:
    places = await pipeline.search.search(
        body.query,
        location=body.location,
        preferences=body.preferences,
        radius=body.radius,
    )
    return _dump(places)


@app.get("/api/places/popular")
async def api_popular_places(
    region: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=100),
    preferences: Optional[List[str]] = Query(None),
    pipeline: Pipeline = Depends(get_pipeline),
) -> List[Dict[str, Any]]:
    places = await pipeline.discovery.discover(region, preferences or [], limit)
    return _dump(places)


@app.post("/api/itinerary/metrics")
async def api_day_metrics(places: List[RecommendedPlace] = Body(...)) -> Dict[str, Any]:
    return {
        "time": calculate_itinerary_total_time(places).model_dump(by_alias=True),
        "cost": calculate_itinerary_cost(places).model_dump(by_alias=True),
    }
