from datetime import date
from typing import Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

TransportType = Literal["walking", "driving", "transit"]
PlaceSource = Literal["kakao", "naver", "combined"]

# The UI speaks camelCase; accept either spelling on input.
_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LatLng(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


# ------- Place models -------
class TravelTimeInfo(BaseModel):
    model_config = _CAMEL

    duration_minutes: int = Field(..., ge=0)
    transport_type: TransportType
    estimated_cost: Optional[float] = Field(default=None, ge=0)
    distance_km: Optional[float] = None


class RecommendedPlace(BaseModel):
    model_config = _CAMEL

    id: str
    name: str
    category: str = ""
    address: str = ""
    road_address: Optional[str] = None
    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    review_count: Optional[int] = Field(default=None, ge=0)
    match_score: float = 0.0
    source: PlaceSource = "kakao"
    distance: Optional[float] = None
    tags: List[str] = Field(default_factory=list)
    phone: Optional[str] = None
    description: Optional[str] = None
    place_url: Optional[str] = None
    final_score: Optional[float] = None
    travel_time_from_previous: Optional[TravelTimeInfo] = None
    suggested_visit_duration: Optional[int] = None


Itinerary = Dict[int, List[RecommendedPlace]]


# ------- Request models -------
class Dates(BaseModel):
    start: date
    end: date


class Accommodation(BaseModel):
    name: str
    address: Optional[str] = None
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)


class ItineraryRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    destination: str = Field(..., min_length=1, validation_alias=AliasChoices("destination", "region"))
    days: Optional[int] = Field(default=None, ge=1, le=30)
    dates: Optional[Dates] = None
    preferences: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("preferences", "interests"),
    )
    transport_type: TransportType = "driving"
    start_location: Optional[LatLng] = None
    accommodation: Optional[Accommodation] = None
    must_visit: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_trip_length(self) -> "ItineraryRequest":
        if self.days is None and self.dates is None:
            raise ValueError("either days or dates must be provided")
        if self.dates is not None and self.dates.end < self.dates.start:
            raise ValueError("dates.end must not be before dates.start")
        return self

    def trip_days(self) -> int:
        """Explicit day count wins; otherwise count calendar days inclusively."""
        if self.days is not None:
            return self.days
        if self.dates is None:
            raise ValueError("either days or dates must be provided")
        return min(30, (self.dates.end - self.dates.start).days + 1)


class PlaceSearchRequest(BaseModel):
    model_config = _CAMEL

    query: str = Field(..., min_length=1)
    location: Optional[LatLng] = None
    preferences: List[str] = Field(default_factory=list)
    radius: Optional[float] = Field(default=None, gt=0)


# ------- Response models -------
class TimeSummary(BaseModel):
    model_config = _CAMEL

    total_travel_time: int
    total_visit_time: int
    total_time: int
    formatted_total_time: str


class CostSummary(BaseModel):
    model_config = _CAMEL

    total_travel_cost: float
    formatted_total_cost: str
    cost_by_transport: Dict[str, float] = Field(default_factory=dict)


class DaySummary(BaseModel):
    model_config = _CAMEL

    day: int
    place_count: int
    time: TimeSummary
    cost: CostSummary


class ItineraryResponse(BaseModel):
    model_config = _CAMEL

    query_echo: ItineraryRequest
    itinerary: Dict[int, List[RecommendedPlace]] = Field(default_factory=dict)
    summaries: List[DaySummary] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)
