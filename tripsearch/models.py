from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class Intent(str, Enum):
    ACTIVITY = "activity"
    PLACE = "place"
    MIXED = "mixed"
    UNKNOWN = "unknown"


class SearchScope(str, Enum):
    ACTIVITIES = "activities"
    PLACES = "places"
    UNIFIED = "unified"


class LocationFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_km: float = 50.0


class AreaFilter(BaseModel):
    """A geometric constraint.

    ``coordinates`` depends on ``type``: ``[lon, lat]`` for circles,
    ``[min_lon, min_lat, max_lon, max_lat]`` for bounds and a list of
    ``[lon, lat]`` pairs for polygons. Regions are matched by name.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["circle", "region", "bounds", "polygon"]
    name: Optional[str] = None
    coordinates: Optional[Any] = None
    radius_km: Optional[float] = None


class SpatialContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    areas: List[AreaFilter] = Field(default_factory=list)
    within: Optional[AreaFilter] = None
    intersects: Optional[AreaFilter] = None
    near: Optional[AreaFilter] = None


class ElevationFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    comparison: Optional[Literal["above", "below", "around"]] = None
    meters: Optional[float] = None
    band: Optional[Literal["high", "low"]] = None


class GeoDistanceFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float
    radius_km: float


class Filters(BaseModel):
    """Closed set of filter families. Unknown keys are dropped."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    activity_types: Optional[List[str]] = None
    difficulty_levels: Optional[List[str]] = None
    water_features: Optional[List[str]] = None
    max_duration: Optional[float] = None
    max_distance: Optional[float] = None
    elevation: Optional[ElevationFilter] = None
    visibility: Optional[str] = None
    location: Optional[GeoDistanceFilter] = None

    @classmethod
    def coerce(cls, data: Mapping[str, Any]) -> "Filters":
        """Build from a loose mapping, skipping values of the wrong shape."""
        if isinstance(data, Filters):
            return data
        accepted = {}
        for key, value in (data or {}).items():
            if key not in cls.model_fields:
                continue
            try:
                cls.model_validate({key: value})
            except ValidationError:
                continue
            accepted[key] = value
        return cls.model_validate(accepted)

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class ParsedQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    intent: Intent = Intent.UNKNOWN
    search_text: str = ""
    filters: Filters = Field(default_factory=Filters)
    location: Optional[LocationFilter] = None
    spatial: Optional[SpatialContext] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    keywords: List[str] = Field(default_factory=list)
    explanation: str = ""


class SearchResult(BaseModel):
    id: str
    type: Literal["activity", "place"]
    source: Dict[str, Any] = Field(default_factory=dict)
    score: Optional[float] = None


class SearchResponse(BaseModel):
    total: int = 0
    results: List[SearchResult] = Field(default_factory=list)
    took: int = 0


class SearchRequest(BaseModel):
    query: str
    limit: int = 0
    offset: int = 0
    session_id: Optional[str] = None
    filters: Optional[Filters] = None


class NaturalLanguageSearchResponse(BaseModel):
    query: ParsedQuery
    results: List[SearchResult]
    total: int
    took: int
    suggestions: List[str] = Field(default_factory=list)
