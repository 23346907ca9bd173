"""Compiles filters into Elasticsearch query bodies.

Nothing here raises: filter families with missing or malformed values
contribute no clause.
"""
from typing import Any, Dict, List, Mapping, Optional, Union

from tripsearch.models import AreaFilter, Filters, SpatialContext

TEXT_FIELDS = ["title^3", "description^2", "name^3"]
REGION_FIELDS = ["city", "state", "country", "region", "location_name"]
REGION_BOOST = 0.5

# Filter family -> indexed keyword field
TERMS_FIELDS = (
    ("activity_types", "activity_type"),
    ("difficulty_levels", "difficulty_level"),
    ("water_features", "water_features"),
)


def build_query(
    search_text: str,
    filters: Union[Filters, Mapping[str, Any], None],
    limit: int,
    offset: int,
) -> Dict[str, Any]:
    if search_text:
        must = [
            {
                "multi_match": {
                    "query": search_text,
                    "fields": list(TEXT_FIELDS),
                    "type": "best_fields",
                    "fuzziness": "AUTO",
                }
            }
        ]
    else:
        must = [{"match_all": {}}]

    return {
        "size": limit,
        "from": offset,
        "sort": [
            {"_score": {"order": "desc"}},
            {"created_at": {"order": "desc"}},
        ],
        "query": {
            "bool": {
                "must": must,
                "filter": build_filters(filters),
            }
        },
    }


def build_filters(filters: Union[Filters, Mapping[str, Any], None]) -> List[Dict]:
    filters = Filters.coerce(filters or {})
    clauses = []

    for family, field in TERMS_FIELDS:
        values = getattr(filters, family)
        if values:
            clauses.append({"terms": {field: list(values)}})

    if filters.visibility:
        clauses.append({"term": {"visibility": filters.visibility}})

    if filters.location is not None:
        clauses.append(
            geo_distance(
                filters.location.lat, filters.location.lon, filters.location.radius_km
            )
        )

    # max_duration, max_distance and elevation have no indexed field.
    return clauses


def geo_distance(lat: float, lon: float, radius_km: float) -> Dict[str, Any]:
    return {
        "geo_distance": {
            "distance": f"{radius_km}km",
            "location": {"lat": lat, "lon": lon},
        }
    }


def build_area_filter(area: Optional[AreaFilter]) -> Optional[Dict[str, Any]]:
    if area is None:
        return None
    coords = area.coordinates

    if area.type == "circle":
        if _is_point(coords) and area.radius_km is not None:
            return geo_distance(coords[1], coords[0], area.radius_km)

    elif area.type == "polygon":
        if isinstance(coords, (list, tuple)):
            points = [{"lat": c[1], "lon": c[0]} for c in coords if _is_point(c)]
            if len(points) >= 3:
                return {"geo_polygon": {"location": {"points": points}}}

    elif area.type == "bounds":
        if (
            isinstance(coords, (list, tuple))
            and len(coords) >= 4
            and all(_is_number(c) for c in coords[:4])
        ):
            min_lon, min_lat, max_lon, max_lat = coords[:4]
            return {
                "geo_bounding_box": {
                    "location": {
                        "top_left": {"lat": max_lat, "lon": min_lon},
                        "bottom_right": {"lat": min_lat, "lon": max_lon},
                    }
                }
            }

    elif area.type == "region":
        if area.name:
            return {
                "multi_match": {
                    "query": area.name,
                    "fields": list(REGION_FIELDS),
                    "type": "best_fields",
                    "boost": REGION_BOOST,
                }
            }

    return None


def add_spatial_filters(query: Dict[str, Any], spatial: Optional[SpatialContext]):
    """Append the spatial context's clauses to ``query['query']['bool']['filter']``."""
    if spatial is None:
        return query

    bool_query = query.setdefault("query", {}).setdefault("bool", {})
    bool_query.setdefault("must", [])
    filters = bool_query.setdefault("filter", [])

    for area in (spatial.within, spatial.near, spatial.intersects):
        clause = build_area_filter(area)
        if clause is not None:
            filters.append(clause)

    area_clauses = [c for c in map(build_area_filter, spatial.areas) if c is not None]
    if area_clauses:
        filters.append({"bool": {"should": area_clauses, "minimum_should_match": 1}})

    return query


def visibility_clause(user_id: str) -> Dict[str, Any]:
    """Public documents, plus private ones owned by ``user_id``."""
    return {
        "bool": {
            "should": [
                {"term": {"visibility": "public"}},
                {
                    "bool": {
                        "must": [
                            {"term": {"visibility": "private"}},
                            {"term": {"owner_id": user_id}},
                        ]
                    }
                },
            ],
            "minimum_should_match": 1,
        }
    }


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_point(value) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) >= 2
        and _is_number(value[0])
        and _is_number(value[1])
    )
