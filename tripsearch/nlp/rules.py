from typing import Dict, List, Optional, Tuple

from tripsearch.core.config import settings
from tripsearch.models import (
    AreaFilter,
    ElevationFilter,
    Filters,
    Intent,
    LocationFilter,
    ParsedQuery,
    SpatialContext,
)
from tripsearch.nlp import patterns
from tripsearch.nlp.explanation import generate_explanation
from tripsearch.nlp.patterns import first_match


BASE_CONFIDENCE = 0.6
INTENT_BOOST = 0.2
LOCATION_BOOST = 0.1
SPATIAL_BOOST = 0.15

MIN_NAME_LENGTH = 3


def _named(match) -> bool:
    return len(match.group("name").strip()) >= MIN_NAME_LENGTH


def extract_keywords(query: str) -> List[str]:
    keywords = []
    for word in query.split():
        cleaned = word.strip(patterns.KEYWORD_STRIP_CHARS).lower()
        if len(cleaned) > 2 and cleaned not in patterns.STOP_WORDS:
            keywords.append(cleaned)
    return keywords


class RuleBasedParser:
    """Deterministic parser built on the pattern tables.

    Keyword tables run against the lowercased text. The regex families run
    case-insensitively against the whitespace-collapsed original so extracted
    names keep their casing.
    """

    def parse(self, text: str) -> ParsedQuery:
        query = text.strip().lower()
        text = " ".join(text.split())
        confidence = BASE_CONFIDENCE
        filters: Dict[str, object] = {}

        intent = self.classify_intent(query)
        if intent in (Intent.ACTIVITY, Intent.PLACE):
            confidence += INTENT_BOOST

        if intent in (Intent.ACTIVITY, Intent.MIXED):
            filters.update(self.parse_activity_filters(query))

        location = self.parse_location(text)
        if location is not None:
            confidence += LOCATION_BOOST

        spatial, elevation = self.parse_spatial_context(text)
        if spatial is not None or elevation is not None:
            confidence += SPATIAL_BOOST
        if elevation is not None:
            filters["elevation"] = elevation

        filters.update(self.parse_duration_and_distance(text))

        parsed = ParsedQuery(
            intent=intent,
            search_text=query,
            filters=Filters(**filters),
            location=location,
            spatial=spatial,
            confidence=min(confidence, 1.0),
            keywords=extract_keywords(query),
        )
        return parsed.model_copy(update={"explanation": generate_explanation(parsed)})

    def classify_intent(self, query: str) -> Intent:
        activity_matches = sum(
            1 for regex in patterns.ACTIVITY_INTENT_KEYWORDS if regex.search(query)
        )
        place_matches = sum(
            1 for regex in patterns.PLACE_INTENT_KEYWORDS if regex.search(query)
        )

        if activity_matches > place_matches:
            return Intent.ACTIVITY
        if place_matches > activity_matches:
            return Intent.PLACE
        if activity_matches > 0:
            return Intent.MIXED
        return Intent.UNKNOWN

    def parse_activity_filters(self, query: str) -> Dict[str, List[str]]:
        filters = {}
        for key, table in (
            ("activity_types", patterns.ACTIVITY_TYPES),
            ("difficulty_levels", patterns.DIFFICULTY_LEVELS),
            ("water_features", patterns.WATER_FEATURES),
        ):
            values = []
            for keyword, canonical in table:
                if keyword in query and canonical not in values:
                    values.append(canonical)
            if values:
                filters[key] = values
        return filters

    def parse_location(self, text: str) -> Optional[LocationFilter]:
        found = first_match(patterns.LOCATION_PATTERNS, text, accept=_named)
        if found is None:
            return None
        _, match = found
        return LocationFilter(
            name=match.group("name").strip(),
            radius_km=settings.DEFAULT_LOCATION_RADIUS_KM,
        )

    def parse_spatial_context(
        self, text: str
    ) -> Tuple[Optional[SpatialContext], Optional[ElevationFilter]]:
        """Run the area families, then the elevation family.

        Returns the spatial context (``None`` when no area family matched)
        and the elevation filter, if any.
        """
        within = None
        near = None
        areas: List[AreaFilter] = []

        found = first_match(patterns.WITHIN_PATTERNS, text, accept=_named)
        if found is not None:
            within = AreaFilter(type="region", name=found[1].group("name").strip())

        found = first_match(patterns.NEAR_DISTANCE_PATTERNS, text, accept=_named)
        if found is not None:
            match = found[1]
            near = AreaFilter(
                type="circle",
                name=match.group("name").strip(),
                radius_km=patterns.to_km(float(match.group("value")), match.group("unit")),
            )

        found = first_match(patterns.REGION_PATTERNS, text, accept=_named)
        if found is not None:
            pattern, match = found
            area = AreaFilter(type="region", name=match.group("name").strip())
            if pattern.value == "within":
                within = area
            else:
                areas.append(area)

        elevation = self.parse_elevation(text)

        if within is None and near is None and not areas:
            return None, elevation
        return SpatialContext(areas=areas, within=within, near=near), elevation

    def parse_elevation(self, text: str) -> Optional[ElevationFilter]:
        found = first_match(patterns.ELEVATION_PATTERNS, text)
        if found is None:
            return None
        pattern, match = found
        if pattern.value in ("high", "low"):
            return ElevationFilter(band=pattern.value)
        meters = patterns.to_meters(float(match.group("value")), match.group("unit"))
        return ElevationFilter(comparison=pattern.value, meters=round(meters, 2))

    def parse_duration_and_distance(self, text: str) -> Dict[str, float]:
        filters = {}

        found = first_match(patterns.DURATION_PATTERNS, text)
        if found is not None:
            pattern, match = found
            value = match.groupdict().get("value")
            if value is None:
                filters["max_duration"] = pattern.value
            else:
                filters["max_duration"] = float(value) * pattern.value

        found = first_match(patterns.DISTANCE_PATTERNS, text)
        if found is not None:
            match = found[1]
            filters["max_distance"] = patterns.to_km(
                float(match.group("value")), match.group("unit")
            )

        return filters
