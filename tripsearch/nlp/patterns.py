"""Pattern tables for the rule-based query parser.

Every table is built once at import time and never mutated. Order matters:
keyword tables decide the order canonical values are emitted in, and the
regex families are evaluated first-match-wins through ``first_match``.
"""
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Tuple

MILES_TO_KM = 1.60934
FEET_TO_METERS = 0.3048

# Words separated by single spaces. Callers collapse whitespace first.
_NAME = r"(?P<name>[a-zA-Z]+(?:\s[a-zA-Z]+)*?)"
_NUMBER = r"(?P<value>\d+(?:\.\d+)?)"
_DISTANCE_UNIT = r"(?P<unit>miles?|mi|kilometers?|km)"
_END = r"(?:\s|$|,)"


@dataclass(frozen=True)
class Pattern:
    regex: re.Pattern
    value: Any = None


def _compile(*entries) -> Tuple[Pattern, ...]:
    return tuple(
        Pattern(re.compile(source, re.IGNORECASE), value) for source, value in entries
    )


def first_match(
    patterns: Iterable[Pattern],
    text: str,
    accept: Optional[Callable[[re.Match], bool]] = None,
) -> Optional[Tuple[Pattern, re.Match]]:
    """Return the first (pattern, match) whose match passes ``accept``."""
    for pattern in patterns:
        match = pattern.regex.search(text)
        if match is None:
            continue
        if accept is None or accept(match):
            return pattern, match
    return None


def _word_patterns(words: Iterable[str]) -> Tuple[re.Pattern, ...]:
    return tuple(re.compile(rf"\b{re.escape(word)}\b") for word in words)


# Intent classification
ACTIVITY_INTENT_KEYWORDS = _word_patterns(
    [
        "hiking", "biking", "climbing", "trail", "hike", "bike", "climb",
        "skiing", "snowboarding", "kayaking", "swimming", "running",
        "backpacking", "camping", "fishing", "activity", "activities",
        "route", "routes", "easy", "moderate", "hard", "difficult",
        "weekend", "day trip", "overnight",
    ]
)

PLACE_INTENT_KEYWORDS = _word_patterns(
    [
        "restaurant", "hotel", "coffee", "shop", "store", "museum",
        "park", "beach", "lake", "mountain", "city", "town",
        "attraction", "landmark", "place", "places", "spot", "spots",
        "near", "in", "around",
    ]
)

# Keyword -> canonical value
ACTIVITY_TYPES = (
    ("hiking", "hiking"),
    ("hike", "hiking"),
    ("trail", "hiking"),
    ("walk", "walking"),
    ("biking", "biking"),
    ("bike", "biking"),
    ("cycling", "biking"),
    ("climbing", "climbing"),
    ("climb", "climbing"),
    ("skiing", "skiing"),
    ("ski", "skiing"),
    ("snowboard", "snowboarding"),
    ("kayaking", "kayaking"),
    ("kayak", "kayaking"),
    ("swimming", "swimming"),
    ("swim", "swimming"),
    ("running", "running"),
    ("run", "running"),
    ("backpacking", "backpacking"),
    ("camping", "camping"),
    ("camp", "camping"),
    ("fishing", "fishing"),
    ("fish", "fishing"),
)

DIFFICULTY_LEVELS = (
    ("easy", "easy"),
    ("beginner", "easy"),
    ("simple", "easy"),
    ("moderate", "moderate"),
    ("medium", "moderate"),
    ("intermediate", "moderate"),
    ("hard", "hard"),
    ("difficult", "hard"),
    ("challenging", "hard"),
    ("expert", "expert"),
    ("advanced", "expert"),
)

# All water mentions collapse to the generic feature.
WATER_FEATURES = tuple(
    (keyword, "water")
    for keyword in (
        "waterfall", "waterfalls", "river", "rivers", "lake", "lakes",
        "pond", "ponds", "creek", "creeks", "stream", "streams",
        "swimming", "swim", "water",
    )
)

# Location names. Value unused.
LOCATION_PATTERNS = _compile(
    (rf"near\s+{_NAME}{_END}", None),
    (rf"in\s+{_NAME}{_END}", None),
    (rf"around\s+{_NAME}{_END}", None),
    (r"(?P<name>[a-zA-Z]+(?:\s[a-zA-Z]+)*)\s+area", None),
)

# Spatial family (a): must lie inside a named region.
WITHIN_PATTERNS = _compile(
    (rf"within\s+{_NAME}(?:\s+area|region|bounds)?{_END}", None),
    (rf"inside\s+{_NAME}(?:\s+area|region|bounds)?{_END}", None),
    (rf"in\s+the\s+{_NAME}\s+(?:area|region|zone|district){_END}", None),
    (rf"{_NAME}\s+city\s+limits", None),
    (rf"{_NAME}\s+county{_END}", None),
    (rf"{_NAME}\s+state\s+park{_END}", None),
    (rf"{_NAME}\s+national\s+park{_END}", None),
)

# Spatial family (b): distance of a named location.
NEAR_DISTANCE_PATTERNS = _compile(
    (rf"within\s+{_NUMBER}\s*{_DISTANCE_UNIT}\s+of\s+{_NAME}{_END}", None),
    (rf"{_NUMBER}\s*{_DISTANCE_UNIT}\s+(?:from|of|around)\s+{_NAME}{_END}", None),
    (rf"near\s+{_NAME}\s+within\s+{_NUMBER}\s*{_DISTANCE_UNIT}{_END}", None),
    (rf"around\s+{_NAME}\s+{_NUMBER}\s*{_DISTANCE_UNIT}{_END}", None),
)

# Spatial family (c): geographic regions. Value is the slot the area fills.
REGION_PATTERNS = _compile(
    (rf"in\s+(?:the\s+)?{_NAME}\s+(?:mountains?|hills?|valleys?){_END}", "within"),
    (
        rf"(?:along|near)\s+(?:the\s+)?{_NAME}\s+(?:coast|coastline|shore|shoreline){_END}",
        "within",
    ),
    (rf"in\s+(?:the\s+)?{_NAME}\s+(?:desert|wilderness|forest){_END}", "within"),
    (rf"(?:around|near)\s+(?:the\s+)?{_NAME}\s+(?:river|lake|bay|peninsula){_END}", "areas"),
    (rf"in\s+(?:the\s+)?{_NAME}\s+(?:area|region|zone){_END}", "areas"),
    (
        rf"(?:north|south|east|west|northern|southern|eastern|western)\s+{_NAME}{_END}",
        "areas",
    ),
)

# Spatial family (d): elevation. Value is the comparison or the band.
_ELEVATION_UNIT = r"(?P<unit>feet|ft|meters?|m)\b\s*(?:elevation)?"
ELEVATION_PATTERNS = _compile(
    (rf"(?:above|over)\s+(?P<value>\d+)\s*{_ELEVATION_UNIT}", "above"),
    (rf"(?:below|under)\s+(?P<value>\d+)\s*{_ELEVATION_UNIT}", "below"),
    (rf"(?:at|around)\s+(?P<value>\d+)\s*{_ELEVATION_UNIT}", "around"),
    (r"high\s+elevation", "high"),
    (r"low\s+elevation", "low"),
    (r"(?:sea\s+level|low\s+altitude)", "low"),
)

# Duration in hours. Value multiplies the captured number, or is the
# duration itself when the pattern captures nothing.
DURATION_PATTERNS = _compile(
    (rf"{_NUMBER}\s*hours?", 1.0),
    (rf"{_NUMBER}\s*hrs?", 1.0),
    (rf"{_NUMBER}\s*h", 1.0),
    (r"(?P<value>\d+)\s*day\s*trip", 24.0),
    (r"(?P<value>\d+)\s*days?", 24.0),
    (r"weekend", 48.0),
    (r"half\s*day", 4.0),
    (r"full\s*day", 8.0),
)

# Distance. Conversion is decided by the captured unit.
DISTANCE_PATTERNS = _compile(
    (rf"{_NUMBER}\s*(?P<unit>miles?)", None),
    (rf"{_NUMBER}\s*(?P<unit>mi)", None),
    (rf"{_NUMBER}\s*(?P<unit>kilometers?)", None),
    (rf"{_NUMBER}\s*(?P<unit>km)", None),
    (rf"under\s+{_NUMBER}\s*{_DISTANCE_UNIT}", None),
    (rf"less\s+than\s+{_NUMBER}\s*{_DISTANCE_UNIT}", None),
)

KEYWORD_STRIP_CHARS = ".,!?;:"

STOP_WORDS = frozenset(
    [
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
        "has", "he", "in", "is", "it", "its", "of", "on", "that", "the",
        "to", "was", "were", "will", "with", "me", "my", "i", "you",
        "your", "we", "our", "they", "their", "them",
    ]
)


def to_km(value: float, unit: str) -> float:
    if unit.lower().startswith("mi"):
        return value * MILES_TO_KM
    return value


def to_meters(value: float, unit: str) -> float:
    if unit.lower() in ("feet", "ft"):
        return value * FEET_TO_METERS
    return value
