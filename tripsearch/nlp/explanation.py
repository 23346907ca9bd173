from tripsearch.models import Intent, ParsedQuery

SEPARATOR = " • "
GENERAL_SEARCH = "General search"

INTENT_LABELS = {
    Intent.ACTIVITY: "Looking for activities",
    Intent.PLACE: "Looking for places",
    Intent.MIXED: "Looking for activities and places",
}


def generate_explanation(parsed: ParsedQuery) -> str:
    """Human-readable summary of how a query was interpreted."""
    parts = [INTENT_LABELS.get(parsed.intent, GENERAL_SEARCH)]
    filters = parsed.filters

    if filters.activity_types:
        parts.append(f"Activity types: {', '.join(filters.activity_types)}")
    if filters.difficulty_levels:
        parts.append(f"Difficulty: {', '.join(filters.difficulty_levels)}")

    if parsed.location is not None and parsed.location.name:
        parts.append(f"Near {parsed.location.name}")

    spatial = parsed.spatial
    if spatial is not None:
        if spatial.within is not None:
            parts.append(f"Within {spatial.within.name}")
        if spatial.near is not None:
            if spatial.near.radius_km is not None:
                parts.append(
                    f"Within {spatial.near.radius_km:.1f} km of {spatial.near.name}"
                )
            else:
                parts.append(f"Near {spatial.near.name}")
        if spatial.areas:
            parts.append(f"In areas: {', '.join(a.name or '' for a in spatial.areas)}")

    if filters.max_duration is not None:
        if filters.max_duration < 24:
            parts.append(f"Up to {filters.max_duration:.1f} hours")
        else:
            parts.append(f"Up to {filters.max_duration / 24:.1f} days")

    if filters.max_distance is not None:
        parts.append(f"Up to {filters.max_distance:.1f} km")

    elevation = filters.elevation
    if elevation is not None:
        if elevation.band is not None:
            parts.append(f"{elevation.band.capitalize()} elevation")
        elif elevation.meters is not None:
            parts.append(
                f"{elevation.comparison.capitalize()} {elevation.meters:.0f} m elevation"
            )

    if not parts:
        return GENERAL_SEARCH
    return SEPARATOR.join(parts)
