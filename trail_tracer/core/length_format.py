"""Length labels for routes and traces in the user's unit system."""

from trail_tracer.constants import UnitsConfig


def format_length(meters: float, units: str = UnitsConfig.METRIC) -> str:
    """Format a length in meters for display.

    Args:
        meters: Length in meters
        units: "metric", "imperial" or "both"

    Returns:
        Label such as "850 m", "1.25 km", "0.53 mi", "420 ft" or "1.25 km / 0.78 mi".

    Raises:
        ValueError: If units is not a known unit system.
    """
    if units not in UnitsConfig.SYSTEMS:
        raise ValueError(f"Unknown unit system '{units}', expected one of {UnitsConfig.SYSTEMS}")

    miles = meters / UnitsConfig.METERS_PER_MILE

    if units == UnitsConfig.IMPERIAL:
        if miles >= UnitsConfig.MIN_MILES_LABEL:
            return f"{miles:.2f} mi"
        return f"{round(meters * UnitsConfig.FEET_PER_METER)} ft"

    if units == UnitsConfig.BOTH:
        return f"{meters / 1000:.2f} km / {miles:.2f} mi"

    if meters >= 1000:
        return f"{meters / 1000:.2f} km"
    return f"{round(meters)} m"
