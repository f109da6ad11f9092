"""Configuration constants for Trail Tracer.

All tunable parameters are centralized here for easy tuning.

Classes:
    GeoConfig: Earth model used by all geodesic calculations
    TraceConfig: Join prompt, debounce and tracing thresholds
    ScoringConfig: Award points for milestones and early termination
    UnitsConfig: Unit systems for length labels
"""


class GeoConfig:
    """Earth model and local projection parameters."""

    # Spherical Earth shared by haversine and the local projection
    EARTH_RADIUS_M = 6_371_000.0

    # Snap candidates closer together than this count as a tie (earliest wins)
    SNAP_TIE_TOLERANCE_M = 0.001

    # Local projection frames kept around for repeated queries at one position
    LOCAL_FRAME_CACHE_SIZE = 256


class TraceConfig:
    """Tracing session thresholds."""

    # Distance from a track start/end point that offers the join prompt
    JOIN_THRESHOLD_M = 100.0

    # Minimum time between two join prompts for the same route (seconds)
    PROMPT_DEBOUNCE_S = 10.0

    # Snapped points closer than this to the previous trace point are not appended
    TRACE_MIN_STEP_M = 1.0

    # Coverage percentage that triggers the one-time milestone award
    MILESTONE_PERCENT = 50


class ScoringConfig:
    """Award points."""

    # Flat award for reaching the milestone, independent of route length
    COMPLETION_POINTS = 100

    # Early termination credit is percent on a 0-100 point scale
    MAX_PARTIAL_POINTS = 100


class UnitsConfig:
    """Unit systems for displaying lengths."""

    METRIC = "metric"
    IMPERIAL = "imperial"
    BOTH = "both"
    SYSTEMS = (METRIC, IMPERIAL, BOTH)

    METERS_PER_MILE = 1609.344
    FEET_PER_METER = 3.28084

    # Below this many miles, imperial labels switch to feet
    MIN_MILES_LABEL = 0.1


assert 0 < TraceConfig.MILESTONE_PERCENT <= 100, "Milestone must be a valid percentage"
assert TraceConfig.TRACE_MIN_STEP_M < TraceConfig.JOIN_THRESHOLD_M, "Trace step must be below join threshold"
assert 0 < GeoConfig.SNAP_TIE_TOLERANCE_M < TraceConfig.TRACE_MIN_STEP_M, "Snap tie tolerance must be below the trace step"
