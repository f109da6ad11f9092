"""Core foundation for route tracing.

This module provides the mathematical backbone:
- GeoCalculator: Haversine distances, local projection, segment projection
- ScoringPolicy: Award points for milestones and early termination
- format_length: Unit-aware length labels
"""

from trail_tracer.core.geo_calculator import GeoCalculator, SegmentProjection
from trail_tracer.core.length_format import format_length
from trail_tracer.core.scoring_policy import ScoringPolicy

__all__ = [
    # Geo calculator
    "GeoCalculator",
    "SegmentProjection",
    # Scoring
    "ScoringPolicy",
    # Formatting
    "format_length",
]
