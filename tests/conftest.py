"""Shared pytest fixtures for trail_tracer tests.

Provides reusable routes, a manual clock and an event recorder.
All fixtures use explicit values with documented rationale.

COORDINATE SYSTEM:
    Tests use coordinates near the equator (lat~0) and prime meridian (lon~0)
    where the math is simple: 1 degree ≈ 111,195 meters on the spherical
    model (R = 6,371 km), so 0.0009° ≈ 100 m.
"""

import pytest

from trail_tracer.model.geo_point import GeoPoint
from trail_tracer.model.route_geometry import RouteGeometry
from trail_tracer.model.trace_event import TraceEvent
from trail_tracer.session.trace_session import TraceSession

# Spacing between consecutive route points (≈ 100 m)
STEP_DEG = 0.0009

# One metre expressed in degrees of latitude on the spherical model
METER_DEG = 1 / 111_194.93


def straight_track(count: int, lon: float = 0.0) -> list[GeoPoint]:
    """Points going north from the equator, STEP_DEG apart."""
    return [GeoPoint(lat=i * STEP_DEG, lon=lon) for i in range(count)]


class ManualClock:
    """Clock returning a value the test controls."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# ROUTE FIXTURES
# =============================================================================


@pytest.fixture
def ten_point_route() -> RouteGeometry:
    """Single track of 10 points, ≈ 100 m apart (≈ 900 m total), heading north."""
    return RouteGeometry(name="Ten Points", tracks=[straight_track(count=10)])


@pytest.fixture
def two_track_route() -> RouteGeometry:
    """Two parallel 3-point tracks ≈ 1.1 km apart (lon 0.0 and 0.01)."""
    return RouteGeometry(
        name="Two Tracks",
        tracks=[straight_track(count=3, lon=0.0), straight_track(count=3, lon=0.01)],
    )


# =============================================================================
# SESSION FIXTURES
# =============================================================================


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def events() -> list[TraceEvent]:
    """Recorder list; subscribe with session.subscribe(events.append)."""
    return []


@pytest.fixture
def session(clock: ManualClock, events: list[TraceEvent]) -> TraceSession:
    """TraceSession with manual clock and an attached event recorder."""
    trace_session = TraceSession(clock=clock)
    trace_session.subscribe(events.append)
    return trace_session
