"""Shared pytest fixtures for trail_tracer workflow tests.

Minimal fixtures: a fresh state machine, a recording session and the
routes used by the end-to-end workflows.

COORDINATE SYSTEM:
    Routes run north from the equator where 0.0009° of latitude ≈ 100 m.
"""

import pytest

from trail_tracer.model.geo_point import GeoPoint
from trail_tracer.model.route_geometry import EndpointMatch, RouteGeometry
from trail_tracer.model.trace_event import TraceEvent
from trail_tracer.session.state_machine import TraceContext, TraceStateMachine
from trail_tracer.session.trace_session import TraceSession

# Type alias for sm_and_ctx fixture return value
SMAndCtx = tuple[TraceStateMachine, TraceContext]


@pytest.fixture
def sm_and_ctx() -> SMAndCtx:
    """State machine without logging listener, starting in idle."""
    return TraceStateMachine.create(add_logging_listener=False)


@pytest.fixture
def start_match() -> EndpointMatch:
    """Join match at the start of a track at the origin."""
    return EndpointMatch(which="start", track_index=0, point=GeoPoint(lat=0.0, lon=0.0), distance_m=5.0)


@pytest.fixture
def ridge_route() -> RouteGeometry:
    """Single track of 10 equally spaced points spanning ≈ 900 m."""
    return RouteGeometry(
        name="North Ridge",
        tracks=[[GeoPoint(lat=i * 0.0009, lon=0.0) for i in range(10)]],
    )


@pytest.fixture
def east_ridge_route() -> RouteGeometry:
    """Same shape as ridge_route, ≈ 1.1 km further east."""
    return RouteGeometry(
        name="East Ridge",
        tracks=[[GeoPoint(lat=i * 0.0009, lon=0.01) for i in range(10)]],
    )


@pytest.fixture
def recorded_session() -> tuple[TraceSession, list[TraceEvent]]:
    """TraceSession with an event recorder attached."""
    session = TraceSession()
    events: list[TraceEvent] = []
    session.subscribe(events.append)
    return session, events
