"""Tests for TraceSession guards, debounce and rejections.

End-to-end tracing scenarios live in tests_workflow/.
Note: Fixtures are defined in conftest.py (routes, manual clock, event recorder).
"""

import pytest

from trail_tracer.model.geo_point import GeoPoint
from trail_tracer.model.rejection import InvalidGeometry, InvalidPosition, OperationOutOfState
from trail_tracer.model.route_geometry import RouteGeometry
from trail_tracer.model.trace_event import JoinPrompt, TraceEvent, TracePointAdded
from trail_tracer.session.position_feed import PositionFeed, PositionFix
from trail_tracer.session.trace_session import TraceSession

# Just south of the ten-point route's start (≈ 11 m away)
NEAR_START = GeoPoint(lat=-0.0001, lon=0.0)
# Far from any endpoint (≈ 2.2 km east)
FAR_AWAY = GeoPoint(lat=0.0, lon=0.02)


def _prompts(events: list[TraceEvent]) -> list[JoinPrompt]:
    return [event for event in events if isinstance(event, JoinPrompt)]


class TestJoinPrompt:
    """Endpoint detection while idle."""

    def test_no_route_no_prompt(self, session: TraceSession, events: list[TraceEvent]) -> None:
        session.position_update(point=NEAR_START, timestamp=0.0)
        assert session.is_idle
        assert events == []

    def test_prompt_near_start(
        self,
        session: TraceSession,
        events: list[TraceEvent],
        ten_point_route: RouteGeometry,
    ) -> None:
        session.bind_route(ten_point_route)
        session.position_update(point=NEAR_START, timestamp=0.0)

        assert session.is_prompt_pending
        [prompt] = _prompts(events)
        assert prompt.which == "start"
        assert prompt.route_name == "Ten Points"
        assert prompt.snap_point == ten_point_route.tracks[0][0]
        assert session.last_prompt_at == 0.0

    def test_far_position_stays_idle(
        self,
        session: TraceSession,
        events: list[TraceEvent],
        ten_point_route: RouteGeometry,
    ) -> None:
        session.bind_route(ten_point_route)
        session.position_update(point=FAR_AWAY, timestamp=0.0)
        assert session.is_idle
        assert events == []

    def test_updates_ignored_while_prompt_pending(
        self,
        session: TraceSession,
        events: list[TraceEvent],
        ten_point_route: RouteGeometry,
    ) -> None:
        """Two nearby updates less than 10 s apart: only the first prompts."""
        session.bind_route(ten_point_route)
        session.position_update(point=NEAR_START, timestamp=0.0)
        session.position_update(point=NEAR_START, timestamp=3.0)
        assert len(_prompts(events)) == 1
        assert session.last_prompt_at == 0.0

    def test_reprompt_debounced_for_ten_seconds(
        self,
        session: TraceSession,
        events: list[TraceEvent],
        ten_point_route: RouteGeometry,
    ) -> None:
        """After a dismissed prompt, the next one needs 10 s to pass."""
        session.bind_route(ten_point_route)
        session.position_update(point=NEAR_START, timestamp=0.0)
        assert session.cancel_join()

        session.position_update(point=NEAR_START, timestamp=5.0)
        assert session.is_idle
        assert len(_prompts(events)) == 1

        session.position_update(point=NEAR_START, timestamp=10.0)
        assert session.is_prompt_pending
        assert len(_prompts(events)) == 2

    def test_debounce_uses_injected_clock(
        self,
        session: TraceSession,
        events: list[TraceEvent],
        clock,
        ten_point_route: RouteGeometry,
    ) -> None:
        """Without timestamps the session reads its clock lazily on each update."""
        session.bind_route(ten_point_route)
        clock.now = 100.0
        session.position_update(point=NEAR_START)
        session.cancel_join()

        clock.advance(seconds=9.9)
        session.position_update(point=NEAR_START)
        assert session.is_idle

        clock.advance(seconds=60.0)
        session.position_update(point=NEAR_START)
        assert len(_prompts(events)) == 2


    def test_clock_going_backwards_ends_debounce(
        self,
        session: TraceSession,
        events: list[TraceEvent],
        ten_point_route: RouteGeometry,
    ) -> None:
        """A provider restart resets timestamps; the old prompt time must not block prompts."""
        session.bind_route(ten_point_route)
        session.position_update(point=NEAR_START, timestamp=1_000_000.0)
        session.cancel_join()

        session.position_update(point=NEAR_START, timestamp=20.0)

        assert session.is_prompt_pending
        assert session.last_prompt_at == 20.0
        assert len(_prompts(events)) == 2


class TestRejections:
    """Inputs the session absorbs without raising."""

    @pytest.mark.parametrize(
        "point",
        [
            GeoPoint(lat=float("nan"), lon=0.0),
            GeoPoint(lat=0.0, lon=float("inf")),
            GeoPoint(lat=95.0, lon=0.0),
            GeoPoint(lat=0.0, lon=-190.0),
        ],
    )
    def test_invalid_position_dropped(
        self,
        session: TraceSession,
        events: list[TraceEvent],
        ten_point_route: RouteGeometry,
        point: GeoPoint,
    ) -> None:
        session.bind_route(ten_point_route)
        session.position_update(point=point, timestamp=0.0)
        assert session.is_idle
        assert events == []
        assert isinstance(session.last_rejection, InvalidPosition)

    def test_confirm_without_prompt_is_noop(self, session: TraceSession, events: list[TraceEvent]) -> None:
        assert session.confirm_join() is None
        assert session.is_idle
        assert session.last_rejection == OperationOutOfState(operation="confirm_join", state="Idle")
        assert events == []

    def test_cancel_and_end_out_of_state(self, session: TraceSession) -> None:
        assert session.cancel_join() is False
        assert session.end_trail() is None
        assert isinstance(session.last_rejection, OperationOutOfState)
        assert session.last_rejection.operation == "end_trail"

    def test_empty_route_behaves_as_unbound(self, session: TraceSession, events: list[TraceEvent]) -> None:
        empty = RouteGeometry(name="Broken", tracks=[[GeoPoint(lat=0.0, lon=0.0)]])
        assert session.bind_route(empty) is False
        assert session.route is None
        assert isinstance(session.last_rejection, InvalidGeometry)

        session.position_update(point=GeoPoint(lat=0.0, lon=0.0), timestamp=0.0)
        assert events == []

    def test_bind_none_fails_fast(self, session: TraceSession) -> None:
        with pytest.raises(ValueError, match="requires a RouteGeometry"):
            session.bind_route(None)


class TestTracingBasics:
    """Join confirmation and trace path bookkeeping."""

    def test_confirm_join_snaps_to_endpoint(
        self,
        session: TraceSession,
        events: list[TraceEvent],
        ten_point_route: RouteGeometry,
    ) -> None:
        session.bind_route(ten_point_route)
        session.position_update(point=NEAR_START, timestamp=0.0)
        snap = session.confirm_join()

        assert snap == ten_point_route.tracks[0][0]
        assert session.is_tracing
        assert session.trace_path == (snap,)
        assert events[-1] == TracePointAdded(point=snap)
        assert session.pending_prompt is None

    def test_small_moves_do_not_extend_trace(
        self,
        session: TraceSession,
        ten_point_route: RouteGeometry,
    ) -> None:
        """Snapped points within 1 m of the last trace point are not appended."""
        session.bind_route(ten_point_route)
        session.position_update(point=NEAR_START, timestamp=0.0)
        session.confirm_join()

        session.position_update(point=GeoPoint(lat=0.000005, lon=0.00001), timestamp=1.0)
        assert len(session.trace_path) == 1

        session.position_update(point=GeoPoint(lat=0.0003, lon=0.00001), timestamp=2.0)
        assert len(session.trace_path) == 2
        assert 32 < session.trace_length_m < 35

    def test_exit_route_unbinds_without_award(
        self,
        session: TraceSession,
        events: list[TraceEvent],
        ten_point_route: RouteGeometry,
    ) -> None:
        session.bind_route(ten_point_route)
        session.position_update(point=NEAR_START, timestamp=0.0)
        session.confirm_join()
        session.position_update(point=ten_point_route.tracks[0][3], timestamp=1.0)
        count_before = len(events)

        session.exit_route()

        assert session.is_idle
        assert session.route is None
        assert session.coverage.visited_count == 0
        assert session.trace_path == ()
        assert len(events) == count_before

    def test_exit_route_from_prompt(self, session: TraceSession, ten_point_route: RouteGeometry) -> None:
        session.bind_route(ten_point_route)
        session.position_update(point=NEAR_START, timestamp=0.0)
        session.exit_route()
        assert session.is_idle
        assert session.pending_prompt is None
        assert session.last_prompt_at is None


class TestSubscriptions:
    """Event subscribers and position feed attachment."""

    def test_unsubscribe(self, ten_point_route: RouteGeometry) -> None:
        session = TraceSession(add_logging_listener=False)
        received: list[TraceEvent] = []
        unsubscribe = session.subscribe(received.append)
        unsubscribe()

        session.bind_route(ten_point_route)
        session.position_update(point=NEAR_START, timestamp=0.0)
        assert received == []
        assert session.is_prompt_pending

    def test_attach_feed(
        self,
        session: TraceSession,
        events: list[TraceEvent],
        ten_point_route: RouteGeometry,
    ) -> None:
        feed = PositionFeed()
        detach = session.attach(feed)
        session.bind_route(ten_point_route)

        feed.publish(PositionFix(lat=NEAR_START.lat, lon=NEAR_START.lon, timestamp=0.0))
        assert session.is_prompt_pending
        session.cancel_join()

        detach()
        feed.publish(PositionFix(lat=NEAR_START.lat, lon=NEAR_START.lon, timestamp=30.0))
        assert session.is_idle
        assert len(_prompts(events)) == 1
