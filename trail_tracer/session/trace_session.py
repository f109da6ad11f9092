"""TraceSession - Orchestrates route tracing for one user.

Consumes position updates and join decisions, runs the geometry queries
against the bound route, and emits TraceEvents to subscribers:

    position_update (idle)     -> nearest_endpoint -> JoinPrompt
    confirm_join               -> TracePointAdded (trace starts at the endpoint)
    position_update (tracing)  -> nearest_point_on_route -> TracePointAdded,
                                  ProgressChanged, MilestoneReached (once per trace)
    end_trail                  -> TrailEnded with partial credit, length and duration

Lifecycle state lives in TraceStateMachine; this class holds no global state
and is meant to be injected into whatever drives the UI.

All operations are synchronous. Events are emitted only after the session
state is updated, so handlers may call back into the session. Concurrent
callers serialize updates, e.g. by publishing through a PositionFeed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from trail_tracer.constants import TraceConfig
from trail_tracer.core.scoring_policy import ScoringPolicy
from trail_tracer.model.coverage_tracker import CoverageTracker
from trail_tracer.model.geo_point import GeoPoint
from trail_tracer.model.rejection import InvalidPosition, Rejection
from trail_tracer.model.route_geometry import EndpointMatch, RouteGeometry
from trail_tracer.model.trace_event import (
    JoinPrompt,
    MilestoneReached,
    ProgressChanged,
    TraceEvent,
    TracePointAdded,
    TrailEnded,
)
from trail_tracer.session.position_feed import PositionFeed, PositionFix
from trail_tracer.session.state_machine import TraceStateMachine

logger = logging.getLogger(__name__)

TraceEventHandler = Callable[[TraceEvent], None]


class TraceSession:
    """Tracing session bound to at most one route at a time.

    Args:
        scoring: Policy used for milestone and early-stop awards
        clock: Returns current time in seconds; used when position_update()
            gets no timestamp
        join_threshold_m: Endpoint distance that triggers the join prompt
        prompt_debounce_s: Minimum time between two prompts for the same route
        trace_min_step_m: Snapped points closer than this to the last trace
            point are not appended to the trace
        milestone_percent: Progress that triggers MilestoneReached
        add_logging_listener: Log state transitions

    Example:
        session = TraceSession()
        session.subscribe(print)
        session.bind_route(route)
        session.position_update(GeoPoint(lat=0.0, lon=0.0), timestamp=0.0)
    """

    def __init__(
        self,
        scoring: ScoringPolicy | None = None,
        clock: Callable[[], float] | None = None,
        join_threshold_m: float = TraceConfig.JOIN_THRESHOLD_M,
        prompt_debounce_s: float = TraceConfig.PROMPT_DEBOUNCE_S,
        trace_min_step_m: float = TraceConfig.TRACE_MIN_STEP_M,
        milestone_percent: int = TraceConfig.MILESTONE_PERCENT,
        add_logging_listener: bool = True,
    ) -> None:
        self.scoring = scoring or ScoringPolicy()
        self._clock = clock or time.monotonic
        self.join_threshold_m = join_threshold_m
        self.prompt_debounce_s = prompt_debounce_s
        self.trace_min_step_m = trace_min_step_m
        self.milestone_percent = milestone_percent

        self._sm, self._ctx = TraceStateMachine.create(add_logging_listener=add_logging_listener)
        self._subscribers: list[TraceEventHandler] = []

    # =========================================================================
    # Read-only properties
    # =========================================================================

    @property
    def state_name(self) -> str:
        return self._sm.get_state_name()

    @property
    def is_idle(self) -> bool:
        return self._sm.is_idle

    @property
    def is_prompt_pending(self) -> bool:
        return self._sm.is_prompt_pending

    @property
    def is_tracing(self) -> bool:
        return self._sm.is_tracing

    @property
    def route(self) -> RouteGeometry | None:
        return self._ctx.route

    @property
    def has_route(self) -> bool:
        return self._ctx.has_route()

    @property
    def coverage(self) -> CoverageTracker:
        return self._ctx.coverage

    @property
    def progress_percent(self) -> int:
        return self._ctx.coverage.progress_percent()

    @property
    def pending_prompt(self) -> EndpointMatch | None:
        return self._ctx.prompt.match

    @property
    def last_prompt_at(self) -> float | None:
        return self._ctx.prompt.last_prompt_at

    @property
    def trace_path(self) -> tuple[GeoPoint, ...]:
        return tuple(self._ctx.trace.points)

    @property
    def trace_length_m(self) -> float:
        return self._ctx.trace.length_m

    @property
    def award_issued(self) -> bool:
        return self._ctx.award_issued

    @property
    def last_rejection(self) -> Rejection | None:
        """Most recent input the session ignored, for diagnostics."""
        return self._ctx.last_rejection

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, handler: TraceEventHandler) -> Callable[[], None]:
        """Register an event handler.

        Returns:
            Callable that removes the handler.
        """
        self._subscribers.append(handler)

        def unsubscribe() -> None:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

        return unsubscribe

    def attach(self, feed: PositionFeed) -> Callable[[], None]:
        """Consume fixes from a position feed.

        Returns:
            Callable that detaches the session from the feed.
        """
        return feed.subscribe(self._on_fix)

    def _on_fix(self, fix: PositionFix) -> None:
        self.position_update(point=fix.point, timestamp=fix.timestamp)

    def _emit(self, event: TraceEvent) -> None:
        logger.debug(f"[EVENT] {event.message}")
        for handler in list(self._subscribers):
            handler(event)

    # =========================================================================
    # Route binding
    # =========================================================================

    def bind_route(self, geometry: RouteGeometry) -> bool:
        """Bind a route, stopping any active trace or pending prompt first.

        Args:
            geometry: Parsed route

        Returns:
            True if the route has at least one usable track. An empty route
            leaves the session with no route bound.

        Raises:
            ValueError: If geometry is None (use exit_route() to unbind).
        """
        if geometry is None:
            raise ValueError("bind_route() requires a RouteGeometry - use exit_route() to unbind")

        self._sm.return_to_idle()

        if geometry.is_empty:
            self._ctx.bind_route(None)
            self._ctx.last_rejection = geometry.rejection
            return False

        self._ctx.bind_route(geometry)
        logger.info(f"Bound route {geometry!r}")
        return True

    def exit_route(self) -> None:
        """Full reset: stop tracing without award, drop the prompt, unbind the route."""
        self._sm.return_to_idle()
        if self._ctx.route is not None:
            logger.info(f"Exited route '{self._ctx.route.name}'")
        self._ctx.bind_route(None)

    # =========================================================================
    # Position updates
    # =========================================================================

    def position_update(self, point: GeoPoint, timestamp: float | None = None) -> None:
        """Process one position update.

        Idle: offers a join prompt near a track endpoint (debounced).
        PromptPending: ignored.
        Tracing: snaps onto the route and updates coverage.

        Args:
            point: Current position
            timestamp: Seconds on the same clock as earlier updates; defaults
                to the session clock
        """
        if not point.is_valid:
            rejection = InvalidPosition(lat=point.lat, lon=point.lon)
            self._ctx.last_rejection = rejection
            logger.warning(rejection.message)
            return

        now = self._clock() if timestamp is None else timestamp

        if self._sm.is_idle:
            self._check_join(point=point, now=now)
        elif self._sm.is_tracing:
            self._advance_trace(point=point)

    def _check_join(self, point: GeoPoint, now: float) -> None:
        route = self._ctx.route
        if route is None or route.is_empty:
            return

        match = route.nearest_endpoint(p=point, threshold_m=self.join_threshold_m)
        if match is None:
            return
        if self._ctx.prompt.is_debounced(now=now, debounce_s=self.prompt_debounce_s):
            logger.debug(f"Join prompt for '{route.name}' debounced")
            return

        if self._sm.try_transition("prompt_join", match=match, timestamp=now):
            self._emit(
                JoinPrompt(
                    which=match.which,
                    route_name=route.name,
                    snap_point=match.point,
                    track_index=match.track_index,
                    distance_m=match.distance_m,
                )
            )

    def _advance_trace(self, point: GeoPoint) -> None:
        route = self._ctx.route
        if route is None:
            return
        snap = route.nearest_point_on_route(p=point)
        if snap is None:
            return

        # Session state is updated in full before any subscriber runs
        events: list[TraceEvent] = []

        last = self._ctx.trace.last_point
        if last is None or last.distance_to(other=snap.point) > self.trace_min_step_m:
            self._ctx.trace.append(snap.point)
            events.append(TracePointAdded(point=snap.point))

        coverage = self._ctx.coverage
        coverage.mark_near(track_index=snap.track_index, segment_index=snap.segment_index)
        percent = coverage.progress_percent()
        events.append(ProgressChanged(percent=percent))

        if percent >= self.milestone_percent and not self._ctx.award_issued:
            self._ctx.award_issued = True
            milestone = MilestoneReached(
                route_name=route.name,
                percent=percent,
                award_points=self.scoring.points_for_completion(),
            )
            logger.info(milestone.message)
            events.append(milestone)

        for event in events:
            self._emit(event)

    # =========================================================================
    # Join decisions and stopping
    # =========================================================================

    def confirm_join(self, timestamp: float | None = None) -> GeoPoint | None:
        """Accept the pending join prompt and start tracing.

        Args:
            timestamp: Start time of the trace; defaults to the session clock

        Returns:
            Endpoint the trace starts from (map marker snap target), or None
            if no prompt was pending.
        """
        match = self._ctx.prompt.match
        now = self._clock() if timestamp is None else timestamp
        if not self._sm.try_transition("confirm_join", timestamp=now):
            return None
        if match is None:
            return None
        self._emit(TracePointAdded(point=match.point))
        return match.point

    def cancel_join(self) -> bool:
        """Dismiss the pending join prompt. Returns False if none was pending."""
        return self._sm.try_transition("cancel_join")

    def end_trail(self, timestamp: float | None = None) -> int | None:
        """Stop tracing early with credit proportional to progress.

        The session is back in idle before TrailEnded reaches subscribers, so
        a subscriber may rebind or exit the route from its handler.

        Args:
            timestamp: End time of the trace; defaults to the session clock

        Returns:
            Awarded points, or None if the session was not tracing.
        """
        if not self._sm.is_tracing:
            self._sm.try_transition("end_trail")
            return None

        now = self._clock() if timestamp is None else timestamp
        route = self._ctx.route
        percent = self._ctx.coverage.progress_percent()
        award = self.scoring.points_for_partial(percent=percent)
        event = TrailEnded(
            award_points=award,
            percent=percent,
            route_name=route.name if route is not None else "",
            trace_length_m=self._ctx.trace.length_m,
            duration_s=self._ctx.trace.duration_s(now=now),
        )
        logger.info(event.message)

        self._sm.end_trail()
        self._sm.settle()
        self._emit(event)
        return award

    def __repr__(self) -> str:
        return f"TraceSession(state={self.state_name}, progress={self.progress_percent}%, context={self._ctx!r})"
