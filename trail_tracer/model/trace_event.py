"""TraceEvent - Notifications the tracing session emits to its collaborators.

Consumers:
- UI layer: JoinPrompt (yes/no dialog), TracePointAdded (trace overlay),
  ProgressChanged (progress bar/label)
- Scoring/persistence layer: MilestoneReached, TrailEnded (apply points)

Events are immutable values; the session never waits on a consumer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from trail_tracer.model.coverage_tracker import round_half_up
from trail_tracer.model.geo_point import GeoPoint


@dataclass(frozen=True)
class TraceEvent(ABC):
    """Abstract base class for session events.

    Use isinstance() to dispatch on the event type.
    Each subclass has an event_type field for serialization.
    """

    @property
    @abstractmethod
    def message(self) -> str:
        """Short description for logs."""

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class JoinPrompt(TraceEvent):
    """User stands next to a track endpoint - offer to join the trail.

    Attributes:
        which: "start" or "end"
        route_name: Display label of the bound route
        snap_point: Endpoint the trace will start from when confirmed
        track_index: Track the endpoint belongs to
        distance_m: Distance from the user to the endpoint
    """

    which: str
    route_name: str
    snap_point: GeoPoint
    track_index: int = 0
    distance_m: float = 0.0
    event_type: str = "joinPrompt"

    @property
    def message(self) -> str:
        return f"Join '{self.route_name}' at its {self.which} ({self.distance_m:.0f}m away)?"


@dataclass(frozen=True)
class TracePointAdded(TraceEvent):
    """A snapped point was appended to the visual trace."""

    point: GeoPoint
    event_type: str = "tracePointAdded"

    @property
    def message(self) -> str:
        return f"Trace point {self.point!r}"


@dataclass(frozen=True)
class ProgressChanged(TraceEvent):
    """Coverage percentage after a tracing update."""

    percent: int
    event_type: str = "progressChanged"

    @property
    def message(self) -> str:
        return f"Progress {self.percent}%"


@dataclass(frozen=True)
class MilestoneReached(TraceEvent):
    """Coverage crossed the milestone threshold (once per bound route).

    Attributes:
        route_name: Display label of the bound route
        percent: Progress at the crossing
        award_points: Points the scoring layer should apply
    """

    route_name: str
    percent: int
    award_points: int
    event_type: str = "milestoneReached"

    @property
    def message(self) -> str:
        return f"Milestone on '{self.route_name}' at {self.percent}% - {self.award_points} points"


@dataclass(frozen=True)
class TrailEnded(TraceEvent):
    """Trace stopped early with proportional credit.

    Attributes:
        award_points: Partial credit for the scoring layer
        percent: Progress at the moment the trail was ended
        route_name: Display label of the bound route
        trace_length_m: Length of the snapped trace path
        duration_s: Seconds between confirming the join and ending the trail
    """

    award_points: int
    percent: int = 0
    route_name: str = ""
    trace_length_m: float = 0.0
    duration_s: float = 0.0
    event_type: str = "trailEnded"

    @property
    def duration_min(self) -> int:
        """Duration rounded to whole minutes for summaries."""
        return round_half_up(self.duration_s / 60.0)

    @property
    def message(self) -> str:
        return (
            f"Trail '{self.route_name}' ended at {self.percent}% after "
            f"{self.trace_length_m:.0f}m in {self.duration_min} min - {self.award_points} points"
        )
