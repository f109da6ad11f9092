"""Scoring policy - converts trace progress into award points.

Pure functions, no I/O. Applying points to a user's score belongs to the
scoring/persistence collaborator that consumes MilestoneReached and
TrailEnded events.

The milestone award is flat: reaching the milestone earns the same points
regardless of route length or difficulty.
"""

from dataclasses import dataclass
from math import floor

from trail_tracer.constants import ScoringConfig


@dataclass(frozen=True)
class ScoringPolicy:
    """Award points for milestone completion and early termination.

    Attributes:
        completion_points: Flat award for reaching the milestone
        max_partial_points: Upper bound of early termination credit

    Example:
        policy = ScoringPolicy()
        policy.points_for_partial(percent=30)  # 30
    """

    completion_points: int = ScoringConfig.COMPLETION_POINTS
    max_partial_points: int = ScoringConfig.MAX_PARTIAL_POINTS

    def points_for_completion(self) -> int:
        """Flat award for reaching the milestone."""
        return self.completion_points

    def points_for_partial(self, percent: float) -> int:
        """Credit proportional to progress at an early stop.

        Args:
            percent: Progress percentage (0-100)

        Returns:
            round(percent / 100 * max_partial_points), clamped to [0, max_partial_points].
        """
        clamped = max(0.0, min(100.0, float(percent)))
        return int(floor(clamped / 100.0 * self.max_partial_points + 0.5))
