"""Actor-critic learning components."""

from pole_balancer.rl.controller import (
    EpisodeController,
    RunOutcome,
    RunResult,
    TickRecord,
    run,
)
from pole_balancer.rl.learner import LearnerState

__all__ = [
    "EpisodeController",
    "LearnerState",
    "RunOutcome",
    "RunResult",
    "TickRecord",
    "run",
]
