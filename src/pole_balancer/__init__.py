"""Actor-critic pole balancing on a simulated cart-pole."""

from pole_balancer.core.params import ControllerConfig, PlantParams
from pole_balancer.rl.controller import RunOutcome, RunResult, run

__all__ = [
    "ControllerConfig",
    "PlantParams",
    "RunOutcome",
    "RunResult",
    "run",
]
