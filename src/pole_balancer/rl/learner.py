"""Actor-critic learner with eligibility traces over discretized boxes."""

from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np

from pole_balancer.core.discretization import N_BOXES
from pole_balancer.core.params import ControllerConfig
from pole_balancer.core.types import PUSH_LEFT, PUSH_RIGHT, Action, Box

# Logistic input is saturated to this range before exponentiation.
LOGIT_CLIP = 50.0


@dataclass
class LearnerState:
    """Mutable per-box weights and eligibility traces.

    Attributes:
        actor_weights: Preference for pushing right in each box (``w``).
        critic_weights: Value estimate of each box (``v``).
        actor_trace: Decayed decision credit per box (``e``).
        critic_trace: Decayed visitation credit per box (``x_bar``).
    """

    actor_weights: np.ndarray
    critic_weights: np.ndarray
    actor_trace: np.ndarray
    critic_trace: np.ndarray

    @classmethod
    def zeros(cls, n_boxes: int = N_BOXES) -> "LearnerState":
        if n_boxes <= 0:
            raise ValueError("n_boxes must be positive.")
        return cls(
            actor_weights=np.zeros(n_boxes, dtype=np.float64),
            critic_weights=np.zeros(n_boxes, dtype=np.float64),
            actor_trace=np.zeros(n_boxes, dtype=np.float64),
            critic_trace=np.zeros(n_boxes, dtype=np.float64),
        )

    @property
    def n_boxes(self) -> int:
        return int(self.actor_weights.shape[0])

    def critic_value(self, box: Box) -> float:
        return float(self.critic_weights[box])

    def copy(self) -> "LearnerState":
        return LearnerState(
            actor_weights=self.actor_weights.copy(),
            critic_weights=self.critic_weights.copy(),
            actor_trace=self.actor_trace.copy(),
            critic_trace=self.critic_trace.copy(),
        )


def push_right_probability(weight: float) -> float:
    """Logistic squashing of an actor preference, clipped to avoid overflow."""
    clipped = max(-LOGIT_CLIP, min(float(weight), LOGIT_CLIP))
    return 1.0 / (1.0 + math.exp(-clipped))


def select_action(state: LearnerState, box: Box, rng: np.random.Generator) -> Action:
    """Sample push-right with the box's logistic probability, else push-left."""
    if rng.random() < push_right_probability(state.actor_weights[box]):
        return PUSH_RIGHT
    return PUSH_LEFT


def record_decision(
    state: LearnerState,
    box: Box,
    action: Action,
    config: ControllerConfig,
) -> None:
    """Mark ``box`` as eligible for the reinforcement that follows ``action``."""
    if action not in (PUSH_LEFT, PUSH_RIGHT):
        raise ValueError(f"Invalid action {action}. Expected {PUSH_LEFT} or {PUSH_RIGHT}.")
    state.actor_trace[box] += (1.0 - config.actor_trace_decay) * (action - 0.5)
    state.critic_trace[box] += 1.0 - config.critic_trace_decay


def td_error(
    previous_estimate: float,
    reward: float,
    next_estimate: float,
    discount: float,
) -> float:
    """Temporal-difference error ``r + gamma * p - old_p``."""
    return reward + discount * next_estimate - previous_estimate


def learn(
    state: LearnerState,
    previous_estimate: float,
    reward: float,
    next_estimate: float,
    config: ControllerConfig,
) -> float:
    """Apply one TD update to every box in proportion to its traces.

    Every box is updated, not just the one visited last: boxes visited a few
    ticks ago still hold nonzero traces and receive a share of ``delta``.

    Returns:
        The temporal-difference error used for the update.
    """
    delta = td_error(
        previous_estimate=previous_estimate,
        reward=reward,
        next_estimate=next_estimate,
        discount=config.discount_factor,
    )
    state.actor_weights += config.actor_learning_rate * delta * state.actor_trace
    state.critic_weights += config.critic_learning_rate * delta * state.critic_trace
    return delta


def decay_traces(state: LearnerState, failed: bool, config: ControllerConfig) -> None:
    """Clear traces after a failure, otherwise decay them geometrically."""
    if failed:
        state.actor_trace.fill(0.0)
        state.critic_trace.fill(0.0)
        return
    state.actor_trace *= config.actor_trace_decay
    state.critic_trace *= config.critic_trace_decay
