"""Episode and failure control loop for the actor-critic pole balancer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Callable

import numpy as np

from pole_balancer.core.discretization import N_BOXES, get_box, is_failure_box
from pole_balancer.core.dynamics import DEFAULT_PLANT, step_cart_pole
from pole_balancer.core.params import ControllerConfig, PlantParams
from pole_balancer.core.types import Action, Box, CartPoleState
from pole_balancer.rl.learner import (
    LearnerState,
    decay_traces,
    learn,
    record_decision,
    select_action,
)

logger = logging.getLogger(__name__)


class RunOutcome(str, Enum):
    """Terminal outcome of a run."""

    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class TickRecord:
    """Observable summary of one control tick."""

    tick: int
    box: Box
    action: Action
    failed: bool
    next_box: Box
    td_error: float


TickHook = Callable[[TickRecord], None]


@dataclass(frozen=True)
class RunResult:
    """Outputs from one learning run."""

    outcome: RunOutcome
    steps_in_final_episode: int
    total_failures: int
    total_ticks: int
    episode_lengths: tuple[int, ...]
    actor_weights: np.ndarray
    critic_weights: np.ndarray

    @property
    def succeeded(self) -> bool:
        return self.outcome is RunOutcome.SUCCEEDED

    @property
    def value(self) -> int:
        """Steps in the final episode on success, total failures otherwise."""
        if self.succeeded:
            return self.steps_in_final_episode
        return self.total_failures


class EpisodeController:
    """Drives select -> simulate -> discretize -> learn ticks with failure resets.

    The continuous state, counters and learner state are owned here and
    mutated in place. Learned weights survive failures; traces, state and the
    step counter do not.
    """

    def __init__(
        self,
        config: ControllerConfig,
        *,
        rng: np.random.Generator,
        plant: PlantParams = DEFAULT_PLANT,
        learner: LearnerState | None = None,
        on_tick: TickHook | None = None,
    ) -> None:
        config.validate()
        plant.validate()
        if learner is not None and learner.n_boxes != N_BOXES:
            raise ValueError(
                f"Learner has {learner.n_boxes} boxes; discretizer produces {N_BOXES}."
            )
        self.config = config
        self.plant = plant
        self.rng = rng
        self.learner = learner if learner is not None else LearnerState.zeros()
        self.on_tick = on_tick

        self.state = CartPoleState.at_rest()
        self.box = get_box(self.state)
        self.steps = 0
        self.failures = 0
        self.ticks = 0
        self.episode_lengths: list[int] = []

    @property
    def terminated(self) -> bool:
        return self.outcome is not None

    @property
    def outcome(self) -> RunOutcome | None:
        if self.failures >= self.config.failure_budget:
            return RunOutcome.EXHAUSTED
        if self.steps >= self.config.step_budget:
            return RunOutcome.SUCCEEDED
        return None

    def tick(self) -> TickRecord:
        """Run one full control tick and return its record."""
        if self.terminated:
            raise RuntimeError("Run already terminated; no further ticks allowed.")

        config = self.config
        learner = self.learner
        box = self.box

        action = select_action(learner, box, self.rng)
        record_decision(learner, box, action, config)
        previous_estimate = learner.critic_value(box)

        self.state = step_cart_pole(self.state, action, self.plant)
        next_box = get_box(self.state)
        failed = is_failure_box(next_box)

        if failed:
            reward = config.failure_penalty
            next_estimate = 0.0
        else:
            reward = 0.0
            next_estimate = learner.critic_value(next_box)

        delta = learn(
            learner,
            previous_estimate=previous_estimate,
            reward=reward,
            next_estimate=next_estimate,
            config=config,
        )
        decay_traces(learner, failed=failed, config=config)

        self.ticks += 1
        if failed:
            self._reset_after_failure()
        else:
            self.steps += 1
            self.box = next_box

        record = TickRecord(
            tick=self.ticks,
            box=box,
            action=action,
            failed=failed,
            next_box=next_box,
            td_error=delta,
        )
        logger.debug(
            "tick=%d box=%d action=%d next_box=%d delta=%.6g",
            record.tick,
            record.box,
            record.action,
            record.next_box,
            record.td_error,
        )
        if self.on_tick is not None:
            self.on_tick(record)
        return record

    def run(self) -> RunResult:
        """Tick until either budget is reached."""
        while not self.terminated:
            self.tick()
        if self.outcome is RunOutcome.EXHAUSTED:
            logger.info("Pole not balanced. Stopping after %d failures.", self.failures)
        else:
            logger.info("Pole balanced successfully for at least %d steps.", self.steps)
        return self.result()

    def result(self) -> RunResult:
        outcome = self.outcome
        if outcome is None:
            raise RuntimeError("Run has not terminated yet.")

        actor_weights = self.learner.actor_weights.copy()
        critic_weights = self.learner.critic_weights.copy()
        actor_weights.flags.writeable = False
        critic_weights.flags.writeable = False
        return RunResult(
            outcome=outcome,
            steps_in_final_episode=self.steps,
            total_failures=self.failures,
            total_ticks=self.ticks,
            episode_lengths=tuple(self.episode_lengths),
            actor_weights=actor_weights,
            critic_weights=critic_weights,
        )

    def _reset_after_failure(self) -> None:
        self.failures += 1
        # The failing tick counts toward the episode that just ended.
        episode_length = self.steps + 1
        self.episode_lengths.append(episode_length)
        logger.info("Failure %d at step %d", self.failures, episode_length)

        self.steps = 0
        self.state = CartPoleState.at_rest()
        self.box = get_box(self.state)


def run(
    config: ControllerConfig,
    *,
    plant: PlantParams | None = None,
    rng: np.random.Generator | None = None,
    on_tick: TickHook | None = None,
) -> RunResult:
    """Learn to balance the pole from rest until success or failure exhaustion.

    Args:
        config: Budgets and learning constants; validated before any tick.
        plant: Physical constants, the reference cart-pole when omitted.
        rng: Random source for action sampling. Built from
            ``config.random_seed`` when omitted.
        on_tick: Optional observer called once per tick.

    Returns:
        Terminal outcome, counters, episode history and read-only weights.
    """
    config.validate()
    if rng is None:
        rng = np.random.default_rng(config.random_seed)
    controller = EpisodeController(
        config,
        rng=rng,
        plant=plant if plant is not None else DEFAULT_PLANT,
        on_tick=on_tick,
    )
    return controller.run()
