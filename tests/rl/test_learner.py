"""Actor-critic learner update tests."""

from __future__ import annotations

import math

import numpy as np
import pytest

from pole_balancer.core.discretization import N_BOXES
from pole_balancer.core.params import ControllerConfig
from pole_balancer.core.types import PUSH_LEFT, PUSH_RIGHT
from pole_balancer.rl.learner import (
    LearnerState,
    decay_traces,
    learn,
    push_right_probability,
    record_decision,
    select_action,
    td_error,
)


class _FixedDraw:
    """Random source stub that always returns the same uniform draw."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


def test_zero_state_has_one_entry_per_box() -> None:
    state = LearnerState.zeros()
    assert state.n_boxes == N_BOXES
    for vector in (
        state.actor_weights,
        state.critic_weights,
        state.actor_trace,
        state.critic_trace,
    ):
        assert vector.shape == (N_BOXES,)
        assert not vector.any()


def test_push_right_probability_is_logistic_and_saturates() -> None:
    assert push_right_probability(0.0) == 0.5
    assert push_right_probability(2.0) == pytest.approx(1.0 / (1.0 + math.exp(-2.0)))
    assert push_right_probability(1e9) == push_right_probability(50.0)
    assert push_right_probability(-1e9) == push_right_probability(-50.0)
    assert 0.0 < push_right_probability(-1e9) < 1e-20


def test_select_action_compares_draw_with_probability() -> None:
    state = LearnerState.zeros()
    assert select_action(state, 5, _FixedDraw(0.49)) == PUSH_RIGHT
    assert select_action(state, 5, _FixedDraw(0.5)) == PUSH_LEFT

    state.actor_weights[5] = 1e6
    assert select_action(state, 5, _FixedDraw(0.999)) == PUSH_RIGHT
    state.actor_weights[5] = -1e6
    assert select_action(state, 5, _FixedDraw(1e-12)) == PUSH_LEFT


def test_select_action_has_no_side_effects() -> None:
    state = LearnerState.zeros()
    before = state.copy()
    select_action(state, 3, np.random.default_rng(0))
    for name in ("actor_weights", "critic_weights", "actor_trace", "critic_trace"):
        assert np.array_equal(getattr(state, name), getattr(before, name))


def test_record_decision_increments_only_the_chosen_box() -> None:
    config = ControllerConfig()
    state = LearnerState.zeros()

    record_decision(state, 10, PUSH_RIGHT, config)
    record_decision(state, 20, PUSH_LEFT, config)

    assert state.actor_trace[10] == pytest.approx(0.1 * 0.5)
    assert state.actor_trace[20] == pytest.approx(-0.1 * 0.5)
    assert state.critic_trace[10] == pytest.approx(0.2)
    assert state.critic_trace[20] == pytest.approx(0.2)
    assert np.count_nonzero(state.actor_trace) == 2
    assert np.count_nonzero(state.critic_trace) == 2


def test_record_decision_rejects_non_binary_action() -> None:
    with pytest.raises(ValueError):
        record_decision(LearnerState.zeros(), 0, 3, ControllerConfig())


def test_td_error() -> None:
    assert td_error(previous_estimate=0.2, reward=0.0, next_estimate=0.5, discount=0.95) == (
        pytest.approx(0.95 * 0.5 - 0.2)
    )
    assert td_error(previous_estimate=0.3, reward=-1.0, next_estimate=0.0, discount=0.95) == (
        pytest.approx(-1.3)
    )


def test_learn_updates_every_box_in_proportion_to_traces() -> None:
    config = ControllerConfig()
    state = LearnerState.zeros()
    state.actor_trace[:] = np.linspace(-0.05, 0.05, N_BOXES)
    state.critic_trace[:] = np.linspace(0.0, 0.2, N_BOXES)
    actor_trace = state.actor_trace.copy()
    critic_trace = state.critic_trace.copy()

    delta = learn(state, previous_estimate=0.0, reward=-1.0, next_estimate=0.0, config=config)

    assert delta == -1.0
    np.testing.assert_allclose(state.actor_weights, -1000.0 * actor_trace)
    np.testing.assert_allclose(state.critic_weights, -0.5 * critic_trace)
    # Traces are untouched by the weight update.
    assert np.array_equal(state.actor_trace, actor_trace)
    assert np.array_equal(state.critic_trace, critic_trace)


def test_learn_with_zero_delta_leaves_weights_unchanged() -> None:
    config = ControllerConfig()
    state = LearnerState.zeros()
    state.actor_trace[:] = 0.3
    state.critic_trace[:] = 0.3

    delta = learn(state, previous_estimate=0.0, reward=0.0, next_estimate=0.0, config=config)

    assert delta == 0.0
    assert not state.actor_weights.any()
    assert not state.critic_weights.any()


def test_decay_traces_is_geometric_without_failure() -> None:
    config = ControllerConfig()
    state = LearnerState.zeros()
    state.actor_trace[:] = 1.0
    state.critic_trace[:] = 1.0

    for _ in range(3):
        decay_traces(state, failed=False, config=config)

    np.testing.assert_allclose(state.actor_trace, 0.9**3)
    np.testing.assert_allclose(state.critic_trace, 0.8**3)


def test_decay_traces_clears_on_failure_but_keeps_weights() -> None:
    config = ControllerConfig()
    state = LearnerState.zeros()
    state.actor_trace[:] = 0.4
    state.critic_trace[:] = -0.4
    state.actor_weights[:] = 7.0
    state.critic_weights[:] = -2.0

    decay_traces(state, failed=True, config=config)

    assert not state.actor_trace.any()
    assert not state.critic_trace.any()
    assert np.all(state.actor_weights == 7.0)
    assert np.all(state.critic_weights == -2.0)
