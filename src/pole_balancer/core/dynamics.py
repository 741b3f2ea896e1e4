"""Cart-pole plant simulation for one control tick."""

from __future__ import annotations

import math

from pole_balancer.core.params import PlantParams
from pole_balancer.core.types import PUSH_LEFT, PUSH_RIGHT, Action, CartPoleState

_FOUR_THIRDS = 4.0 / 3.0

DEFAULT_PLANT = PlantParams()


def applied_force(action: Action, plant: PlantParams = DEFAULT_PLANT) -> float:
    """Return the bang-bang force for a binary action."""
    if action == PUSH_RIGHT:
        return plant.force_mag
    if action == PUSH_LEFT:
        return -plant.force_mag
    raise ValueError(f"Invalid action {action}. Expected {PUSH_LEFT} or {PUSH_RIGHT}.")


def accelerations(
    state: CartPoleState,
    action: Action,
    plant: PlantParams = DEFAULT_PLANT,
) -> tuple[float, float]:
    """Compute cart and pole accelerations ``(xacc, thetaacc)`` under an action."""
    force = applied_force(action, plant)
    costheta = math.cos(state.theta)
    sintheta = math.sin(state.theta)

    temp = (
        force + plant.polemass_length * state.theta_dot * state.theta_dot * sintheta
    ) / plant.total_mass
    thetaacc = (plant.gravity * sintheta - costheta * temp) / (
        plant.half_pole_length
        * (_FOUR_THIRDS - plant.mass_pole * costheta * costheta / plant.total_mass)
    )
    xacc = temp - plant.polemass_length * thetaacc * costheta / plant.total_mass
    return xacc, thetaacc


def step_cart_pole(
    state: CartPoleState,
    action: Action,
    plant: PlantParams = DEFAULT_PLANT,
) -> CartPoleState:
    """Advance the plant by one Euler step of ``plant.tau`` seconds.

    Positions advance with the pre-step velocities, velocities with the
    accelerations evaluated at the pre-step state. Any finite or infinite
    input is accepted; leaving the valid envelope is for the discretizer to
    report.
    """
    xacc, thetaacc = accelerations(state, action, plant)
    tau = plant.tau
    return CartPoleState(
        x=state.x + tau * state.x_dot,
        x_dot=state.x_dot + tau * xacc,
        theta=state.theta + tau * state.theta_dot,
        theta_dot=state.theta_dot + tau * thetaacc,
    )
