"""Shared state and action types used across the plant and learner."""

from __future__ import annotations

from dataclasses import dataclass


Action = int
Box = int

PUSH_LEFT: Action = 0
PUSH_RIGHT: Action = 1


@dataclass(frozen=True)
class CartPoleState:
    """Continuous cart-pole state.

    Attributes:
        x: Cart position in meters.
        x_dot: Cart velocity in meters per second.
        theta: Pole angle from vertical in radians.
        theta_dot: Pole angular velocity in radians per second.
    """

    x: float
    x_dot: float
    theta: float
    theta_dot: float

    @classmethod
    def at_rest(cls) -> "CartPoleState":
        """Return the centered, upright, motionless state."""
        return cls(x=0.0, x_dot=0.0, theta=0.0, theta_dot=0.0)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.x, self.x_dot, self.theta, self.theta_dot)
