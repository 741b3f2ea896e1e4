"""Continuous-to-box discretization of the cart-pole state."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass

from pole_balancer.core.types import Box, CartPoleState

ONE_DEGREE = 0.0174532
SIX_DEGREES = 0.1047192
TWELVE_DEGREES = 0.2094384
FIFTY_DEGREES = 0.87266

# Failure envelope. The bounds themselves are still inside the envelope.
POSITION_LIMIT = 2.4
ANGLE_LIMIT = TWELVE_DEGREES

# Cut points per axis: values below the first cut fall in band 0, values at
# or above cut k fall in band k + 1.
POSITION_CUTS: tuple[float, ...] = (-0.8, 0.8)
VELOCITY_CUTS: tuple[float, ...] = (-0.5, 0.5)
ANGLE_CUTS: tuple[float, ...] = (-SIX_DEGREES, -ONE_DEGREE, 0.0, ONE_DEGREE, SIX_DEGREES)
ANGULAR_VELOCITY_CUTS: tuple[float, ...] = (-FIFTY_DEGREES, FIFTY_DEGREES)

AXIS_CUTS: tuple[tuple[float, ...], ...] = (
    POSITION_CUTS,
    VELOCITY_CUTS,
    ANGLE_CUTS,
    ANGULAR_VELOCITY_CUTS,
)
AXIS_BAND_COUNTS: tuple[int, ...] = tuple(len(cuts) + 1 for cuts in AXIS_CUTS)


def _strides(counts: tuple[int, ...]) -> tuple[int, ...]:
    strides: list[int] = []
    stride = 1
    for count in counts:
        strides.append(stride)
        stride *= count
    return tuple(strides)


# Box offset contributed by one band on each axis: (1, 3, 9, 54).
AXIS_STRIDES: tuple[int, ...] = _strides(AXIS_BAND_COUNTS)

N_BOXES = AXIS_STRIDES[-1] * AXIS_BAND_COUNTS[-1]

# A dedicated box index marks a state outside the failure envelope.
FAILURE_BOX: Box = -1


@dataclass(frozen=True)
class BoxBands:
    """Per-axis band indices of a live state."""

    position: int
    velocity: int
    angle: int
    angular_velocity: int

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.position, self.velocity, self.angle, self.angular_velocity)


def within_envelope(state: CartPoleState) -> bool:
    """Return whether the cart and pole are still inside the failure envelope."""
    return (
        -POSITION_LIMIT <= state.x <= POSITION_LIMIT
        and -ANGLE_LIMIT <= state.theta <= ANGLE_LIMIT
    )


def axis_bands(state: CartPoleState) -> BoxBands | None:
    """Band each axis of a live state, or return None outside the envelope."""
    if not within_envelope(state):
        return None
    return BoxBands(
        position=bisect_right(POSITION_CUTS, state.x),
        velocity=bisect_right(VELOCITY_CUTS, state.x_dot),
        angle=bisect_right(ANGLE_CUTS, state.theta),
        angular_velocity=bisect_right(ANGULAR_VELOCITY_CUTS, state.theta_dot),
    )


def box_from_bands(bands: BoxBands) -> Box:
    """Combine per-axis bands into a box index by summing band offsets."""
    box = 0
    for band, count, stride in zip(bands.as_tuple(), AXIS_BAND_COUNTS, AXIS_STRIDES):
        if not (0 <= band < count):
            raise ValueError(f"Band index {band} out of bounds for {count} bands.")
        box += band * stride
    return box


def bands_from_box(box: Box) -> BoxBands:
    """Split a live box index back into per-axis bands."""
    if is_failure_box(box) or not (0 <= box < N_BOXES):
        raise ValueError(f"Invalid box: {box}. Expected in [0, {N_BOXES}).")
    position, velocity, angle, angular_velocity = (
        (box // stride) % count for count, stride in zip(AXIS_BAND_COUNTS, AXIS_STRIDES)
    )
    return BoxBands(
        position=position,
        velocity=velocity,
        angle=angle,
        angular_velocity=angular_velocity,
    )


def get_box(state: CartPoleState) -> Box:
    """Map a continuous state to its box, or ``FAILURE_BOX`` outside the envelope."""
    bands = axis_bands(state)
    if bands is None:
        return FAILURE_BOX
    return box_from_bands(bands)


def is_failure_box(box: Box) -> bool:
    """Return whether the box is the failure sentinel."""
    return box == FAILURE_BOX


def enumerate_boxes() -> tuple[Box, ...]:
    """Enumerate all live boxes in index order."""
    return tuple(range(N_BOXES))
