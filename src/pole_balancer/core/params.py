"""Parameter schema and YAML helpers for the plant and the learning run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
import math
from pathlib import Path
from typing import Any

import yaml


@dataclass(frozen=True)
class PlantParams:
    """Physical constants of the simulated cart-pole."""

    gravity: float = 9.8
    mass_cart: float = 1.0
    mass_pole: float = 0.1
    half_pole_length: float = 0.5
    force_mag: float = 10.0
    tau: float = 0.02

    @property
    def total_mass(self) -> float:
        return self.mass_cart + self.mass_pole

    @property
    def polemass_length(self) -> float:
        return self.mass_pole * self.half_pole_length

    def validate(self) -> None:
        for name in ("mass_cart", "mass_pole", "half_pole_length", "tau"):
            value = getattr(self, name)
            if not (math.isfinite(value) and value > 0.0):
                raise ValueError(f"{name} must be a positive finite number.")
        if not math.isfinite(self.gravity):
            raise ValueError("gravity must be finite.")
        if not (math.isfinite(self.force_mag) and self.force_mag >= 0.0):
            raise ValueError("force_mag must be a non-negative finite number.")


@dataclass(frozen=True)
class ControllerConfig:
    """Budgets and learning constants for one actor-critic run.

    Defaults reproduce the reference configuration: 100000 balanced steps to
    succeed, 100 failures to give up, a fast actor and a moderate critic.
    """

    step_budget: int = 100_000
    failure_budget: int = 100
    actor_learning_rate: float = 1000.0
    critic_learning_rate: float = 0.5
    discount_factor: float = 0.95
    actor_trace_decay: float = 0.9
    critic_trace_decay: float = 0.8
    failure_penalty: float = -1.0
    random_seed: int | None = None

    def validate(self) -> None:
        if self.step_budget <= 0:
            raise ValueError("step_budget must be positive.")
        if self.failure_budget <= 0:
            raise ValueError("failure_budget must be positive.")
        if not (0.0 < self.actor_trace_decay < 1.0):
            raise ValueError("actor_trace_decay must be in (0, 1).")
        if not (0.0 < self.critic_trace_decay < 1.0):
            raise ValueError("critic_trace_decay must be in (0, 1).")
        if not (0.0 <= self.discount_factor < 1.0):
            raise ValueError("discount_factor must be in [0, 1).")
        for name in ("actor_learning_rate", "critic_learning_rate", "failure_penalty"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite.")

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a plain dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ControllerConfig":
        """Create configuration from a plain dict, filling missing keys with defaults."""
        known = {field.name for field in fields(cls)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ValueError(f"Unknown controller config keys: {', '.join(unknown)}.")

        defaults = cls()
        seed = payload.get("random_seed", defaults.random_seed)
        return cls(
            step_budget=int(payload.get("step_budget", defaults.step_budget)),
            failure_budget=int(payload.get("failure_budget", defaults.failure_budget)),
            actor_learning_rate=float(
                payload.get("actor_learning_rate", defaults.actor_learning_rate)
            ),
            critic_learning_rate=float(
                payload.get("critic_learning_rate", defaults.critic_learning_rate)
            ),
            discount_factor=float(payload.get("discount_factor", defaults.discount_factor)),
            actor_trace_decay=float(
                payload.get("actor_trace_decay", defaults.actor_trace_decay)
            ),
            critic_trace_decay=float(
                payload.get("critic_trace_decay", defaults.critic_trace_decay)
            ),
            failure_penalty=float(payload.get("failure_penalty", defaults.failure_penalty)),
            random_seed=None if seed is None else int(seed),
        )


def save_controller_config(config: ControllerConfig, output_path: Path) -> None:
    """Serialize a run configuration to YAML."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(yaml.safe_dump(config.to_dict(), sort_keys=False))


def load_controller_config(path: Path) -> ControllerConfig:
    """Load a run configuration from YAML."""
    payload = yaml.safe_load(path.read_text())
    if not isinstance(payload, dict):
        raise ValueError("Expected a mapping in controller config YAML.")
    return ControllerConfig.from_dict(payload)
