"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from pole_balancer.core.params import ControllerConfig, load_controller_config

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def reference_config() -> ControllerConfig:
    """Reference learning constants with the reference budgets."""
    return ControllerConfig(random_seed=0)


@pytest.fixture
def small_config() -> ControllerConfig:
    """Reference learning constants with budgets small enough for unit tests."""
    return load_controller_config(FIXTURES_DIR / "controller_small.yaml")
