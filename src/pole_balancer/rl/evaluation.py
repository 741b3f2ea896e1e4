"""Multi-seed learning-curve diagnostics for actor-critic runs."""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Sequence

import numpy as np
import pandas as pd

from pole_balancer.core.params import ControllerConfig, PlantParams
from pole_balancer.rl.controller import RunResult, run

logger = logging.getLogger(__name__)

EPISODE_COLUMNS: tuple[str, ...] = ("seed", "episode", "steps", "failed", "outcome")


@dataclass(frozen=True)
class EvaluationConfig:
    """Configuration for a multi-seed survival evaluation."""

    seeds: tuple[int, ...]
    head_episodes: int = 3
    tail_episodes: int = 3
    show_progress: bool = False
    progress_desc: str = "Actor-Critic Runs"

    def validate(self) -> None:
        if not self.seeds:
            raise ValueError("seeds must not be empty.")
        if len(set(self.seeds)) != len(self.seeds):
            raise ValueError("seeds must be unique.")
        if self.head_episodes <= 0:
            raise ValueError("head_episodes must be positive.")
        if self.tail_episodes <= 0:
            raise ValueError("tail_episodes must be positive.")


@dataclass(frozen=True)
class SurvivalTrend:
    """Aggregate early-vs-late survival across runs."""

    n_runs: int
    head_mean_steps: float
    tail_mean_steps: float
    slope_per_episode: float

    @property
    def improvement(self) -> float:
        return self.tail_mean_steps - self.head_mean_steps


@dataclass(frozen=True)
class CheckResult:
    """One diagnostic check result."""

    name: str
    passed: bool
    details: str
    metric: float | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "name": self.name,
            "passed": self.passed,
            "details": self.details,
        }
        if self.metric is not None:
            payload["metric"] = self.metric
        return payload


def episode_rows(seed: int, result: RunResult) -> list[dict[str, object]]:
    """Flatten one run into per-episode rows, the unfinished final episode last."""
    rows: list[dict[str, object]] = [
        {
            "seed": seed,
            "episode": idx,
            "steps": int(steps),
            "failed": True,
            "outcome": result.outcome.value,
        }
        for idx, steps in enumerate(result.episode_lengths)
    ]
    if result.steps_in_final_episode > 0:
        rows.append(
            {
                "seed": seed,
                "episode": len(result.episode_lengths),
                "steps": int(result.steps_in_final_episode),
                "failed": False,
                "outcome": result.outcome.value,
            }
        )
    return rows


def run_many(
    config: ControllerConfig,
    evaluation: EvaluationConfig,
    *,
    plant: PlantParams | None = None,
) -> pd.DataFrame:
    """Run one learning run per seed and collect the episode table."""
    config.validate()
    evaluation.validate()

    iterator: Sequence[int] = evaluation.seeds
    progress = iterator
    if evaluation.show_progress:
        # Import tqdm lazily to avoid notebook-side effects when progress is disabled.
        from tqdm.auto import tqdm

        progress = tqdm(
            iterator,
            desc=evaluation.progress_desc,
            dynamic_ncols=True,
            leave=False,
        )

    rows: list[dict[str, object]] = []
    for seed in progress:
        result = run(replace(config, random_seed=int(seed)), plant=plant)
        logger.info(
            "seed=%d outcome=%s failures=%d ticks=%d",
            seed,
            result.outcome.value,
            result.total_failures,
            result.total_ticks,
        )
        rows.extend(episode_rows(int(seed), result))
        if evaluation.show_progress:
            progress.set_postfix({"failures": result.total_failures}, refresh=False)

    if evaluation.show_progress:
        progress.close()

    return pd.DataFrame(rows, columns=list(EPISODE_COLUMNS))


def survival_trend(frame: pd.DataFrame, head: int, tail: int) -> SurvivalTrend:
    """Compare early and late episode lengths within each run, averaged over runs.

    Runs with fewer than two episodes carry no trend and are skipped.
    """
    if head <= 0 or tail <= 0:
        raise ValueError("head and tail must be positive.")
    missing = set(EPISODE_COLUMNS) - set(frame.columns)
    if missing:
        raise ValueError(f"Episode table is missing columns: {sorted(missing)}")

    head_means: list[float] = []
    tail_means: list[float] = []
    for _, run_frame in frame.groupby("seed", sort=True):
        ordered = run_frame.sort_values("episode")
        if len(ordered) < 2:
            continue
        head_means.append(float(ordered["steps"].head(head).mean()))
        tail_means.append(float(ordered["steps"].tail(tail).mean()))

    if not head_means:
        raise ValueError("No run has enough episodes to estimate a survival trend.")

    per_episode = frame.groupby("episode", sort=True)["steps"].mean()
    if len(per_episode) >= 2:
        slope = float(
            np.polyfit(per_episode.index.to_numpy(dtype=float), per_episode.to_numpy(), 1)[0]
        )
    else:
        slope = 0.0

    return SurvivalTrend(
        n_runs=len(head_means),
        head_mean_steps=float(np.mean(head_means)),
        tail_mean_steps=float(np.mean(tail_means)),
        slope_per_episode=slope,
    )


def check_learning_improves(trend: SurvivalTrend) -> CheckResult:
    """Pass when late episodes survive longer than early ones on average."""
    passed = trend.tail_mean_steps > trend.head_mean_steps
    return CheckResult(
        name="learning_improves_survival",
        passed=passed,
        details=(
            f"mean steps early={trend.head_mean_steps:.1f}, "
            f"late={trend.tail_mean_steps:.1f} over {trend.n_runs} runs"
        ),
        metric=trend.improvement,
    )


def evaluate_learning(
    config: ControllerConfig,
    evaluation: EvaluationConfig,
    *,
    plant: PlantParams | None = None,
) -> tuple[pd.DataFrame, SurvivalTrend, CheckResult]:
    """Run all seeds and summarize whether survival improves with experience."""
    frame = run_many(config, evaluation, plant=plant)
    trend = survival_trend(frame, head=evaluation.head_episodes, tail=evaluation.tail_episodes)
    return frame, trend, check_learning_improves(trend)
