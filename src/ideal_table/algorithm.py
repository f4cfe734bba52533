"""Simulated annealing over cross-group swaps.

Every candidate is evaluated with ``TableCache.simulate`` (pure, O(group size))
and only accepted candidates are committed with ``TableCache.act``. Nothing is
copied or rolled back inside the loop.

Acceptance follows the Metropolis criterion on the penalty delta. Candidates
that leave a touched group violating the tag constraint pay an extra
``unsatisfied_penalty`` on top of their delta, so the search can pass through
infeasible states but is pushed back out of them.
"""

import math
import random
from dataclasses import dataclass
from typing import Callable, Iterator

from .actions import ActionResult, Failed, ScoreDiff, Swap, UnsatisfiedScoreDiff
from .cache import TableCache
from .exceptions import InvalidPositionError
from .generator import SwapGenerator
from .logger import get_logger
from .models import Condition, Score, Table

logger = get_logger(__name__)

PROGRESS_INTERVAL = 100
MAX_CONSECUTIVE_FAILURES = 1000


# ---------------------------------------------------------------------------
# Parameters and state
# ---------------------------------------------------------------------------

@dataclass
class AnnealParams:
    """Tunable parameters of one annealing run."""
    temperature: float = 150.0
    cooling_rate: float = 0.9997
    max_iterations: int = 30000
    unsatisfied_penalty: float = 100.0  # bias against constraint-violating states
    min_temp: float = 0.0               # stop early once the temperature drops below

    def __post_init__(self):
        if not 0.0 < self.cooling_rate < 1.0:
            raise ValueError(f"cooling_rate must be in (0, 1), got {self.cooling_rate}")
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations must be non-negative, got {self.max_iterations}")
        if self.temperature < 0:
            raise ValueError(f"temperature must be non-negative, got {self.temperature}")

    def to_dict(self) -> dict:
        return {
            "temperature": self.temperature,
            "cooling_rate": self.cooling_rate,
            "max_iterations": self.max_iterations,
            "unsatisfied_penalty": self.unsatisfied_penalty,
            "min_temp": self.min_temp
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AnnealParams":
        return cls(
            temperature=data.get("temperature", 150.0),
            cooling_rate=data.get("cooling_rate", 0.9997),
            max_iterations=data.get("max_iterations", 30000),
            unsatisfied_penalty=data.get("unsatisfied_penalty", 100.0),
            min_temp=data.get("min_temp", 0.0)
        )


@dataclass
class AnnealState:
    """Working table, iteration count and temperature of a run in progress."""
    table: TableCache
    temperature: float
    n_iterations: int = 0

    @classmethod
    def start(cls, table: Table, condition: Condition, params: AnnealParams) -> "AnnealState":
        return cls(
            table=TableCache.from_table(table, condition.penalty),
            temperature=params.temperature,
        )


@dataclass
class AnnealStats:
    accepted: int = 0
    rejected: int = 0
    improved: int = 0
    failed: int = 0
    initial_score: Score = 0.0
    final_score: Score = 0.0


# ---------------------------------------------------------------------------
# Acceptance
# ---------------------------------------------------------------------------

def accept(
    result: ActionResult,
    temperature: float,
    unsatisfied_penalty: float,
    rng: random.Random,
) -> bool:
    """Metropolis acceptance with an extra bias for unsatisfied outcomes."""
    if isinstance(result, Failed):
        return False
    if isinstance(result, ScoreDiff):
        cost = result.score
        if cost <= 0:
            return True
    elif isinstance(result, UnsatisfiedScoreDiff):
        cost = result.score + unsatisfied_penalty
        if cost <= 0:
            return True
    else:
        raise TypeError(f"Unknown action result: {result!r}")

    if temperature <= 0:
        return False
    return rng.random() < math.exp(-cost / temperature)


# ---------------------------------------------------------------------------
# Core loop
# ---------------------------------------------------------------------------

def run(
    state: AnnealState,
    condition: Condition,
    params: AnnealParams,
    generator: Iterator[Swap] | None = None,
    rng: random.Random | None = None,
    progress_callback: Callable[[int, float, float], None] | None = None,
) -> AnnealStats:
    """Advance ``state`` until the iteration budget or minimum temperature is reached."""
    rng = rng or random.Random()
    if generator is None:
        generator = SwapGenerator.for_table(state.table, rng)

    table = state.table
    stats = AnnealStats(initial_score=table.penalty_score)
    consecutive_failures = 0

    while state.n_iterations < params.max_iterations:
        if state.temperature < params.min_temp:
            break

        action = next(generator)
        result = table.simulate(action, condition)

        if isinstance(result, Failed):
            # Generator emitted a position the cache does not know; redraw
            stats.failed += 1
            consecutive_failures += 1
            logger.warning("Candidate %s failed: %s", action, [e.value for e in result.errors])
            if consecutive_failures >= MAX_CONSECUTIVE_FAILURES:
                raise InvalidPositionError(
                    f"{consecutive_failures} consecutive candidates failed, generator is out of sync with the table"
                )
            continue
        consecutive_failures = 0

        if accept(result, state.temperature, params.unsatisfied_penalty, rng):
            table.act(action, condition)
            stats.accepted += 1
            if result.score < 0:
                stats.improved += 1
        else:
            stats.rejected += 1

        state.temperature *= params.cooling_rate
        state.n_iterations += 1

        if progress_callback and state.n_iterations % PROGRESS_INTERVAL == 0:
            progress_callback(state.n_iterations, state.temperature, table.penalty_score)

    stats.final_score = table.penalty_score
    logger.info(
        "Iters: %d, temp: %.4f, accepted: %d, rejected: %d, improved: %d, score: %.1f -> %.1f",
        state.n_iterations, state.temperature, stats.accepted, stats.rejected,
        stats.improved, stats.initial_score, stats.final_score,
    )
    return stats


def simulated_annealing(
    table: Table,
    condition: Condition,
    params: AnnealParams | None = None,
    rng: random.Random | None = None,
    progress_callback: Callable[[int, float, float], None] | None = None,
) -> Table:
    """Optimize ``table`` by swapping members across groups; returns the final table."""
    params = params or AnnealParams()
    state = AnnealState.start(table, condition, params)
    run(state, condition, params, rng=rng, progress_callback=progress_callback)
    return state.table.to_table()


# ---------------------------------------------------------------------------
# Multi-restart wrapper
# ---------------------------------------------------------------------------

def table_objective(cache: TableCache, condition: Condition, unsatisfied_penalty: float) -> Score:
    """Penalty score plus a fixed offset per group violating the constraint."""
    return cache.penalty_score + unsatisfied_penalty * len(cache.violations(condition))


def optimize_with_restarts(
    table: Table,
    condition: Condition,
    params: AnnealParams | None = None,
    num_restarts: int = 10,
    seed: int | None = None,
    progress_callback: Callable[[int, float, float, int], None] | None = None,
    return_all_results: bool = False,
) -> "Table | list[Table]":
    """Run independent annealing runs from ``table`` and return the best result."""
    if num_restarts < 1:
        raise ValueError(f"num_restarts must be at least 1, got {num_restarts}")
    params = params or AnnealParams()
    master = random.Random(seed)

    logger.info("Starting optimization: %d restarts x %d iters", num_restarts, params.max_iterations)

    results: list[tuple[Score, int, Table]] = []
    for restart in range(num_restarts):
        def cb(iteration: int, temp: float, score: float, _r: int = restart) -> None:
            if progress_callback:
                progress_callback(_r * params.max_iterations + iteration, temp, score, _r + 1)

        state = AnnealState.start(table, condition, params)
        rng = random.Random(master.getrandbits(64))
        run(state, condition, params, rng=rng, progress_callback=cb)

        objective = table_objective(state.table, condition, params.unsatisfied_penalty)
        if not results or objective < min(r[0] for r in results):
            logger.info("Restart %d/%d: new best %.1f", restart + 1, num_restarts, objective)
        results.append((objective, restart, state.table.to_table()))

    results.sort(key=lambda r: (r[0], r[1]))
    if return_all_results:
        return [t for _, _, t in results]
    return results[0][2]


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

def check_constraints(table: "Table | TableCache", condition: Condition) -> tuple[bool, list[str]]:
    """Human-readable tag constraint violations, one line per violated group and tag."""
    if isinstance(table, Table):
        table = TableCache.from_table(table, condition.penalty)

    violations: list[str] = []
    for i, group in enumerate(table.groups):
        for tag in sorted(group.violations(condition)):
            range_ = condition.constraint.ranges[tag]
            count = group.tagcounts.get(tag, 0)
            violations.append(
                f"Group {i}: {range_.range_type.value.upper()} {tag} - {count} not in [{range_.min}, {range_.max}]"
                f" (n={len(group)})"
            )
    return len(violations) == 0, violations
