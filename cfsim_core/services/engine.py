from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from cfsim_core.domain.errors import InvalidScenarioConfig, SimulationCancelled
from cfsim_core.domain.models import (
    PERCENTILES,
    CashFlowParameter,
    MonthlyStats,
    Scenario,
    SimulationConfig,
    SimulationResult,
    TrialTrace,
)
from cfsim_core.services import distributions

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

PROGRESS_EVERY = 100


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """
    Percentile of an ascending sequence, linearly interpolated between the
    two closest order statistics.
    """
    n = len(sorted_values)
    if n == 0:
        raise ValueError("percentile of an empty sequence is undefined")
    index = (p / 100) * (n - 1)
    lower = math.floor(index)
    upper = math.ceil(index)
    if lower == upper:
        return float(sorted_values[lower])
    weight = index - lower
    return float(sorted_values[lower] * (1 - weight) + sorted_values[upper] * weight)


def is_parameter_active(param: CashFlowParameter, month: int) -> bool:
    if param.start_month is not None and month < param.start_month:
        return False
    if param.end_month is not None and month > param.end_month:
        return False
    return True


def parameter_amount(
    param: CashFlowParameter,
    month: int,
    sampled_growth_rate: float,
    sampled_amount: float,
) -> float:
    """
    Effective amount of a parameter in a month, with growth compounded in
    whole years since the parameter started.
    """
    if not is_parameter_active(param, month):
        return 0.0

    if param.frequency == "one-time":
        if param.start_month is None or month != param.start_month:
            return 0.0
        return sampled_amount

    if param.frequency == "yearly" and month % 12 != 0:
        return 0.0

    start = param.start_month or 0
    years_elapsed = (month - start) // 12
    return sampled_amount * (1 + sampled_growth_rate) ** years_elapsed


def validate_config(config: SimulationConfig) -> None:
    for field in ("time_horizon_months", "iterations"):
        value = getattr(config, field)
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise InvalidScenarioConfig(f"{field} must be an integer, got {value!r}")
        if value <= 0:
            raise InvalidScenarioConfig(f"{field} must be positive, got {value}")


def simulate_single_iteration(
    config: SimulationConfig,
    parameters: Sequence[CashFlowParameter],
    rng: np.random.Generator,
) -> List[float]:
    """Run one trial and return total wealth (cash + investments) per month."""
    return trace_single_iteration(config, parameters, rng).wealth


def trace_single_iteration(
    config: SimulationConfig,
    parameters: Sequence[CashFlowParameter],
    rng: np.random.Generator,
) -> TrialTrace:
    """
    Run one trial keeping cash and investment value apart.

    Amount, growth and return are sampled once per parameter and held for
    the whole trial.
    """
    sampled: Dict[str, tuple] = {}
    for param in parameters:
        sampled[param.id] = (
            distributions.sample(param.amount, rng),
            distributions.sample(param.growth_rate, rng),
            distributions.sample(param.return_rate, rng) if param.return_rate is not None else 0.0,
        )

    balance = distributions.sample(config.initial_balance, rng)
    annual_inflation = distributions.sample(config.inflation_rate, rng)

    income = [p for p in parameters if p.category == "income"]
    expenses = [p for p in parameters if p.category == "expense"]
    investments = [p for p in parameters if p.category == "investment"]
    one_time = [p for p in parameters if p.category == "one-time"]

    def amount_of(param: CashFlowParameter, month: int) -> float:
        amount, growth, _ = sampled[param.id]
        return parameter_amount(param, month, growth, amount)

    investment_value = 0.0
    trace = TrialTrace(cash=[], investments=[])

    for month in range(config.time_horizon_months):
        monthly_income = sum(amount_of(p, month) for p in income)

        inflation_multiplier = (1 + annual_inflation) ** (month / 12)
        monthly_expenses = sum(amount_of(p, month) * inflation_multiplier for p in expenses)

        # signed: positive adds to cash, negative removes
        one_time_net = sum(amount_of(p, month) for p in one_time)

        contribution = sum(amount_of(p, month) for p in investments)
        returns = sum(investment_value * (sampled[p.id][2] / 12) for p in investments)
        investment_value += contribution + returns

        balance += monthly_income - monthly_expenses + one_time_net - contribution
        trace.cash.append(balance)
        trace.investments.append(investment_value)

    return trace


def aggregate_results(trials: Sequence[Sequence[float]], time_horizon_months: int) -> List[MonthlyStats]:
    """Per-month mean and percentile bands across all trials."""
    if not trials:
        raise ValueError("cannot aggregate zero trials")
    matrix = np.asarray(trials, dtype=float)
    if matrix.shape != (len(trials), time_horizon_months):
        raise ValueError(
            f"expected {len(trials)} trials of {time_horizon_months} months, got shape {matrix.shape}"
        )

    stats: List[MonthlyStats] = []
    for month in range(time_horizon_months):
        values = np.sort(matrix[:, month])
        bands = {f"p{p}": percentile(values, p) for p in PERCENTILES}
        stats.append(MonthlyStats(month=month, mean=float(values.mean()), **bands))
    return stats


def run_simulation(
    scenario: Scenario,
    on_progress: Optional[ProgressCallback] = None,
    goal_amount: Optional[float] = None,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> SimulationResult:
    """
    Monte Carlo over independent trials of the scenario.

    on_progress(completed, total) fires after every 100th trial and once at
    the end. Exceptions raised by the callback propagate. Setting
    cancel_event aborts the run with SimulationCancelled.
    """
    config = scenario.config
    validate_config(config)
    if rng is None:
        rng = distributions.make_rng(seed)

    total = config.iterations
    logger.info(
        "Running scenario %r: %d iterations x %d months, %d parameters",
        scenario.name,
        total,
        config.time_horizon_months,
        len(scenario.parameters),
    )
    started = time.perf_counter()

    trials: List[List[float]] = []
    for i in range(total):
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Cancellation requested at iteration %d/%d", i, total)
            raise SimulationCancelled(i, total)
        trials.append(simulate_single_iteration(config, scenario.parameters, rng))
        completed = i + 1
        if on_progress is not None and completed % PROGRESS_EVERY == 0 and completed < total:
            on_progress(completed, total)

    if on_progress is not None:
        on_progress(total, total)

    monthly_stats = aggregate_results(trials, config.time_horizon_months)

    final = np.sort(np.array([t[-1] for t in trials], dtype=float))
    probability_positive = float(np.mean(final > 0))

    probability_goal = None
    if goal_amount is not None:
        probability_goal = float(np.mean(final >= goal_amount))

    run_time_ms = (time.perf_counter() - started) * 1000
    logger.info("Scenario %r finished in %.1f ms", scenario.name, run_time_ms)
    logger.debug(
        "Final wealth p50=%.2f, P(positive)=%.3f, P(goal)=%s",
        monthly_stats[-1].p50,
        probability_positive,
        probability_goal,
    )

    return SimulationResult(
        monthly_stats=monthly_stats,
        final_balance_distribution=final.tolist(),
        probability_positive=probability_positive,
        probability_goal=probability_goal,
        run_time_ms=run_time_ms,
    )
