from cfsim_core.services.distributions import describe, mean, sample  # noqa: F401
from cfsim_core.services.engine import aggregate_results, run_simulation, simulate_single_iteration  # noqa: F401
from cfsim_core.services.presets import create_freelancer_example, create_new_scenario  # noqa: F401

__all__ = [
    "sample",
    "mean",
    "describe",
    "run_simulation",
    "simulate_single_iteration",
    "aggregate_results",
    "create_new_scenario",
    "create_freelancer_example",
]
