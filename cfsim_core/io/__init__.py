from cfsim_core.io.config import (  # noqa: F401
    load_scenario,
    result_to_dict,
    save_scenario,
    scenario_from_dict,
    scenario_to_dict,
)
from cfsim_core.io.store import ScenarioStore  # noqa: F401

__all__ = [
    "ScenarioStore",
    "load_scenario",
    "result_to_dict",
    "save_scenario",
    "scenario_from_dict",
    "scenario_to_dict",
]
