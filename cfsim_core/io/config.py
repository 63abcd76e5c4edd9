from __future__ import annotations

import dataclasses
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from cfsim_core.domain.errors import InvalidScenarioConfig, UnknownDistributionKind
from cfsim_core.domain.models import (
    CATEGORIES,
    FREQUENCIES,
    BinaryDistribution,
    CashFlowParameter,
    Distribution,
    FixedDistribution,
    LognormalDistribution,
    NormalDistribution,
    Scenario,
    SimulationConfig,
    SimulationResult,
    TriangularDistribution,
    UniformDistribution,
)

# (dataclass, {json key: field name})
_DISTRIBUTION_FIELDS = {
    "fixed": (FixedDistribution, {"value": "value"}),
    "normal": (NormalDistribution, {"mean": "mean", "stdDev": "std_dev"}),
    "uniform": (UniformDistribution, {"min": "min", "max": "max"}),
    "triangular": (TriangularDistribution, {"min": "min", "mode": "mode", "max": "max"}),
    "lognormal": (LognormalDistribution, {"mu": "mu", "sigma": "sigma"}),
    "binary": (
        BinaryDistribution,
        {"probability": "probability", "valueIfTrue": "value_if_true", "valueIfFalse": "value_if_false"},
    ),
}


def _mapping(data: Any, where: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise InvalidScenarioConfig(f"Expected an object for {where}, got {type(data).__name__}")
    return data


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise InvalidScenarioConfig(f"Missing '{key}' in {where}")
    return data[key]


def _number(value: Any, where: str) -> float:
    if isinstance(value, bool):
        raise InvalidScenarioConfig(f"Expected a number for {where}, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidScenarioConfig(f"Expected a number for {where}, got {value!r}") from exc


def _integer(value: Any, where: str) -> int:
    """Whole numbers only: 12 and 12.0 pass, 12.7 and "12" do not."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidScenarioConfig(f"Expected an integer for {where}, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise InvalidScenarioConfig(f"Expected an integer for {where}, got {value!r}")
    return int(value)


def _optional_int(value: Any, where: str) -> Optional[int]:
    return None if value is None else _integer(value, where)


def distribution_from_dict(data: Any, where: str = "distribution") -> Distribution:
    data = _mapping(data, where)
    kind = data.get("type")
    if kind not in _DISTRIBUTION_FIELDS:
        raise UnknownDistributionKind(kind)
    cls, fields = _DISTRIBUTION_FIELDS[kind]
    kwargs = {
        attr: _number(_require(data, key, f"{where} ({kind})"), f"{where}.{key}")
        for key, attr in fields.items()
    }
    return cls(**kwargs)


def distribution_to_dict(dist: Distribution) -> Dict[str, Any]:
    kind = getattr(dist, "kind", None)
    if kind not in _DISTRIBUTION_FIELDS:
        raise UnknownDistributionKind(kind)
    _, fields = _DISTRIBUTION_FIELDS[kind]
    payload: Dict[str, Any] = {"type": kind}
    for key, attr in fields.items():
        payload[key] = getattr(dist, attr)
    return payload


def parameter_from_dict(data: Any) -> CashFlowParameter:
    data = _mapping(data, "parameter")
    where = f"parameter {data.get('name', data.get('id', '?'))!r}"
    category = _require(data, "category", where)
    if category not in CATEGORIES:
        raise InvalidScenarioConfig(f"Unknown category {category!r} in {where}")
    frequency = data.get("frequency", "monthly")
    if frequency not in FREQUENCIES:
        raise InvalidScenarioConfig(f"Unknown frequency {frequency!r} in {where}")

    return_rate = data.get("returnRate")
    return CashFlowParameter(
        id=str(_require(data, "id", where)),
        name=str(data.get("name", "")),
        category=category,
        amount=distribution_from_dict(_require(data, "amount", where), f"{where}.amount"),
        growth_rate=distribution_from_dict(
            data.get("growthRate") or {"type": "fixed", "value": 0}, f"{where}.growthRate"
        ),
        frequency=frequency,
        start_month=_optional_int(data.get("startMonth"), f"{where}.startMonth"),
        end_month=_optional_int(data.get("endMonth"), f"{where}.endMonth"),
        return_rate=distribution_from_dict(return_rate, f"{where}.returnRate") if return_rate else None,
    )


def parameter_to_dict(param: CashFlowParameter) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": param.id,
        "name": param.name,
        "category": param.category,
        "amount": distribution_to_dict(param.amount),
        "growthRate": distribution_to_dict(param.growth_rate),
        "frequency": param.frequency,
    }
    if param.start_month is not None:
        payload["startMonth"] = param.start_month
    if param.end_month is not None:
        payload["endMonth"] = param.end_month
    if param.return_rate is not None:
        payload["returnRate"] = distribution_to_dict(param.return_rate)
    return payload


def config_from_dict(data: Any) -> SimulationConfig:
    data = _mapping(data, "config")
    return SimulationConfig(
        initial_balance=distribution_from_dict(
            _require(data, "initialBalance", "config"), "config.initialBalance"
        ),
        time_horizon_months=_integer(data.get("timeHorizonMonths", 60), "config.timeHorizonMonths"),
        iterations=_integer(data.get("iterations", 1000), "config.iterations"),
        inflation_rate=distribution_from_dict(
            data.get("inflationRate") or {"type": "fixed", "value": 0}, "config.inflationRate"
        ),
        currency=str(data.get("currency", "USD")),
    )


def config_to_dict(config: SimulationConfig) -> Dict[str, Any]:
    return {
        "initialBalance": distribution_to_dict(config.initial_balance),
        "timeHorizonMonths": config.time_horizon_months,
        "iterations": config.iterations,
        "inflationRate": distribution_to_dict(config.inflation_rate),
        "currency": config.currency,
    }


def scenario_from_dict(data: Any) -> Scenario:
    data = _mapping(data, "scenario")
    parameters = data.get("parameters", [])
    if not isinstance(parameters, list):
        raise InvalidScenarioConfig("Expected a list for scenario.parameters")
    return Scenario(
        id=str(_require(data, "id", "scenario")),
        name=str(data.get("name", "")),
        parameters=tuple(parameter_from_dict(p) for p in parameters),
        config=config_from_dict(_require(data, "config", "scenario")),
        created_at=str(data.get("createdAt", "")),
        updated_at=str(data.get("updatedAt", "")),
    )


def scenario_to_dict(scenario: Scenario) -> Dict[str, Any]:
    return {
        "id": scenario.id,
        "name": scenario.name,
        "parameters": [parameter_to_dict(p) for p in scenario.parameters],
        "config": config_to_dict(scenario.config),
        "createdAt": scenario.created_at,
        "updatedAt": scenario.updated_at,
    }


def result_to_dict(result: SimulationResult) -> Dict[str, Any]:
    return {
        "monthlyStats": [dataclasses.asdict(s) for s in result.monthly_stats],
        "finalBalanceDistribution": list(result.final_balance_distribution),
        "probabilityPositive": result.probability_positive,
        "probabilityGoal": result.probability_goal,
        "runTimeMs": result.run_time_ms,
    }


def load_scenario(path: str | Path) -> Scenario:
    return scenario_from_dict(read_json(path))


def save_scenario(path: str | Path, scenario: Scenario) -> Path:
    return write_json(path, scenario_to_dict(scenario))


def read_json(path: str | Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: str | Path, payload: Any) -> Path:
    """Write through a sibling temp file; the target is replaced only once complete."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        os.unlink(tmp_name)
        raise
    return path
