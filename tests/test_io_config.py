import json
from pathlib import Path

import pytest

from cfsim_core.domain.errors import InvalidScenarioConfig, UnknownDistributionKind
from cfsim_core.domain.models import (
    BinaryDistribution,
    LognormalDistribution,
    NormalDistribution,
    TriangularDistribution,
)
from cfsim_core.io import config as config_io
from cfsim_core.services import engine, presets


def _scenario_payload():
    return {
        "id": "abc",
        "name": "Stored in browser",
        "parameters": [
            {
                "id": "p1",
                "name": "Salary",
                "category": "income",
                "amount": {"type": "normal", "mean": 4000, "stdDev": 300},
                "growthRate": {"type": "fixed", "value": 0.03},
                "frequency": "monthly",
            },
            {
                "id": "p2",
                "name": "Fund",
                "category": "investment",
                "amount": {"type": "fixed", "value": 250},
                "growthRate": {"type": "fixed", "value": 0},
                "frequency": "monthly",
                "startMonth": 3,
                "endMonth": 40,
                "returnRate": {"type": "lognormal", "mu": -2.7, "sigma": 0.2},
            },
        ],
        "config": {
            "initialBalance": {"type": "triangular", "min": 0, "mode": 500, "max": 1000},
            "timeHorizonMonths": 48,
            "iterations": 200,
            "inflationRate": {"type": "binary", "probability": 0.2, "valueIfTrue": 0.08, "valueIfFalse": 0.02},
            "currency": "NOK",
        },
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-02T00:00:00Z",
    }


def test_scenario_from_camel_case_json():
    scenario = config_io.scenario_from_dict(_scenario_payload())
    salary, fund = scenario.parameters
    assert salary.amount == NormalDistribution(mean=4000.0, std_dev=300.0)
    assert salary.start_month is None and salary.return_rate is None
    assert fund.start_month == 3 and fund.end_month == 40
    assert fund.return_rate == LognormalDistribution(mu=-2.7, sigma=0.2)
    assert scenario.config.initial_balance == TriangularDistribution(min=0.0, mode=500.0, max=1000.0)
    assert scenario.config.inflation_rate == BinaryDistribution(
        probability=0.2, value_if_true=0.08, value_if_false=0.02
    )
    assert scenario.config.currency == "NOK"
    assert scenario.created_at == "2024-01-01T00:00:00Z"


def test_scenario_dict_is_stable_through_json():
    payload = _scenario_payload()
    scenario = config_io.scenario_from_dict(payload)
    again = config_io.scenario_from_dict(json.loads(json.dumps(config_io.scenario_to_dict(scenario))))
    assert again == scenario


def test_unknown_distribution_type_rejected():
    with pytest.raises(UnknownDistributionKind):
        config_io.distribution_from_dict({"type": "pareto", "alpha": 2})


def test_missing_distribution_field_rejected():
    with pytest.raises(InvalidScenarioConfig):
        config_io.distribution_from_dict({"type": "normal", "mean": 1})


@pytest.mark.parametrize("key,value", [("category", "salary"), ("frequency", "weekly")])
def test_invalid_enumerations_rejected(key, value):
    payload = _scenario_payload()
    payload["parameters"][0][key] = value
    with pytest.raises(InvalidScenarioConfig):
        config_io.scenario_from_dict(payload)


def test_missing_config_rejected():
    payload = _scenario_payload()
    del payload["config"]
    with pytest.raises(InvalidScenarioConfig):
        config_io.scenario_from_dict(payload)


def test_save_and_load_example(tmp_path: Path):
    example = presets.create_freelancer_example()
    path = config_io.save_scenario(tmp_path / "nested" / "example.json", example)
    assert path.exists()
    loaded = config_io.load_scenario(path)
    assert loaded == example
    assert [p.category for p in loaded.parameters] == ["income", "expense", "expense", "one-time", "investment"]


def test_result_to_dict_is_json_serializable():
    scenario = config_io.scenario_from_dict(_scenario_payload())
    result = engine.run_simulation(scenario, goal_amount=100_000, seed=3)
    payload = json.loads(json.dumps(config_io.result_to_dict(result)))
    assert len(payload["monthlyStats"]) == 48
    assert set(payload["monthlyStats"][0]) == {"month", "p5", "p10", "p25", "p50", "p75", "p90", "p95", "mean"}
    assert len(payload["finalBalanceDistribution"]) == 200
    assert payload["probabilityGoal"] is not None


@pytest.mark.parametrize(
    "mutate",
    [
        lambda p: p["parameters"][0]["amount"].update(mean="lots"),
        lambda p: p["parameters"][0]["amount"].update(stdDev=None),
        lambda p: p["parameters"][0].update(amount=[1, 2]),
        lambda p: p["parameters"][1].update(startMonth="soon"),
        lambda p: p["config"].update(initialBalance=5),
        lambda p: p.update(parameters={"p1": {}}),
        lambda p: p["parameters"].append("salary"),
        lambda p: p.update(config="default"),
    ],
)
def test_malformed_values_raise_invalid_config(mutate):
    payload = _scenario_payload()
    mutate(payload)
    with pytest.raises(InvalidScenarioConfig):
        config_io.scenario_from_dict(payload)


def test_malformed_number_error_names_the_field():
    payload = _scenario_payload()
    payload["parameters"][0]["amount"]["mean"] = "lots"
    with pytest.raises(InvalidScenarioConfig, match="Salary.*amount.mean"):
        config_io.scenario_from_dict(payload)


def test_non_object_scenario_rejected():
    with pytest.raises(InvalidScenarioConfig):
        config_io.scenario_from_dict([1, 2, 3])


@pytest.mark.parametrize("key", ["timeHorizonMonths", "iterations"])
def test_fractional_counts_rejected(key):
    payload = _scenario_payload()
    payload["config"][key] = 12.7
    with pytest.raises(InvalidScenarioConfig, match=key):
        config_io.scenario_from_dict(payload)


def test_whole_float_counts_accepted():
    payload = _scenario_payload()
    payload["config"]["timeHorizonMonths"] = 24.0
    payload["parameters"][1]["startMonth"] = 3.0
    scenario = config_io.scenario_from_dict(payload)
    assert scenario.config.time_horizon_months == 24
    assert isinstance(scenario.config.time_horizon_months, int)
    assert scenario.parameters[1].start_month == 3


def test_fractional_start_month_rejected():
    payload = _scenario_payload()
    payload["parameters"][1]["startMonth"] = 2.5
    with pytest.raises(InvalidScenarioConfig):
        config_io.scenario_from_dict(payload)
