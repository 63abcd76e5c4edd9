from __future__ import annotations

import datetime as dt
import uuid

from cfsim_core.domain.models import (
    BinaryDistribution,
    CashFlowParameter,
    FixedDistribution,
    NormalDistribution,
    Scenario,
    SimulationConfig,
    TriangularDistribution,
    UniformDistribution,
)


def utc_now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


def default_config() -> SimulationConfig:
    return SimulationConfig(
        initial_balance=FixedDistribution(value=10000.0),
        time_horizon_months=60,
        iterations=1000,
        inflation_rate=NormalDistribution(mean=0.03, std_dev=0.01),
        currency="USD",
    )


def create_new_scenario(name: str) -> Scenario:
    now = utc_now_iso()
    return Scenario(
        id=_new_id(),
        name=name,
        parameters=(),
        config=default_config(),
        created_at=now,
        updated_at=now,
    )


def create_freelancer_example() -> Scenario:
    """
    Irregular freelance income, rent and living costs, a possible big
    contract in year two and a monthly index-fund contribution.
    """
    now = utc_now_iso()
    parameters = (
        CashFlowParameter(
            id=_new_id(),
            name="Client Projects",
            category="income",
            amount=NormalDistribution(mean=5000.0, std_dev=1500.0),
            growth_rate=UniformDistribution(min=0.02, max=0.08),
            frequency="monthly",
        ),
        CashFlowParameter(
            id=_new_id(),
            name="Rent",
            category="expense",
            amount=FixedDistribution(value=1500.0),
            growth_rate=FixedDistribution(value=0.03),
            frequency="monthly",
        ),
        CashFlowParameter(
            id=_new_id(),
            name="Living Expenses",
            category="expense",
            amount=TriangularDistribution(min=800.0, mode=1200.0, max=2000.0),
            growth_rate=NormalDistribution(mean=0.025, std_dev=0.01),
            frequency="monthly",
        ),
        CashFlowParameter(
            id=_new_id(),
            name="Big Client Contract",
            category="one-time",
            amount=BinaryDistribution(probability=0.3, value_if_true=20000.0, value_if_false=0.0),
            growth_rate=FixedDistribution(value=0.0),
            frequency="one-time",
            start_month=12,
        ),
        CashFlowParameter(
            id=_new_id(),
            name="Index Fund",
            category="investment",
            amount=FixedDistribution(value=500.0),
            growth_rate=FixedDistribution(value=0.0),
            frequency="monthly",
            return_rate=NormalDistribution(mean=0.07, std_dev=0.15),
        ),
    )
    return Scenario(
        id=_new_id(),
        name="Freelancer Example",
        parameters=parameters,
        config=default_config(),
        created_at=now,
        updated_at=now,
    )
