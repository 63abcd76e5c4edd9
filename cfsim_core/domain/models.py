from __future__ import annotations

import dataclasses
from typing import ClassVar, Dict, List, Optional, Tuple, Union

CATEGORIES = ("income", "expense", "investment", "one-time")
FREQUENCIES = ("monthly", "yearly", "one-time")
PERCENTILES = (5, 10, 25, 50, 75, 90, 95)


@dataclasses.dataclass(frozen=True)
class FixedDistribution:
    kind: ClassVar[str] = "fixed"

    value: float


@dataclasses.dataclass(frozen=True)
class NormalDistribution:
    kind: ClassVar[str] = "normal"

    mean: float
    std_dev: float


@dataclasses.dataclass(frozen=True)
class UniformDistribution:
    kind: ClassVar[str] = "uniform"

    min: float
    max: float


@dataclasses.dataclass(frozen=True)
class TriangularDistribution:
    kind: ClassVar[str] = "triangular"

    min: float
    mode: float
    max: float


@dataclasses.dataclass(frozen=True)
class LognormalDistribution:
    """mu and sigma describe the underlying normal, not the lognormal itself."""

    kind: ClassVar[str] = "lognormal"

    mu: float
    sigma: float


@dataclasses.dataclass(frozen=True)
class BinaryDistribution:
    kind: ClassVar[str] = "binary"

    probability: float  # 0..1
    value_if_true: float
    value_if_false: float


Distribution = Union[
    FixedDistribution,
    NormalDistribution,
    UniformDistribution,
    TriangularDistribution,
    LognormalDistribution,
    BinaryDistribution,
]

DISTRIBUTION_TYPES: Tuple[type, ...] = (
    FixedDistribution,
    NormalDistribution,
    UniformDistribution,
    TriangularDistribution,
    LognormalDistribution,
    BinaryDistribution,
)

DEFAULT_DISTRIBUTIONS: Dict[str, Distribution] = {
    "fixed": FixedDistribution(value=0.0),
    "normal": NormalDistribution(mean=0.0, std_dev=100.0),
    "uniform": UniformDistribution(min=0.0, max=100.0),
    "triangular": TriangularDistribution(min=0.0, mode=50.0, max=100.0),
    "lognormal": LognormalDistribution(mu=0.0, sigma=0.5),
    "binary": BinaryDistribution(probability=0.5, value_if_true=100.0, value_if_false=0.0),
}

DISTRIBUTION_LABELS = {
    "fixed": "Fixed Value",
    "normal": "Normal (Gaussian)",
    "uniform": "Uniform",
    "triangular": "Triangular",
    "lognormal": "Log-normal",
    "binary": "Binary (On/Off)",
}

CATEGORY_LABELS = {
    "income": "Income",
    "expense": "Expenses",
    "investment": "Investments",
    "one-time": "One-time Events",
}

FREQUENCY_LABELS = {
    "monthly": "Monthly",
    "yearly": "Yearly",
    "one-time": "One-time",
}


@dataclasses.dataclass(frozen=True)
class CashFlowParameter:
    id: str
    name: str
    category: str  # one of CATEGORIES
    amount: Distribution
    growth_rate: Distribution  # annual, 0.03 = 3%
    frequency: str = "monthly"  # one of FREQUENCIES
    start_month: Optional[int] = None  # inclusive, 0-indexed
    end_month: Optional[int] = None  # inclusive, 0-indexed
    return_rate: Optional[Distribution] = None  # annual, investments only


@dataclasses.dataclass(frozen=True)
class SimulationConfig:
    initial_balance: Distribution
    time_horizon_months: int = 60
    iterations: int = 1000
    inflation_rate: Distribution = FixedDistribution(value=0.0)
    currency: str = "USD"


@dataclasses.dataclass(frozen=True)
class Scenario:
    id: str
    name: str
    parameters: Tuple[CashFlowParameter, ...]
    config: SimulationConfig
    created_at: str = ""
    updated_at: str = ""


@dataclasses.dataclass
class TrialTrace:
    """Month-by-month split of one trial's wealth."""

    cash: List[float]
    investments: List[float]

    @property
    def wealth(self) -> List[float]:
        return [c + i for c, i in zip(self.cash, self.investments)]


@dataclasses.dataclass(frozen=True)
class MonthlyStats:
    month: int
    p5: float
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float
    p95: float
    mean: float


@dataclasses.dataclass
class SimulationResult:
    monthly_stats: List[MonthlyStats]
    final_balance_distribution: List[float]  # sorted ascending
    probability_positive: float
    probability_goal: Optional[float] = None
    run_time_ms: float = 0.0

    @property
    def final_stats(self) -> MonthlyStats:
        return self.monthly_stats[-1]

    def to_dataframe(self):
        """Monthly percentile bands as a DataFrame indexed by month."""
        import pandas as pd

        df = pd.DataFrame([dataclasses.asdict(s) for s in self.monthly_stats])
        return df.set_index("month")
