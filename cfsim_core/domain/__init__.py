from cfsim_core.domain.errors import (  # noqa: F401
    CashflowSimError,
    InvalidScenarioConfig,
    SimulationCancelled,
    UnknownDistributionKind,
)
from cfsim_core.domain.models import (  # noqa: F401
    BinaryDistribution,
    CashFlowParameter,
    Distribution,
    FixedDistribution,
    LognormalDistribution,
    MonthlyStats,
    NormalDistribution,
    Scenario,
    SimulationConfig,
    SimulationResult,
    TrialTrace,
    TriangularDistribution,
    UniformDistribution,
)

__all__ = [
    "BinaryDistribution",
    "CashFlowParameter",
    "CashflowSimError",
    "Distribution",
    "FixedDistribution",
    "InvalidScenarioConfig",
    "LognormalDistribution",
    "MonthlyStats",
    "NormalDistribution",
    "Scenario",
    "SimulationCancelled",
    "SimulationConfig",
    "SimulationResult",
    "TrialTrace",
    "TriangularDistribution",
    "UniformDistribution",
    "UnknownDistributionKind",
]
