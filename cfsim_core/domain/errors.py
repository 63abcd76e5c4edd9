from __future__ import annotations


class CashflowSimError(Exception):
    """Base class for errors raised by cfsim_core."""


class UnknownDistributionKind(CashflowSimError, TypeError):
    def __init__(self, kind) -> None:
        super().__init__(f"Unknown distribution type: {kind!r}")
        self.kind = kind


class InvalidScenarioConfig(CashflowSimError, ValueError):
    pass


class SimulationCancelled(CashflowSimError):
    def __init__(self, completed: int, total: int) -> None:
        super().__init__(f"Simulation cancelled after {completed}/{total} iterations")
        self.completed = completed
        self.total = total
