from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np

from cfsim_core.domain.errors import UnknownDistributionKind
from cfsim_core.domain.models import (
    BinaryDistribution,
    Distribution,
    FixedDistribution,
    LognormalDistribution,
    NormalDistribution,
    TriangularDistribution,
    UniformDistribution,
)


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    return np.random.default_rng(seed)


def _box_muller(rng: np.random.Generator) -> float:
    u1 = 0.0
    u2 = 0.0
    # log(0) guard
    while u1 == 0.0:
        u1 = float(rng.random())
    while u2 == 0.0:
        u2 = float(rng.random())
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


def sample_normal(mean: float, std_dev: float, rng: np.random.Generator) -> float:
    return mean + std_dev * _box_muller(rng)


def sample_uniform(min_value: float, max_value: float, rng: np.random.Generator) -> float:
    return min_value + float(rng.random()) * (max_value - min_value)


def sample_triangular(
    min_value: float, mode: float, max_value: float, rng: np.random.Generator
) -> float:
    """Inverse-CDF draw from a triangular distribution."""
    u = float(rng.random())
    span = max_value - min_value
    if span == 0:
        return min_value
    fc = (mode - min_value) / span
    if u < fc:
        return min_value + math.sqrt(u * span * (mode - min_value))
    return max_value - math.sqrt((1 - u) * span * (max_value - mode))


def sample_lognormal(mu: float, sigma: float, rng: np.random.Generator) -> float:
    return math.exp(sample_normal(mu, sigma, rng))


def sample_binary(
    probability: float, value_if_true: float, value_if_false: float, rng: np.random.Generator
) -> float:
    return value_if_true if float(rng.random()) < probability else value_if_false


def sample(dist: Distribution, rng: np.random.Generator) -> float:
    """
    Draw one value from any supported distribution.
    Fixed distributions consume no randomness.
    """
    if isinstance(dist, FixedDistribution):
        return dist.value
    if isinstance(dist, NormalDistribution):
        return sample_normal(dist.mean, dist.std_dev, rng)
    if isinstance(dist, UniformDistribution):
        return sample_uniform(dist.min, dist.max, rng)
    if isinstance(dist, TriangularDistribution):
        return sample_triangular(dist.min, dist.mode, dist.max, rng)
    if isinstance(dist, LognormalDistribution):
        return sample_lognormal(dist.mu, dist.sigma, rng)
    if isinstance(dist, BinaryDistribution):
        return sample_binary(dist.probability, dist.value_if_true, dist.value_if_false, rng)
    raise UnknownDistributionKind(getattr(dist, "kind", type(dist).__name__))


def mean(dist: Distribution) -> float:
    """Analytic expectation of a distribution."""
    if isinstance(dist, FixedDistribution):
        return dist.value
    if isinstance(dist, NormalDistribution):
        return dist.mean
    if isinstance(dist, UniformDistribution):
        return (dist.min + dist.max) / 2
    if isinstance(dist, TriangularDistribution):
        return (dist.min + dist.mode + dist.max) / 3
    if isinstance(dist, LognormalDistribution):
        return math.exp(dist.mu + dist.sigma * dist.sigma / 2)
    if isinstance(dist, BinaryDistribution):
        return dist.probability * dist.value_if_true + (1 - dist.probability) * dist.value_if_false
    raise UnknownDistributionKind(getattr(dist, "kind", type(dist).__name__))


def _fmt(value: float) -> str:
    """Thousands separators, at most three decimals, no trailing zeros."""
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def describe(dist: Distribution) -> str:
    if isinstance(dist, FixedDistribution):
        return _fmt(dist.value)
    if isinstance(dist, NormalDistribution):
        return f"μ={_fmt(dist.mean)}, σ={_fmt(dist.std_dev)}"
    if isinstance(dist, UniformDistribution):
        return f"{_fmt(dist.min)} - {_fmt(dist.max)}"
    if isinstance(dist, TriangularDistribution):
        return f"{_fmt(dist.min)} / {_fmt(dist.mode)} / {_fmt(dist.max)}"
    if isinstance(dist, LognormalDistribution):
        return f"μ={dist.mu:.2f}, σ={dist.sigma:.2f}"
    if isinstance(dist, BinaryDistribution):
        return f"{dist.probability * 100:.0f}% chance of {_fmt(dist.value_if_true)}"
    raise UnknownDistributionKind(getattr(dist, "kind", type(dist).__name__))


def lognormal_from_mean_std_dev(mean_value: float, std_dev: float) -> Tuple[float, float]:
    """
    Convert a lognormal's natural mean/std dev into (mu, sigma) of the
    underlying normal.
    """
    variance = std_dev * std_dev
    ratio = 1 + variance / (mean_value * mean_value)
    mu = math.log(mean_value / math.sqrt(ratio))
    sigma = math.sqrt(math.log(ratio))
    return mu, sigma


def lognormal_to_mean_std_dev(mu: float, sigma: float) -> Tuple[float, float]:
    mean_value = math.exp(mu + sigma * sigma / 2)
    variance = (math.exp(sigma * sigma) - 1) * math.exp(2 * mu + sigma * sigma)
    return mean_value, math.sqrt(variance)
