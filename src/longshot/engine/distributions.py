"""Discrete and continuous tail primitives shared by the estimators.

Every function here works in probability units (``0..1``); callers convert to
percentages at the edge.
"""

from __future__ import annotations

import math
from typing import List, Sequence

from .utils import clamp


# ---------------------------------------------------------------------------
# Count tails
# ---------------------------------------------------------------------------


def poisson_tail_at_least(lam: float, threshold: float) -> float:
    """Return ``P(X >= threshold)`` for ``X ~ Poisson(lam)``."""

    k = max(0, math.floor(threshold))
    if k == 0:
        return 1.0
    if not math.isfinite(lam) or lam <= 0:
        return 0.0
    term = math.exp(-lam)
    cdf = term
    for i in range(1, k):
        term *= lam / i
        cdf += term
    return clamp(1.0 - cdf, 0.0, 1.0)


def negative_binomial_tail_at_least(mean: float, dispersion: float, threshold: float) -> float:
    """Return ``P(X >= threshold)`` for a mean/size parameterised negative binomial.

    ``dispersion`` is the size parameter ``k``; variance is ``mean + mean**2 / k``.
    """

    t = max(0, math.floor(threshold))
    if t == 0:
        return 1.0
    k = clamp(dispersion or 5.0, 0.8, 40.0)
    mu = clamp(mean or 0.0, 0.01, 200.0)
    p = k / (k + mu)
    q = 1.0 - p
    pmf = p**k
    cdf = pmf
    for x in range(1, t):
        pmf *= (x + k - 1.0) / x * q
        cdf += pmf
        if x > mu and pmf < 1e-14:
            break
    return clamp(1.0 - cdf, 0.0, 1.0)


def normal_cdf(x: float, mean: float = 0.0, stdev: float = 1.0) -> float:
    if stdev <= 1e-9:
        return 1.0 if x >= mean else 0.0
    z = (x - mean) / (stdev * math.sqrt(2.0))
    return 0.5 * (1.0 + math.erf(z))


def normal_tail_at_least(mean: float, sigma: float, threshold: float) -> float:
    """Continuity-corrected ``P(X >= threshold)`` under a normal approximation."""

    sd = max(0.8, sigma or 1.0)
    return clamp(1.0 - normal_cdf(threshold - 0.5, mean, sd), 0.0, 1.0)


# ---------------------------------------------------------------------------
# Team records
# ---------------------------------------------------------------------------


def log_choose(n: int, k: int) -> float:
    return math.lgamma(n + 1) - math.lgamma(k + 1) - math.lgamma(n - k + 1)


def log_beta(a: float, b: float) -> float:
    return math.lgamma(a) + math.lgamma(b) - math.lgamma(a + b)


def beta_binomial_pmf(k: int, n: int = 17, alpha: float = 30.0, beta: float = 30.0) -> float:
    """Probability of exactly ``k`` successes in ``n`` beta-binomial trials.

    Evaluated in the log domain so large combinatorial terms never overflow.
    """

    if k < 0 or k > n:
        return 0.0
    log_pmf = log_choose(n, k) + log_beta(k + alpha, n - k + beta) - log_beta(alpha, beta)
    return math.exp(log_pmf)


def beta_binomial_tail_at_least(
    k: int, n: int = 17, alpha: float = 30.0, beta: float = 30.0
) -> float:
    """``P(X >= k)`` for the beta-binomial record model."""

    return clamp(sum(beta_binomial_pmf(j, n, alpha, beta) for j in range(max(0, k), n + 1)), 0.0, 1.0)


# ---------------------------------------------------------------------------
# League-wide unions
# ---------------------------------------------------------------------------


def any_entity_probability(probability: float, entities: int) -> float:
    """Probability at least one of ``entities`` independent entities hits.

    ``1 - (1 - p) ** n``; always within ``[p, 1]`` for ``n >= 1``.
    """

    p = clamp(probability, 0.0, 1.0)
    n = max(1, int(entities))
    return clamp(1.0 - (1.0 - p) ** n, p, 1.0)


# ---------------------------------------------------------------------------
# Poisson-binomial
# ---------------------------------------------------------------------------


def poisson_binomial_pmf(probabilities: Sequence[float]) -> List[float]:
    """Full count distribution for independent, non-identical Bernoulli trials.

    Returns a list of length ``len(probabilities) + 1`` whose entry ``j`` is
    the probability of exactly ``j`` successes. Each trial updates the mass
    array right-to-left so every ``dp[j - 1]`` read is still the pre-trial
    value.
    """

    n = len(probabilities)
    dp = [0.0] * (n + 1)
    dp[0] = 1.0
    for raw in probabilities:
        p = clamp(float(raw), 0.0, 1.0)
        for j in range(n, 0, -1):
            dp[j] = dp[j] * (1.0 - p) + dp[j - 1] * p
        dp[0] *= 1.0 - p
    return dp


def poisson_binomial_at_least(probabilities: Sequence[float], k: int) -> float:
    pmf = poisson_binomial_pmf(probabilities)
    return clamp(sum(pmf[max(0, k):]), 0.0, 1.0)


def poisson_binomial_exactly(probabilities: Sequence[float], k: int) -> float:
    pmf = poisson_binomial_pmf(probabilities)
    if k < 0 or k >= len(pmf):
        return 0.0
    return clamp(pmf[k], 0.0, 1.0)


__all__ = [
    "any_entity_probability",
    "beta_binomial_pmf",
    "beta_binomial_tail_at_least",
    "log_beta",
    "log_choose",
    "negative_binomial_tail_at_least",
    "normal_cdf",
    "normal_tail_at_least",
    "poisson_binomial_at_least",
    "poisson_binomial_exactly",
    "poisson_binomial_pmf",
    "poisson_tail_at_least",
]
