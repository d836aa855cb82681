"""
objective.py
------------
ρ = Corr(Sil, 1/p) over a window of partitions, with analytic gradients.

For partitions i = 1..n in the window, xᵢ = Sil of partition i at the current
weights and yᵢ = 1/pᵢ, where pᵢ is that partition's log-rank p-value. A
partition whose survival curves separate strongly has a large yᵢ, so a positive
ρ means the fused geometry ranks partitions the way survival does.

  f2 = Cov(x, y)           (population)
  g2 = σ(x)·σ(y)           (population)
  ρ  = f2 / g2

  ∂f2/∂xᵢ = (yᵢ − ȳ)/n                      mode="exact"
          = (n−1)/n² · (yᵢ − ȳ)             mode="legacy"
  ∂g2/∂xᵢ = σ(y)·(xᵢ − x̄) / (n·σ(x))

  ∂ρ/∂θ   = quotient rule over f2/g2 with ∂·/∂θ = Σᵢ ∂·/∂xᵢ · ∂xᵢ/∂θ

The window accumulates the most recent partitions across training
iterations; every evaluation recomputes Sil for all of them at the weights
being evaluated.
"""

import logging
from collections import deque
from dataclasses import dataclass

import numpy as np

from .config import N_PARTITIONS, QUOTIENT_MODES, QUOTIENT_RULE
from .errors import DegeneratePartition, DegenerateStatistics
from .partition import quotient_rule, sil_gradient, sil_ratio

log = logging.getLogger(__name__)

STD_TOL = 1e-12      # relative: σ below this × max(1, |mean|) counts as zero


def _is_flat(values: np.ndarray) -> bool:
    return values.std() <= STD_TOL * max(1.0, abs(values.mean()))


@dataclass(frozen=True)
class CovariateContext:
    """Per-partition covariate p and the statistics of y = 1/p."""
    pvalues: np.ndarray
    reciprocal: np.ndarray
    mean: float
    std: float

    @classmethod
    def from_pvalues(cls, pvalues) -> "CovariateContext":
        p = np.asarray(pvalues, dtype=np.float64)
        if np.any(~np.isfinite(p)) or np.any(p <= 0):
            raise ValueError("covariate values must be finite and > 0")
        y = 1.0 / p
        return cls(p, y, float(y.mean()), float(y.std()))


def correlation_terms(x, covariate: CovariateContext,
                      mode: str = QUOTIENT_RULE):
    """
    ρ and the per-partition partials of its numerator and denominator.

    Returns (rho, f2, g2, df2_dx, dg2_dx). Raises DegenerateStatistics when
    either x or y has zero variance.
    """
    if mode not in QUOTIENT_MODES:
        raise ValueError(f"unknown quotient mode {mode!r}")
    x = np.asarray(x, dtype=np.float64)
    y = covariate.reciprocal
    n = x.size
    if n != y.size:
        raise ValueError(f"{n} Sil values but {y.size} covariate values")
    if n < 2:
        raise DegenerateStatistics(f"need at least 2 partitions, have {n}")
    if _is_flat(x):
        raise DegenerateStatistics("Sil is constant across partitions")
    if _is_flat(y):
        raise DegenerateStatistics("1/p is constant across partitions")

    xc = x - x.mean()
    yc = y - covariate.mean
    sx = float(x.std())
    sy = covariate.std

    f2 = float(np.mean(xc * yc))
    g2 = sx * sy
    rho = f2 / g2

    if mode == "legacy":
        df2_dx = (n - 1) / n ** 2 * yc
    else:
        df2_dx = yc / n
    dg2_dx = sy * xc / (n * sx)
    return rho, f2, g2, df2_dx, dg2_dx


class CorrelationObjective:
    """Window of (partition, p-value) pairs scored against fused weights."""

    def __init__(self, ctx, n_partitions: int = N_PARTITIONS,
                 mode: str = QUOTIENT_RULE):
        if mode not in QUOTIENT_MODES:
            raise ValueError(f"unknown quotient mode {mode!r}")
        if n_partitions < 2:
            raise ValueError("correlation window needs at least 2 partitions")
        self.ctx = ctx
        self.mode = mode
        self.n_partitions = n_partitions
        self._window = deque(maxlen=n_partitions)

    def __len__(self) -> int:
        return len(self._window)

    def add_partition(self, mask, pvalue: float) -> None:
        """Track a partition together with its covariate value."""
        if not np.isfinite(pvalue) or pvalue <= 0:
            raise ValueError(f"covariate must be finite and > 0, got {pvalue}")
        mask = np.asarray(mask, dtype=bool).copy()
        if mask.shape != (self.ctx.n_samples,):
            raise ValueError(f"mask length {mask.shape} != "
                             f"{self.ctx.n_samples} samples")
        self._window.append((mask, float(pvalue)))

    def _scores(self, weights, with_gradient: bool):
        D = self.ctx.distance(weights)
        sils, d_alpha, d_beta, pvalues = [], [], [], []
        for i, (mask, p) in enumerate(self._window):
            try:
                if with_gradient:
                    s, da, db = sil_gradient(self.ctx, D, mask, self.mode)
                    d_alpha.append(da)
                    d_beta.append(db)
                else:
                    s = sil_ratio(D, mask)
            except DegeneratePartition as exc:
                log.warning(f"  Partition {i} dropped from objective: {exc}")
                continue
            sils.append(s)
            pvalues.append(p)
        if len(sils) < 2:
            raise DegenerateStatistics(
                f"{len(sils)} usable partition(s) in window of {len(self)}")
        return (np.array(sils), CovariateContext.from_pvalues(pvalues),
                np.array(d_alpha), np.array(d_beta))

    def rho(self, weights) -> float:
        """ρ at the given weights."""
        sils, covariate, _, _ = self._scores(weights, with_gradient=False)
        return correlation_terms(sils, covariate, self.mode)[0]

    def gradient(self, weights):
        """Returns (ρ, ∂ρ/∂α, ∂ρ/∂β) at the given weights."""
        sils, covariate, d_alpha, d_beta = self._scores(weights,
                                                        with_gradient=True)
        rho, f2, g2, df2_dx, dg2_dx = correlation_terms(sils, covariate,
                                                        self.mode)
        # Σᵢ ∂·/∂xᵢ · ∂xᵢ/∂θ  →  length-2 vectors
        grad_alpha = quotient_rule(f2, df2_dx @ d_alpha,
                                   g2, dg2_dx @ d_alpha, self.mode)
        grad_beta = quotient_rule(f2, df2_dx @ d_beta,
                                  g2, dg2_dx @ d_beta, self.mode)
        return rho, grad_alpha, grad_beta
