"""
partition.py
------------
Random bipartitions of the sample set and the Sil ratio that scores them.

For a fused matrix D and cluster-one mask c1 (c2 = ~c1):

  f1(D, c1) = sum(D[c1, c1]) + sum(D[c2, c2])    intra-cluster mass
  g1(D, c1) = sum(D[c1, c2])                     inter-cluster mass
  Sil       = f1 / g1

Sil is a domain-specific intra/inter mass ratio, NOT the textbook silhouette
coefficient; masses are not divided by cluster size because every partition in
a run has the same cluster-one size.

f1 and g1 are linear in D, so ∂Sil/∂θ is the quotient rule with ∂D/∂θ
substituted for D in f1 and g1.
"""

import logging

import numpy as np

from .config import QUOTIENT_MODES, QUOTIENT_RULE
from .errors import DegeneratePartition

log = logging.getLogger(__name__)


def quotient_rule(f: float, df, g: float, dg, mode: str = QUOTIENT_RULE):
    """
    Derivative of f/g given df and dg (scalars or arrays).

    mode="exact"  → (df·g − dg·f) / g²
    mode="legacy" → (df·g − dg·f) · g²   (bug-compatible form of the first
                    research implementation)
    """
    if mode not in QUOTIENT_MODES:
        raise ValueError(f"unknown quotient mode {mode!r}; "
                         f"expected one of {QUOTIENT_MODES}")
    numerator = np.asarray(df) * g - np.asarray(dg) * f
    if mode == "legacy":
        return numerator * g ** 2
    return numerator / g ** 2


def draw_partition(rng: np.random.Generator, n_samples: int,
                   size: int) -> np.ndarray:
    """Boolean cluster-one mask: `size` samples drawn without replacement."""
    if not 0 < size < n_samples:
        raise ValueError(f"cluster size {size} must be in (0, {n_samples})")
    mask = np.zeros(n_samples, dtype=bool)
    mask[rng.choice(n_samples, size=size, replace=False)] = True
    return mask


def as_mask(c1, n_samples: int) -> np.ndarray:
    """Accept a boolean mask or an index sequence for cluster one."""
    c1 = np.asarray(c1)
    if c1.dtype == bool:
        if c1.shape != (n_samples,):
            raise ValueError(f"mask length {c1.shape} != {n_samples} samples")
        return c1
    mask = np.zeros(n_samples, dtype=bool)
    mask[c1.astype(int)] = True
    return mask


def _check_partition(mask: np.ndarray) -> None:
    n_in = int(mask.sum())
    if n_in == 0 or n_in == mask.size:
        raise DegeneratePartition(
            f"cluster one has {n_in}/{mask.size} samples — no inter-cluster pairs")


def intra_mass(M: np.ndarray, mask: np.ndarray) -> float:
    """f1: total mass inside cluster one plus inside its complement."""
    m1 = mask.astype(np.float64)
    m2 = 1.0 - m1
    return float(m1 @ M @ m1 + m2 @ M @ m2)


def inter_mass(M: np.ndarray, mask: np.ndarray) -> float:
    """g1: mass of the cluster-one × complement block."""
    m1 = mask.astype(np.float64)
    return float(m1 @ M @ (1.0 - m1))


def sil_ratio(D: np.ndarray, c1) -> float:
    """Sil = f1 / g1 for an already-fused D."""
    mask = as_mask(c1, D.shape[0])
    _check_partition(mask)
    g1 = inter_mass(D, mask)
    if g1 == 0:
        raise DegeneratePartition("inter-cluster mass is zero")
    return intra_mass(D, mask) / g1


def sil(weights, ctx, c1) -> float:
    """Sil(α, β, U, L, c1): fuse at `weights` then score the partition."""
    return sil_ratio(ctx.distance(weights), c1)


def sil_gradient(ctx, D: np.ndarray, c1, mode: str = QUOTIENT_RULE):
    """
    Sil and its partials at the weights that produced D.

    Returns (sil_value, dSil/dα, dSil/dβ), the partials as length-2 arrays.
    """
    mask = as_mask(c1, D.shape[0])
    _check_partition(mask)
    f1 = intra_mass(D, mask)
    g1 = inter_mass(D, mask)
    if g1 == 0:
        raise DegeneratePartition("inter-cluster mass is zero")

    def partial(dD):
        return quotient_rule(f1, intra_mass(dD, mask),
                             g1, inter_mass(dD, mask), mode)

    d_alpha = np.array([partial(ctx.d_alpha(m)) for m in range(2)])
    d_beta = np.array([partial(ctx.d_beta(m)) for m in range(2)])
    return f1 / g1, d_alpha, d_beta
