"""
spectral.py
-----------
Normalised graph Laplacians, low-rank eigenspaces and the parameterised fused
distance matrix D(α, β).

  L'  = D^{-1/2} (diag(d) − S) D^{-1/2},   D^{-1/2} = 1 / sqrt(|d|)
  Uₘ  = eigenvectors of L'ₘ for the k smallest eigenvalues (ascending)
  D   = 1 − β₁L₁ − β₂L₂ + α₁U₁U₁ᵀ + α₂U₂U₂ᵀ

∂D/∂αₘ = UₘUₘᵀ and ∂D/∂βₘ = −Lₘ are the base case for every gradient in
partition.py and objective.py.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import pandas as pd
from scipy.linalg import eigh

from .errors import AlignmentError

log = logging.getLogger(__name__)

N_MODALITIES = 2


def build_laplacian(S) -> np.ndarray:
    """
    Symmetrically normalised Laplacian of a similarity matrix.

    The degree normalisation uses the absolute value of each degree, so a
    negative row sum (possible with cosine similarities) is normalised as if
    it were positive. This is logged, not rejected. A zero degree raises
    ValueError.
    """
    A = np.asarray(S, dtype=np.float64)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise ValueError(f"similarity matrix must be square, got {A.shape}")

    d = A.sum(axis=1)
    n_zero = int(np.sum(d == 0))
    if n_zero:
        raise ValueError(f"{n_zero} sample(s) have zero degree; "
                         f"normalised Laplacian undefined")
    n_neg = int(np.sum(d < 0))
    if n_neg:
        log.warning(f"  {n_neg} sample(s) have negative degree — "
                    f"normalising with |d|")

    L = np.diag(d) - A
    d_inv_sqrt = 1.0 / np.sqrt(np.abs(d))
    # D^{-1/2} L D^{-1/2} without materialising the diagonal matrices
    return d_inv_sqrt[:, None] * L * d_inv_sqrt[None, :]


def top_eigenvectors(L, k: int) -> np.ndarray:
    """Eigenvectors of the k smallest eigenvalues of symmetric L, as columns."""
    L = np.asarray(L, dtype=np.float64)
    n = L.shape[0]
    if not 1 <= k <= n:
        raise ValueError(f"eigen count k={k} out of range for {n} samples")
    # Symmetrise away rounding noise before handing to LAPACK
    L_sym = (L + L.T) / 2.0
    eigenvalues, eigenvectors = eigh(L_sym, subset_by_index=[0, k - 1])
    log.info(f"  Eigenvalues λ1..λ{k}: "
             + "  ".join(f"{v:.4f}" for v in eigenvalues))
    return eigenvectors


def save_laplacian(path: Path, L: np.ndarray, sample_ids) -> None:
    """Cache a Laplacian together with the sample order of its rows."""
    np.savez(path, laplacian=L, sample_ids=np.asarray(list(map(str, sample_ids))))


def load_laplacian(path: Path, sample_ids) -> np.ndarray:
    """
    Load a cached Laplacian, checking it was built for exactly `sample_ids`
    in the same order. Raises AlignmentError otherwise.
    """
    with np.load(path) as cached:
        L = cached["laplacian"]
        cached_ids = cached["sample_ids"].tolist()
    expected = list(map(str, sample_ids))
    if L.shape != (len(expected), len(expected)):
        raise AlignmentError(f"{path}: Laplacian {L.shape} for "
                             f"{len(expected)} cohort samples")
    if cached_ids != expected:
        n_diff = sum(a != b for a, b in zip(cached_ids, expected))
        raise AlignmentError(f"{path}: cached sample order differs from the "
                             f"cohort at {n_diff} position(s)")
    return L


def fused_distance(alpha, beta, U1, U2, L1, L2) -> np.ndarray:
    """D = 1 − β₁L₁ − β₂L₂ + α₁U₁U₁ᵀ + α₂U₂U₂ᵀ on the full sample grid."""
    return (1.0
            - beta[0] * L1 - beta[1] * L2
            + alpha[0] * (U1 @ U1.T) + alpha[1] * (U2 @ U2.T))


@dataclass(frozen=True, eq=False)
class SpectralContext:
    """Per-modality Laplacians and eigenbases, fixed for a whole run.

    ``laplacians`` and ``bases`` hold one entry per modality (expression,
    methylation). The projections UₘUₘᵀ are precomputed because they are
    both a term of D and its α-derivative.
    """
    laplacians: tuple
    bases: tuple
    sample_ids: list = field(default_factory=list)
    projections: tuple = field(init=False, repr=False)

    def __post_init__(self):
        if len(self.laplacians) != N_MODALITIES or len(self.bases) != N_MODALITIES:
            raise ValueError(f"expected {N_MODALITIES} modalities, got "
                             f"{len(self.laplacians)} Laplacians and "
                             f"{len(self.bases)} bases")
        n = self.laplacians[0].shape[0]
        for L, U in zip(self.laplacians, self.bases):
            if L.shape != (n, n) or U.shape[0] != n:
                raise ValueError("Laplacian / eigenbasis shapes do not agree")
        object.__setattr__(self, "projections",
                           tuple(U @ U.T for U in self.bases))

    @classmethod
    def from_similarities(cls, S1, S2, eigen_count: int) -> "SpectralContext":
        """Build both Laplacians and their top-k eigenbases."""
        sample_ids = list(S1.index) if isinstance(S1, pd.DataFrame) else []
        if isinstance(S1, pd.DataFrame) and isinstance(S2, pd.DataFrame):
            if not S1.index.equals(S2.index):
                raise ValueError("similarity matrices are indexed by "
                                 "different samples")
        laplacians, bases = [], []
        for i, S in enumerate((S1, S2), start=1):
            log.info(f"Modality {i}: Laplacian + top-{eigen_count} eigenbasis")
            L = build_laplacian(S)
            laplacians.append(L)
            bases.append(top_eigenvectors(L, eigen_count))
        return cls(tuple(laplacians), tuple(bases), sample_ids)

    @property
    def n_samples(self) -> int:
        return self.laplacians[0].shape[0]

    def distance(self, weights) -> np.ndarray:
        """D(α, β) for a WeightVector (or anything with .alpha / .beta)."""
        L1, L2 = self.laplacians
        P1, P2 = self.projections
        a, b = weights.alpha, weights.beta
        return 1.0 - b[0] * L1 - b[1] * L2 + a[0] * P1 + a[1] * P2

    def d_alpha(self, m: int) -> np.ndarray:
        """∂D/∂αₘ = UₘUₘᵀ (m is 0-based)."""
        return self.projections[m]

    def d_beta(self, m: int) -> np.ndarray:
        """∂D/∂βₘ = −Lₘ (m is 0-based)."""
        return -self.laplacians[m]
