"""
Multi-omics subspace fusion with survival-correlated weight learning.

Expression and methylation cosine-similarity graphs are merged into a fused
matrix D(α, β) from their normalised Laplacians and top-k eigenspaces; α and β
are learned by gradient ascent on the correlation between a cluster mass ratio
(Sil) and the reciprocal log-rank p-value over random bipartitions.
"""
from .errors import (
    FusionError, AlignmentError, ZeroNormSampleError,
    DegeneratePartition, DegenerateStatistics, SurvivalFitFailure,
)
from .similarity import compute_cosine_similarity
from .spectral import (
    SpectralContext, build_laplacian, top_eigenvectors, fused_distance,
)
from .partition import (
    draw_partition, intra_mass, inter_mass, sil, sil_ratio, sil_gradient,
    quotient_rule,
)
from .objective import CovariateContext, CorrelationObjective, correlation_terms
from .optimizer import WeightVector, Optimizer
from .harness import History, TrialHarness

__all__ = [
    "FusionError", "AlignmentError", "ZeroNormSampleError",
    "DegeneratePartition", "DegenerateStatistics", "SurvivalFitFailure",
    "compute_cosine_similarity",
    "SpectralContext", "build_laplacian", "top_eigenvectors", "fused_distance",
    "draw_partition", "intra_mass", "inter_mass", "sil", "sil_ratio",
    "sil_gradient", "quotient_rule",
    "CovariateContext", "CorrelationObjective", "correlation_terms",
    "WeightVector", "Optimizer",
    "History", "TrialHarness",
]

__version__ = "0.1.0"
