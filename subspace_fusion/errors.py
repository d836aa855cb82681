"""Exception types raised by the fusion pipeline.

Setup-time errors (AlignmentError, ZeroNormSampleError) stop the run.
Per-iteration errors (DegeneratePartition, DegenerateStatistics,
SurvivalFitFailure) are logged by the training harness and skipped.
"""


class FusionError(Exception):
    """Base class for all pipeline errors."""


class AlignmentError(FusionError):
    """Sample identifiers differ between modalities or the clinical table."""


class ZeroNormSampleError(FusionError, ValueError):
    """A sample row has zero Euclidean norm, cosine similarity is undefined."""


class DegeneratePartition(FusionError):
    """Partition has no inter-cluster pairs or zero inter-cluster mass."""


class DegenerateStatistics(FusionError):
    """Zero variance in Sil or the reciprocal covariate; ρ is undefined."""


class SurvivalFitFailure(FusionError):
    """Log-rank test cannot be evaluated for a partition."""
