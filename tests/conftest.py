"""Shared synthetic cohort fixtures."""

import numpy as np
import pandas as pd
import pytest

from subspace_fusion.similarity import compute_cosine_similarity
from subspace_fusion.spectral import SpectralContext


N_SAMPLES = 10


@pytest.fixture
def sample_ids():
    return [f"TCGA-{i:02d}" for i in range(N_SAMPLES)]


@pytest.fixture
def modalities(sample_ids):
    """Two non-negative samples × features matrices (cosine ≥ 0)."""
    rng = np.random.default_rng(7)
    expr = pd.DataFrame(rng.uniform(0.1, 1.0, size=(N_SAMPLES, 30)),
                        index=sample_ids)
    meth = pd.DataFrame(rng.uniform(0.1, 1.0, size=(N_SAMPLES, 40)),
                        index=sample_ids)
    # Two loose groups so the spectra are not flat
    expr.iloc[:5, :10] += 2.0
    meth.iloc[5:, :10] += 2.0
    return expr, meth


@pytest.fixture
def ctx(modalities):
    expr, meth = modalities
    return SpectralContext.from_similarities(
        compute_cosine_similarity(expr), compute_cosine_similarity(meth),
        eigen_count=2)


@pytest.fixture
def clinical(sample_ids):
    """Every sample is an event so no partition fails the log-rank test."""
    times = np.array([120, 340, 95, 800, 410, 60, 1500, 230, 975, 610],
                     dtype=float)
    return pd.DataFrame({"os_time": times,
                         "os_event": np.ones(N_SAMPLES, dtype=int)},
                        index=sample_ids)
