"""
Tests for cosine similarity
===========================
"""

import numpy as np
import pandas as pd
import pytest

from subspace_fusion.errors import ZeroNormSampleError
from subspace_fusion.similarity import compute_cosine_similarity


class TestCosineSimilarity:
    """Shape, bounds and identity of the cosine Gram matrix"""

    def test_symmetric_unit_diagonal_bounded(self):
        rng = np.random.default_rng(0)
        R = rng.normal(size=(25, 12))
        S = compute_cosine_similarity(R)
        assert S.shape == (25, 25)
        np.testing.assert_allclose(S, S.T, atol=1e-12)
        np.testing.assert_allclose(np.diag(S), 1.0, atol=1e-12)
        assert S.min() >= -1.0
        assert S.max() <= 1.0

    def test_known_angles(self):
        """Parallel → 1, orthogonal → 0, opposite → −1"""
        R = np.array([[1.0, 0.0], [3.0, 0.0], [0.0, 2.0], [-1.0, 0.0]])
        S = compute_cosine_similarity(R)
        assert S[0, 1] == pytest.approx(1.0)
        assert S[0, 2] == pytest.approx(0.0)
        assert S[0, 3] == pytest.approx(-1.0)

    def test_dataframe_index_on_both_axes(self):
        R = pd.DataFrame([[1.0, 2.0], [2.0, 1.0], [0.5, 0.5]],
                         index=["s1", "s2", "s3"], columns=["g1", "g2"])
        S = compute_cosine_similarity(R)
        assert isinstance(S, pd.DataFrame)
        assert list(S.index) == ["s1", "s2", "s3"]
        assert list(S.columns) == ["s1", "s2", "s3"]
        assert S.loc["s1", "s2"] == pytest.approx(4.0 / 5.0)

    def test_input_not_mutated(self):
        R = np.array([[3.0, 4.0], [1.0, 0.0]])
        before = R.copy()
        compute_cosine_similarity(R)
        np.testing.assert_array_equal(R, before)

    def test_zero_row_rejected(self):
        R = pd.DataFrame([[1.0, 2.0], [0.0, 0.0]], index=["ok", "empty"])
        with pytest.raises(ZeroNormSampleError, match="empty"):
            compute_cosine_similarity(R)

    def test_zero_row_is_value_error(self):
        with pytest.raises(ValueError):
            compute_cosine_similarity(np.zeros((3, 4)))

    def test_rejects_1d_input(self):
        with pytest.raises(ValueError):
            compute_cosine_similarity(np.ones(5))
