"""
Tests for the two-group log-rank wrapper
========================================
"""

import numpy as np
import pandas as pd
import pytest
from lifelines.statistics import logrank_test

from subspace_fusion.errors import SurvivalFitFailure
from subspace_fusion.survival import logrank_pvalue, median_survival


class TestLogrankPvalue:

    def test_matches_lifelines(self, clinical, sample_ids):
        a, b = sample_ids[:4], sample_ids[4:]
        p = logrank_pvalue(clinical, a, b)
        ref = logrank_test(
            clinical.loc[a, "os_time"], clinical.loc[b, "os_time"],
            event_observed_A=clinical.loc[a, "os_event"],
            event_observed_B=clinical.loc[b, "os_event"],
        ).p_value
        assert p == pytest.approx(ref)
        assert 0.0 < p <= 1.0

    def test_separated_groups_small_p(self):
        ids = [f"s{i}" for i in range(40)]
        times = np.r_[np.arange(10, 210, 10), np.arange(2000, 4000, 100)]
        clin = pd.DataFrame({"os_time": times.astype(float),
                             "os_event": np.ones(40, dtype=int)}, index=ids)
        assert logrank_pvalue(clin, ids[:20], ids[20:]) < 1e-4

    def test_empty_group(self, clinical, sample_ids):
        with pytest.raises(SurvivalFitFailure, match="no samples"):
            logrank_pvalue(clinical, [], sample_ids)

    def test_group_without_events(self, clinical, sample_ids):
        clin = clinical.copy()
        clin.loc[sample_ids[:3], "os_event"] = 0
        with pytest.raises(SurvivalFitFailure, match="no events"):
            logrank_pvalue(clin, sample_ids[:3], sample_ids[3:])


class TestMedianSurvival:

    def test_all_events(self, clinical, sample_ids):
        med = median_survival(clinical, sample_ids)
        assert clinical["os_time"].min() <= med <= clinical["os_time"].max()
