"""
Tests for loading and sample alignment
======================================
"""

import numpy as np
import pandas as pd
import pytest

from subspace_fusion.data import (
    align_modalities, build_survival_table, load_modality, restrict_to_cohort,
)
from subspace_fusion.errors import AlignmentError


def frame(ids, n_features=3):
    return pd.DataFrame(np.arange(len(ids) * n_features, dtype=float)
                        .reshape(len(ids), n_features) + 1.0, index=ids)


class TestLoadModality:

    def test_transposes_to_samples_by_features(self, tmp_path):
        raw = pd.DataFrame({"s1": [1.0, 2.0], "s2": [3.0, np.nan]},
                           index=["g1", "g2"])
        path = tmp_path / "expr.tsv"
        raw.to_csv(path, sep="\t")
        df = load_modality(path, "Expression")
        assert list(df.index) == ["s1", "s2"]
        assert list(df.columns) == ["g1", "g2"]
        assert df.loc["s2", "g2"] == 0.0

    def test_reads_parquet(self, tmp_path):
        raw = pd.DataFrame({"s1": [1.0, 2.0], "s2": [3.0, 4.0]},
                           index=["g1", "g2"])
        path = tmp_path / "meth.parquet"
        raw.to_parquet(path)
        df = load_modality(path, "Methylation")
        assert df.shape == (2, 2)
        assert df.loc["s1", "g2"] == 2.0


class TestBuildSurvivalTable:

    def test_derives_os_endpoint(self):
        clin = pd.DataFrame({
            "vital_status": ["Dead", "Alive", "Dead", "Alive"],
            "days_to_death": [400, None, 10, None],
            "days_to_last_followup": [None, 900, None, None],
        }, index=["a", "b", "c", "d"])
        out = build_survival_table(clin)
        # c: OS below 30 days, d: no OS time
        assert list(out.index) == ["a", "b"]
        assert list(out["os_event"]) == [1, 0]
        assert list(out["os_time"]) == [400.0, 900.0]

    def test_existing_endpoint_kept(self):
        clin = pd.DataFrame({"os_time": [100.0, 5.0], "os_event": [1, 0]},
                            index=["a", "b"])
        out = build_survival_table(clin)
        assert list(out.index) == ["a"]

    def test_missing_columns(self):
        with pytest.raises(KeyError):
            build_survival_table(pd.DataFrame({"vital_status": ["Dead"]}))


class TestAlignment:

    def test_reorders_to_expression_order(self):
        expr = frame(["a", "b", "c"])
        meth = frame(["c", "a", "b"])
        clin = frame(["b", "c", "a"], 2)
        e, m, c = align_modalities(expr, meth, clin)
        assert list(e.index) == list(m.index) == list(c.index) == ["a", "b", "c"]
        assert m.loc["c"].tolist() == meth.loc["c"].tolist()

    def test_missing_sample_is_fatal(self):
        with pytest.raises(AlignmentError, match="methylation"):
            align_modalities(frame(["a", "b", "c"]), frame(["a", "b"]),
                             frame(["a", "b", "c"]))

    def test_extra_sample_is_fatal(self):
        with pytest.raises(AlignmentError, match="clinical"):
            align_modalities(frame(["a", "b"]), frame(["a", "b"]),
                             frame(["a", "b", "z"]))

    def test_duplicate_ids_are_fatal(self):
        with pytest.raises(AlignmentError, match="duplicated"):
            align_modalities(frame(["a", "a"]), frame(["a", "a"]),
                             frame(["a", "a"]))

    def test_restrict_to_cohort(self):
        df = frame(["a", "b", "c", "d"])
        out = restrict_to_cohort(df, ["d", "a"], "Expression")
        assert list(out.index) == ["d", "a"]

    def test_restrict_missing_cohort_sample(self):
        with pytest.raises(AlignmentError, match="cohort"):
            restrict_to_cohort(frame(["a", "b"]), ["a", "x"], "Methylation")
