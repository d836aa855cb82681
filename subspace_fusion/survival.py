"""
survival.py
-----------
Two-group survival comparison for a sample bipartition.

The clinical table is indexed by sample id and carries `os_time` (days) and
`os_event` (1 = dead, 0 = censored), as built by data.build_survival_table.
"""

import logging

import numpy as np
import pandas as pd
from lifelines import KaplanMeierFitter
from lifelines.statistics import logrank_test

from .errors import SurvivalFitFailure

log = logging.getLogger(__name__)


def _group(clinical: pd.DataFrame, ids, label: str) -> pd.DataFrame:
    sub = clinical.loc[list(ids), ["os_time", "os_event"]]
    if sub.empty:
        raise SurvivalFitFailure(f"group {label} has no samples")
    if int(sub["os_event"].sum()) == 0:
        raise SurvivalFitFailure(f"group {label} has no events "
                                 f"(n={len(sub)})")
    return sub


def logrank_pvalue(clinical: pd.DataFrame, group_a, group_b) -> float:
    """
    Log-rank p-value between two groups of sample ids.

    Raises SurvivalFitFailure when either group is empty or has no events,
    or when the test does not return a usable (finite, > 0) p-value.
    """
    a = _group(clinical, group_a, "A")
    b = _group(clinical, group_b, "B")
    result = logrank_test(
        a["os_time"], b["os_time"],
        event_observed_A=a["os_event"],
        event_observed_B=b["os_event"],
    )
    p = float(result.p_value)
    if not np.isfinite(p) or p <= 0:
        raise SurvivalFitFailure(f"log-rank test returned p={p}")
    return p


def median_survival(clinical: pd.DataFrame, ids) -> float:
    """Kaplan-Meier median OS for a group (inf if not reached)."""
    sub = clinical.loc[list(ids)]
    kmf = KaplanMeierFitter()
    kmf.fit(sub["os_time"], event_observed=sub["os_event"])
    return float(kmf.median_survival_time_)
