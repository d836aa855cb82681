"""
data.py
-------
Load preprocessed modality matrices and the clinical table, and align them on
a common sample universe.

Preprocessed matrices are stored features × samples (one column per sample),
as written by the upstream preprocessing step; everything returned here is
samples × features. Alignment is strict: a sample present in one input but not
the others is an AlignmentError, never silently dropped.
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from .config import OS_MIN_DAYS
from .errors import AlignmentError

log = logging.getLogger(__name__)


def read_table(path: Path) -> pd.DataFrame:
    """Read a parquet or tab-separated table (first column = index)."""
    path = Path(path)
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    return pd.read_csv(path, sep="\t", index_col=0)


def load_modality(path: Path, label: str) -> pd.DataFrame:
    """Load a features × samples matrix and return it samples × features."""
    log.info(f"Loading {label} — {path}")
    df = read_table(path)
    log.info(f"  Shape (features × samples): {df.shape}")
    df = df.T.astype(np.float64)
    if df.index.has_duplicates:
        dups = df.index[df.index.duplicated()].unique().tolist()
        raise AlignmentError(f"{label}: duplicated sample ids {dups[:10]}")
    n_nan = int(df.isna().sum().sum())
    if n_nan:
        log.warning(f"  {label}: {n_nan:,} missing values set to 0")
        df = df.fillna(0.0)
    return df


def build_survival_table(clin: pd.DataFrame,
                         min_days: float = OS_MIN_DAYS) -> pd.DataFrame:
    """
    Ensure os_time / os_event columns and drop unusable patients.

    If the table already carries os_time and os_event they are kept as-is;
    otherwise os_event = (vital_status == "Dead") and os_time = days_to_death
    for events, days_to_last_followup for censored patients. Patients with
    NaN OS time or OS shorter than min_days are excluded.
    """
    clin = clin.copy()
    if not {"os_time", "os_event"}.issubset(clin.columns):
        required = {"vital_status", "days_to_death", "days_to_last_followup"}
        missing = required - set(clin.columns)
        if missing:
            raise KeyError(f"clinical table lacks columns {sorted(missing)}")
        clin["os_event"] = (clin["vital_status"] == "Dead").astype(np.int8)
        clin["os_time"] = np.where(
            clin["os_event"] == 1,
            pd.to_numeric(clin["days_to_death"], errors="coerce"),
            pd.to_numeric(clin["days_to_last_followup"], errors="coerce"),
        ).astype("float64")

    n_before = len(clin)
    clin = clin.loc[clin["os_time"].notna() & (clin["os_time"] >= min_days)]
    log.info(f"Excluded {n_before - len(clin)} patients "
             f"(OS < {min_days} days or NaN OS time)")
    log.info(f"  Events (Dead): {int(clin['os_event'].sum())}  "
             f"Censored: {int((clin['os_event'] == 0).sum())}")
    return clin


def restrict_to_cohort(df: pd.DataFrame, cohort: list,
                       label: str) -> pd.DataFrame:
    """
    Subset a samples × features matrix to the cohort, in cohort order.

    Samples outside the cohort are dropped (they failed clinical exclusion);
    a cohort sample absent from the matrix is an AlignmentError.
    """
    missing = [s for s in cohort if s not in df.index]
    if missing:
        raise AlignmentError(f"{label}: {len(missing)} cohort samples not "
                             f"found: {missing[:5]}")
    n_extra = len(df.index) - len(cohort)
    if n_extra:
        log.info(f"  {label}: dropping {n_extra} samples outside the cohort")
    return df.loc[cohort]


def align_modalities(expression: pd.DataFrame, methylation: pd.DataFrame,
                     clinical: pd.DataFrame):
    """
    Check that all three inputs cover exactly the same samples and return them
    reordered to a common sample order (the expression order).

    Raises AlignmentError listing the mismatching sample ids.
    """
    sources = {"expression": expression, "methylation": methylation,
               "clinical": clinical}
    for label, df in sources.items():
        if df.index.has_duplicates:
            raise AlignmentError(f"{label}: duplicated sample ids")

    reference = set(expression.index)
    problems = []
    for label, df in sources.items():
        ids = set(df.index)
        extra = sorted(ids - reference)
        missing = sorted(reference - ids)
        if extra or missing:
            problems.append(f"{label}: {len(missing)} missing "
                            f"{missing[:5]}, {len(extra)} extra {extra[:5]}")
    if problems:
        raise AlignmentError("sample ids differ across inputs — "
                             + "; ".join(problems))

    order = list(expression.index)
    log.info(f"Sample alignment confirmed: {len(order)} samples "
             f"across expression, methylation and clinical")
    return (expression.loc[order], methylation.loc[order],
            clinical.loc[order])
