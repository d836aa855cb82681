"""
similarity.py
-------------
Per-modality sample×sample cosine similarity.

Each sample vector is projected onto the unit hypersphere with
sklearn.preprocessing.normalize; the Gram matrix of the projected rows is then
exactly the cosine-similarity matrix. Unlike the L2 step used before SNF
affinity construction, zero-norm samples are NOT silently replaced: they make
the cosine undefined and are reported as an error.
"""

import logging

import numpy as np
import pandas as pd
from sklearn.preprocessing import normalize

from .errors import ZeroNormSampleError

log = logging.getLogger(__name__)


def compute_cosine_similarity(R, label: str = "modality"):
    """
    Cosine similarity between the rows (samples) of R.

    R may be a DataFrame (samples × features) or a 2-D ndarray. A DataFrame
    input returns a DataFrame indexed by the sample ids on both axes; an
    ndarray input returns an ndarray.

    Raises ZeroNormSampleError if any sample row has zero norm.
    """
    is_frame = isinstance(R, pd.DataFrame)
    arr = np.asarray(R.values if is_frame else R, dtype=np.float64)
    if arr.ndim != 2:
        raise ValueError(f"{label}: expected a 2-D samples × features matrix, "
                         f"got shape {arr.shape}")

    norms = np.linalg.norm(arr, axis=1)
    zero_rows = np.flatnonzero(norms == 0)
    if zero_rows.size:
        names = (list(R.index[zero_rows]) if is_frame else zero_rows.tolist())
        raise ZeroNormSampleError(
            f"{label}: {zero_rows.size} sample(s) with zero norm: {names[:10]}")

    log.info(f"Cosine similarity: {label}  shape={arr.shape}  "
             f"norm range=[{norms.min():.3f}, {norms.max():.3f}]")

    unit = normalize(arr, norm="l2", axis=1)
    S = np.clip(unit @ unit.T, -1.0, 1.0)   # rounding can push |cos| past 1

    sym_err = float(np.abs(S - S.T).max())
    if sym_err > 1e-10:
        log.warning(f"  Symmetry error unexpectedly large: {sym_err:.2e}")

    if is_frame:
        return pd.DataFrame(S, index=R.index, columns=R.index)
    return S
