"""
03_figures.py
-------------
Diagnostic figures for a finished training run.

Outputs  (results/figures/)
───────────────────────────
  pvalue_distribution.pdf   histogram of per-iteration log-rank p-values
  loss_curve.pdf            ρ after every iteration
  km_final_partition.pdf    Kaplan-Meier curves of the last drawn partition

Run from project root:
  python scripts/03_figures.py
"""

import sys

import numpy as np
import pandas as pd

from subspace_fusion import config
from subspace_fusion.errors import SurvivalFitFailure
from subspace_fusion.harness import History
from subspace_fusion.plotting import km_plot, plot_loss_curve, plot_pvalue_distribution
from subspace_fusion.survival import logrank_pvalue, median_survival

log = config.setup_logging("03_figures")


def load_history(path) -> History:
    df = pd.read_csv(path, sep="\t", index_col=0)
    history = History()
    for it, p in df["logrank_p"].dropna().items():
        history.record_pvalue(int(it), p)
    for it, rho in df["rho"].dropna().items():
        history.record_loss(int(it), rho)
    return history


if __name__ == "__main__":
    for path in (config.HISTORY_OUT, config.PARTITION_OUT, config.CLINICAL_OUT):
        if not path.exists():
            log.error(f"{path} not found — run 02_train_fusion.py first")
            sys.exit(1)
    config.FIG_OUT.mkdir(parents=True, exist_ok=True)

    history = load_history(config.HISTORY_OUT)
    log.info(f"History: {len(history.pvalues)} p-values, "
             f"{len(history.losses)} losses")

    plot_pvalue_distribution(history, config.FIG_OUT / "pvalue_distribution.pdf")
    plot_loss_curve(history, config.FIG_OUT / "loss_curve.pdf")

    part = pd.read_csv(config.PARTITION_OUT, sep="\t", index_col=0)
    part.index = part.index.astype(str)
    clin = pd.read_csv(config.CLINICAL_OUT, sep="\t", index_col=0)
    clin.index = clin.index.astype(str)
    clin = clin.loc[part.index]
    mask = (part["cluster"] == 0).values

    try:
        p = logrank_pvalue(clin, part.index[mask], part.index[~mask])
    except SurvivalFitFailure as exc:
        log.warning(f"Final partition log-rank failed ({exc}) — KM plot skipped")
    else:
        log.info(f"Final partition log-rank p = {p:.6f}")
        for cid, ids in enumerate((part.index[mask], part.index[~mask])):
            med = median_survival(clin, ids)
            med_str = f"{med:.0f}" if np.isfinite(med) else "not reached"
            log.info(f"  Cluster {cid + 1}: n={len(ids)}  median OS = {med_str} days")
        km_plot(clin, mask, p, config.FIG_OUT / "km_final_partition.pdf")

    log.info("\n✓ Figures complete")
