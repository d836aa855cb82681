"""
plotting.py
-----------
End-of-run diagnostic figures: survival p-value distribution, ρ trajectory and
Kaplan-Meier curves for a final partition.
"""

import logging
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from lifelines import KaplanMeierFitter

log = logging.getLogger(__name__)

plt.rcParams.update({
    "font.family": "sans-serif",
    "font.size": 9,
    "axes.titlesize": 10,
    "axes.labelsize": 9,
    "legend.fontsize": 8,
    "pdf.fonttype": 42,
    "axes.spines.top": False,
    "axes.spines.right": False,
})

CLUSTER_COLORS = ["#4878D0", "#D65F5F"]


def plot_pvalue_distribution(history, out_path: Path,
                             alpha: float = 0.05) -> None:
    """Histogram of the log-rank p-values recorded during training."""
    pvals = history.pvalue_values()
    fig, ax = plt.subplots(figsize=(6, 4))
    ax.hist(pvals, bins=np.linspace(0, 1, 41), color="#4878D0",
            edgecolor="white", linewidth=0.5)
    ax.axvline(alpha, ls="--", lw=1.0, color="tab:red",
               label=f"p = {alpha}")
    frac = float(np.mean(pvals < alpha)) if pvals.size else float("nan")
    ax.set_xlabel("Log-rank p-value")
    ax.set_ylabel("Partitions")
    ax.set_title(f"Survival p-values over {pvals.size} random partitions\n"
                 f"({frac * 100:.1f}% below {alpha})")
    ax.legend(loc="upper right")
    plt.tight_layout()
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    log.info(f"  p-value distribution saved → {out_path}")


def plot_loss_curve(history, out_path: Path) -> None:
    """ρ after each iteration's update."""
    df = history.to_frame()["rho"].dropna()
    fig, ax = plt.subplots(figsize=(7, 3.5))
    ax.plot(df.index, df.values, lw=0.8, color="#4878D0")
    ax.axhline(0.0, lw=0.6, color="grey")
    ax.set_xlabel("Iteration")
    ax.set_ylabel("ρ = Corr(Sil, 1/p)")
    ax.set_ylim(-1.05, 1.05)
    ax.set_title("Correlation objective during training")
    plt.tight_layout()
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    log.info(f"  Loss curve saved → {out_path}")


def km_plot(clinical: pd.DataFrame, mask: np.ndarray, logrank_p: float,
            out_path: Path) -> None:
    """Kaplan-Meier curves for cluster one vs complement, p annotated."""
    labels = np.where(mask, 0, 1)
    fig, ax = plt.subplots(figsize=(7, 5))
    for cid in (0, 1):
        sub = clinical.loc[labels == cid]
        kmf = KaplanMeierFitter()
        kmf.fit(sub["os_time"], event_observed=sub["os_event"],
                label=f"Cluster {cid + 1} (n={len(sub)})")
        kmf.plot_survival_function(ax=ax, ci_show=True,
                                   color=CLUSTER_COLORS[cid])
    ax.set_xlabel("Time (days)")
    ax.set_ylabel("Survival probability")
    p_str = f"p = {logrank_p:.4f}" if logrank_p >= 0.0001 else "p < 0.0001"
    ax.set_title(f"Kaplan-Meier — final partition\nLog-rank {p_str}")
    ax.set_ylim(0, 1.05)
    ax.legend(loc="upper right", fontsize=8)
    plt.tight_layout()
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    log.info(f"  KM figure saved → {out_path}")
