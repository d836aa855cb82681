"""
harness.py
----------
Training loop: one random bipartition, one log-rank test and one ascent step
per iteration.

Per iteration
─────────────
  1. Draw cluster one (CLUSTER_SIZE samples, seeded generator)
  2. Log-rank p-value between cluster one and its complement
       → recorded in History and added to the correlation window
       → SurvivalFitFailure: warning, no p-value, partition not tracked
  3. Optimizer ascent step on the current window
       → DegenerateStatistics: warning, weights kept
  4. Loss = ρ at the (possibly updated) weights → recorded in History
  5. Progress log every LOG_EVERY iterations
"""

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from .config import CLUSTER_SIZE, LOG_EVERY, SEED
from .errors import DegenerateStatistics, SurvivalFitFailure
from .partition import draw_partition
from .survival import logrank_pvalue

log = logging.getLogger(__name__)


@dataclass
class History:
    """Append-only (iteration, value) records for one run."""
    pvalues: list = field(default_factory=list)
    losses: list = field(default_factory=list)

    def record_pvalue(self, iteration: int, pvalue: float) -> None:
        self.pvalues.append((iteration, float(pvalue)))

    def record_loss(self, iteration: int, loss: float) -> None:
        self.losses.append((iteration, float(loss)))

    def loss_values(self) -> np.ndarray:
        return np.array([v for _, v in self.losses])

    def pvalue_values(self) -> np.ndarray:
        return np.array([v for _, v in self.pvalues])

    def to_frame(self) -> pd.DataFrame:
        """One row per iteration that recorded anything; NaN where missing."""
        p = pd.Series(dict(self.pvalues), name="logrank_p", dtype=float)
        rho = pd.Series(dict(self.losses), name="rho", dtype=float)
        df = pd.concat([p, rho], axis=1).sort_index()
        df.index.name = "iteration"
        return df


class TrialHarness:
    """Drives an Optimizer with freshly drawn partitions each iteration."""

    def __init__(self, optimizer, clinical: pd.DataFrame, sample_ids,
                 cluster_size: int = CLUSTER_SIZE, seed: int = SEED,
                 log_every: int = LOG_EVERY):
        self.optimizer = optimizer
        self.objective = optimizer.objective
        self.clinical = clinical
        self.sample_ids = np.asarray(list(sample_ids))
        if self.sample_ids.size != self.objective.ctx.n_samples:
            raise ValueError(f"{self.sample_ids.size} sample ids for "
                             f"{self.objective.ctx.n_samples} samples")
        missing = set(self.sample_ids) - set(clinical.index)
        if missing:
            raise ValueError(f"{len(missing)} samples missing from clinical table")
        if not 0 < cluster_size < self.sample_ids.size:
            raise ValueError(f"cluster size {cluster_size} must leave both "
                             f"clusters non-empty ({self.sample_ids.size} samples)")
        self.cluster_size = cluster_size
        self.rng = np.random.default_rng(seed)
        self.log_every = log_every
        self.last_partition = None

    def run_iteration(self, history: History) -> History:
        iteration = self.optimizer.iteration + 1
        mask = draw_partition(self.rng, self.sample_ids.size, self.cluster_size)
        self.last_partition = mask

        try:
            p = logrank_pvalue(self.clinical,
                               self.sample_ids[mask], self.sample_ids[~mask])
        except SurvivalFitFailure as exc:
            log.warning(f"  Iteration {iteration}: survival fit failed — {exc}")
        else:
            history.record_pvalue(iteration, p)
            self.objective.add_partition(mask, p)

        try:
            self.optimizer.step()
        except DegenerateStatistics as exc:
            log.warning(f"  Iteration {iteration}: step skipped — {exc}")

        try:
            loss = self.objective.rho(self.optimizer.weights)
        except DegenerateStatistics:
            loss = None
        else:
            history.record_loss(iteration, loss)

        if self.log_every and iteration % self.log_every == 0:
            w = self.optimizer.weights
            loss_str = f"{loss:.4f}" if loss is not None else "n/a"
            log.info(f"  Iter {iteration:5d}  rho={loss_str}  "
                     f"alpha=[{w.alpha[0]:.4f}, {w.alpha[1]:.4f}]  "
                     f"beta=[{w.beta[0]:.4f}, {w.beta[1]:.4f}]  "
                     f"window={len(self.objective)}  "
                     f"updates={self.optimizer.n_updates}")
        return history

    def run(self, history: History = None):
        """Iterate until the optimizer is finished; returns (weights, history)."""
        history = history if history is not None else History()
        while not self.optimizer.finished:
            history = self.run_iteration(history)
        log.info(f"Training finished: {self.optimizer.iteration} iterations, "
                 f"{self.optimizer.n_updates} weight updates, "
                 f"{len(history.pvalues)} p-values, {len(history.losses)} losses")
        return self.optimizer.weights, history
