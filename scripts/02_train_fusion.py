"""
02_train_fusion.py
------------------
Learn the fusion weights (α, β) by gradient ascent on ρ = Corr(Sil, 1/p).

Pipeline
────────
  1. Load cohort, clinical OS table and the two modality Laplacians (Step 1)
  2. Top-EIGEN_COUNT eigenbasis per Laplacian → SpectralContext
  3. MAX_ITERATIONS training iterations, each:
       random partition (CLUSTER_SIZE) → log-rank p → ascent step → ρ
  4. Save final weights, training history and the last partition

Outputs
───────
  results/tables/
    fusion_weights.tsv        initial and final α₁ α₂ β₁ β₂
    training_history.tsv      iteration × {logrank_p, rho}
    final_partition.tsv       sample → cluster (0 = cluster one)

Run from project root:
  python scripts/02_train_fusion.py
"""

import sys

import numpy as np
import pandas as pd

from subspace_fusion import config
from subspace_fusion.errors import AlignmentError
from subspace_fusion.harness import History, TrialHarness
from subspace_fusion.objective import CorrelationObjective
from subspace_fusion.optimizer import Optimizer, WeightVector
from subspace_fusion.spectral import SpectralContext, load_laplacian, top_eigenvectors

log = config.setup_logging("02_train_fusion")


if __name__ == "__main__":
    log.info("╔═══════════════════════════════════════════════════════╗")
    log.info("║        STEP 2: FUSION WEIGHT TRAINING (ρ ASCENT)      ║")
    log.info("╚═══════════════════════════════════════════════════════╝")
    log.info(f"Eigen count:     {config.EIGEN_COUNT}")
    log.info(f"Cluster size:    {config.CLUSTER_SIZE}")
    log.info(f"Window:          {config.N_PARTITIONS} partitions")
    log.info(f"Learning rate:   {config.LEARNING_RATE}")
    log.info(f"Iterations:      {config.MAX_ITERATIONS}")
    log.info(f"Quotient rule:   {config.QUOTIENT_RULE}")
    log.info(f"Seed:            {config.SEED}")

    for path in (config.COHORT_OUT, config.CLINICAL_OUT,
                 config.LAPLACIAN_EXPR, config.LAPLACIAN_METH):
        if not path.exists():
            log.error(f"{path} not found — run 01_prepare_cohort.py first")
            sys.exit(1)

    config.TABLE_OUT.mkdir(parents=True, exist_ok=True)

    with open(config.COHORT_OUT) as f:
        cohort = [l.strip() for l in f if l.strip()]
    clin = pd.read_csv(config.CLINICAL_OUT, sep="\t", index_col=0)
    clin.index = clin.index.astype(str)
    clin = clin.loc[cohort]
    log.info(f"Cohort: {len(cohort)} samples  "
             f"events: {int(clin['os_event'].sum())}")

    # ── Spectral context ─────────────────────────────────────────────────────
    try:
        laplacians = (load_laplacian(config.LAPLACIAN_EXPR, cohort),
                      load_laplacian(config.LAPLACIAN_METH, cohort))
    except AlignmentError as exc:
        log.error(f"Laplacian does not match cohort: {exc} — "
                  f"re-run 01_prepare_cohort.py")
        sys.exit(1)
    bases = tuple(top_eigenvectors(L, config.EIGEN_COUNT) for L in laplacians)
    ctx = SpectralContext(laplacians, bases, cohort)

    # ── Training ─────────────────────────────────────────────────────────────
    log.info("=" * 60)
    log.info("TRAINING")
    log.info("=" * 60)
    initial = WeightVector.initial()
    objective = CorrelationObjective(ctx, config.N_PARTITIONS, config.QUOTIENT_RULE)
    optimizer = Optimizer(objective, initial, config.LEARNING_RATE,
                          config.MAX_ITERATIONS)
    harness = TrialHarness(optimizer, clin, cohort, config.CLUSTER_SIZE,
                           config.SEED, config.LOG_EVERY)
    weights, history = harness.run(History())

    # ── Save outputs ─────────────────────────────────────────────────────────
    weights_df = pd.DataFrame([initial.as_dict(), weights.as_dict()],
                              index=pd.Index(["initial", "final"], name="state"))
    weights_df.to_csv(config.WEIGHTS_OUT, sep="\t", float_format="%.6f")
    log.info(f"Weights saved → {config.WEIGHTS_OUT}")

    history.to_frame().to_csv(config.HISTORY_OUT, sep="\t", float_format="%.6g")
    log.info(f"History saved → {config.HISTORY_OUT}")

    part_df = pd.DataFrame({"cluster": np.where(harness.last_partition, 0, 1)},
                           index=pd.Index(cohort, name="sample_id"))
    part_df.to_csv(config.PARTITION_OUT, sep="\t")
    log.info(f"Final partition saved → {config.PARTITION_OUT}")

    losses = history.loss_values()
    pvals = history.pvalue_values()
    log.info("")
    log.info("╔═══════════════════════════════════════════════════════╗")
    log.info("║              TRAINING COMPLETE — SUMMARY              ║")
    log.info("╠═══════════════════════════════════════════════════════╣")
    log.info(f"║  Iterations:        {optimizer.iteration}")
    log.info(f"║  Weight updates:    {optimizer.n_updates}")
    log.info(f"║  Final α:           {weights.alpha.round(4).tolist()}")
    log.info(f"║  Final β:           {weights.beta.round(4).tolist()}")
    if losses.size:
        log.info(f"║  ρ first / last:    {losses[0]:.4f} / {losses[-1]:.4f}")
    if pvals.size:
        log.info(f"║  p < 0.05:          {int((pvals < 0.05).sum())}/{pvals.size}")
    log.info("╚═══════════════════════════════════════════════════════╝")
    log.info("\n✓ Next: python scripts/03_figures.py")
