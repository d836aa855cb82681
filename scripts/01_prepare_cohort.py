"""
01_prepare_cohort.py
--------------------
Align expression, methylation and clinical inputs on one sample universe and
build the per-modality normalised Laplacians used by training.

Pipeline
────────
  1. Load clinical table → os_time / os_event, exclude OS < 30 days or NaN
  2. Load expression + methylation (features × samples) → samples × features
  3. Restrict both modalities to the clinical cohort
       → a cohort sample missing from either modality is fatal (AlignmentError)
  4. Cosine similarity per modality (samples × samples)
  5. Normalised Laplacian per modality  L' = D^-1/2 (D − S) D^-1/2

Outputs  (data/processed/)
──────────────────────────
  fusion_cohort.txt           aligned sample order used by every later step
  fusion_clinical.tsv         os_time / os_event in cohort order
  laplacian_expression.npz    n × n float64 + sample ids in row order
  laplacian_methylation.npz   n × n float64 + sample ids in row order

A cached Laplacian is reused only when its stored sample ids match the
current cohort; otherwise it is rebuilt.

Run from project root:
  python scripts/01_prepare_cohort.py
"""

import sys

from subspace_fusion import config
from subspace_fusion.data import (
    align_modalities, build_survival_table, load_modality, read_table,
    restrict_to_cohort,
)
from subspace_fusion.errors import AlignmentError, ZeroNormSampleError
from subspace_fusion.similarity import compute_cosine_similarity
from subspace_fusion.spectral import build_laplacian, load_laplacian, save_laplacian

log = config.setup_logging("01_prepare_cohort")


if __name__ == "__main__":
    log.info("╔═══════════════════════════════════════════════════════╗")
    log.info("║     STEP 1: COHORT ALIGNMENT + MODALITY LAPLACIANS    ║")
    log.info("╚═══════════════════════════════════════════════════════╝")

    for path in (config.EXPRESSION_IN, config.METHYLATION_IN, config.CLINICAL_IN):
        if not path.exists():
            log.error(f"{path} not found — run preprocessing first")
            sys.exit(1)

    # ── Clinical cohort ──────────────────────────────────────────────────────
    clin = build_survival_table(read_table(config.CLINICAL_IN))
    cohort = list(clin.index)
    log.info(f"Clinical cohort: {len(cohort)} samples")

    # ── Modalities ───────────────────────────────────────────────────────────
    try:
        expr = restrict_to_cohort(
            load_modality(config.EXPRESSION_IN, "Expression"), cohort, "Expression")
        meth = restrict_to_cohort(
            load_modality(config.METHYLATION_IN, "Methylation"), cohort, "Methylation")
        expr, meth, clin = align_modalities(expr, meth, clin)
    except AlignmentError as exc:
        log.error(f"Alignment failed: {exc}")
        sys.exit(1)

    # ── Similarity + Laplacians ──────────────────────────────────────────────
    log.info("=" * 60)
    log.info("BUILDING MODALITY LAPLACIANS")
    log.info("=" * 60)
    try:
        sim_expr = compute_cosine_similarity(expr, "Expression")
        sim_meth = compute_cosine_similarity(meth, "Methylation")
    except ZeroNormSampleError as exc:
        log.error(f"Similarity failed: {exc}")
        sys.exit(1)

    for sim, out, label in ((sim_expr, config.LAPLACIAN_EXPR, "Expression"),
                            (sim_meth, config.LAPLACIAN_METH, "Methylation")):
        if config.checkpoint_exists(out):
            try:
                load_laplacian(out, expr.index)
                continue
            except AlignmentError as exc:
                log.warning(f"  Stale {label} checkpoint ({exc}) — rebuilding")
        L = build_laplacian(sim)
        save_laplacian(out, L, expr.index)
        log.info(f"  {label} Laplacian {L.shape}  "
                 f"range=[{L.min():.4f}, {L.max():.4f}]  saved → {out}")

    with open(config.COHORT_OUT, "w") as f:
        f.write("\n".join(map(str, expr.index)) + "\n")
    clin[["os_time", "os_event"]].to_csv(config.CLINICAL_OUT, sep="\t")
    log.info(f"Cohort saved → {config.COHORT_OUT}")
    log.info(f"Clinical saved → {config.CLINICAL_OUT}")

    log.info("")
    log.info(f"Samples: {len(expr)}  "
             f"expression features: {expr.shape[1]}  "
             f"methylation features: {meth.shape[1]}")
    log.info("\n✓ Next: python scripts/02_train_fusion.py")
