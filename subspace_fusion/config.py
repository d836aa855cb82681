"""
config.py
---------
Locked hyperparameters, project paths and logging setup shared by the
pipeline scripts in scripts/.

Hyperparameters (locked — NOT swept)
────────────────────────────────────
  EIGEN_COUNT    = 10     eigenvectors kept per modality Laplacian
  CLUSTER_SIZE   = 20     samples drawn into cluster one per partition
  N_PARTITIONS   = 20     partitions in the correlation window
  LEARNING_RATE  = 0.01   fixed ascent step on ρ
  MAX_ITERATIONS = 1000   training iterations (no early stopping)
  QUOTIENT_RULE  = exact  "exact" divides by g², "legacy" multiplies
"""

import logging
import sys
from pathlib import Path

# ──────────────────────────────────────────────────────────────────────────────
# Hyperparameters
# ──────────────────────────────────────────────────────────────────────────────
EIGEN_COUNT    = 10
CLUSTER_SIZE   = 20
N_PARTITIONS   = 20
LEARNING_RATE  = 0.01
MAX_ITERATIONS = 1000
LOG_EVERY      = 50
SEED           = 42

INITIAL_ALPHA  = (1.0, 1.0)
INITIAL_BETA   = (1.0, 1.0)

QUOTIENT_RULE  = "exact"
QUOTIENT_MODES = ("exact", "legacy")

OS_MIN_DAYS    = 30       # exclude patients with OS shorter than this

# ──────────────────────────────────────────────────────────────────────────────
# Paths
# ──────────────────────────────────────────────────────────────────────────────
PROCESSED = Path("data/processed")
RESULTS   = Path("results")
FIG_OUT   = RESULTS / "figures"
TABLE_OUT = RESULTS / "tables"
LOG_DIR   = Path("logs")

EXPRESSION_IN  = PROCESSED / "rna_preprocessed.parquet"
METHYLATION_IN = PROCESSED / "methylation_preprocessed.parquet"
CLINICAL_IN    = PROCESSED / "clinical_preprocessed.parquet"

COHORT_OUT     = PROCESSED / "fusion_cohort.txt"
CLINICAL_OUT   = PROCESSED / "fusion_clinical.tsv"
LAPLACIAN_EXPR = PROCESSED / "laplacian_expression.npz"
LAPLACIAN_METH = PROCESSED / "laplacian_methylation.npz"
WEIGHTS_OUT    = TABLE_OUT / "fusion_weights.tsv"
HISTORY_OUT    = TABLE_OUT / "training_history.tsv"
PARTITION_OUT  = TABLE_OUT / "final_partition.tsv"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(step_name: str, log_dir: Path = LOG_DIR) -> logging.Logger:
    """Log to logs/<step_name>.log and stdout; returns the root-level logger."""
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_dir / f"{step_name}.log"),
            logging.StreamHandler(sys.stdout),
        ],
    )
    return logging.getLogger(step_name)


def checkpoint_exists(path: Path) -> bool:
    if path.exists():
        logging.getLogger(__name__).info(f"CHECKPOINT HIT — skipping: {path}")
        return True
    return False
