"""
optimizer.py
------------
Fixed-step gradient ascent on ρ over the fusion weights (α, β).

  α ← α + lr·∂ρ/∂α
  β ← β + lr·∂ρ/∂β

Ascent because the goal is a fused geometry whose Sil ranking agrees with
survival separation (large ρ). No line search, no convergence test, no early
stopping: the run ends after max_iterations.
"""

import logging
from dataclasses import dataclass

import numpy as np

from .config import INITIAL_ALPHA, INITIAL_BETA, LEARNING_RATE, MAX_ITERATIONS

log = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class WeightVector:
    """α and β, one coefficient per modality (expression, methylation)."""
    alpha: np.ndarray
    beta: np.ndarray

    def __post_init__(self):
        for name in ("alpha", "beta"):
            arr = np.array(getattr(self, name), dtype=np.float64)
            if arr.shape != (2,):
                raise ValueError(f"{name} must have 2 entries, got {arr.shape}")
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @classmethod
    def initial(cls) -> "WeightVector":
        return cls(np.array(INITIAL_ALPHA), np.array(INITIAL_BETA))

    def stepped(self, grad_alpha, grad_beta, learning_rate: float) -> "WeightVector":
        return WeightVector(self.alpha + learning_rate * np.asarray(grad_alpha),
                            self.beta + learning_rate * np.asarray(grad_beta))

    def as_dict(self) -> dict:
        return {"alpha_1": float(self.alpha[0]), "alpha_2": float(self.alpha[1]),
                "beta_1": float(self.beta[0]), "beta_2": float(self.beta[1])}


class Optimizer:
    """Owns the current WeightVector and applies one ascent step per call."""

    def __init__(self, objective, weights: WeightVector = None,
                 learning_rate: float = LEARNING_RATE,
                 max_iterations: int = MAX_ITERATIONS):
        if learning_rate <= 0:
            raise ValueError("learning rate must be positive")
        if max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        self.objective = objective
        self.weights = weights if weights is not None else WeightVector.initial()
        self.learning_rate = learning_rate
        self.max_iterations = max_iterations
        self.iteration = 0      # attempted steps
        self.n_updates = 0      # applied steps

    @property
    def finished(self) -> bool:
        return self.iteration >= self.max_iterations

    def step(self):
        """
        One ascent step from the current weights.

        The gradient is computed on a snapshot; the weights are replaced only
        once it is complete. DegenerateStatistics propagates with the weights
        left unchanged (the attempt still counts as an iteration).
        Returns (ρ before the step, new weights).
        """
        snapshot = self.weights
        self.iteration += 1
        rho, grad_alpha, grad_beta = self.objective.gradient(snapshot)
        if not (np.all(np.isfinite(grad_alpha)) and np.all(np.isfinite(grad_beta))):
            log.warning(f"  Iteration {self.iteration}: non-finite gradient — "
                        f"weights kept")
            return rho, snapshot
        self.weights = snapshot.stepped(grad_alpha, grad_beta, self.learning_rate)
        self.n_updates += 1
        return rho, self.weights
