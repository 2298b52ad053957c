"""
Input validation and fit diagnostics.

Fatal problems (the residual cannot even be formed) raise ShapeMismatch.
Everything else is reported as a FitWarning value: the regression still
runs and returns its best estimate, and callers decide whether to log,
ignore or escalate.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

import numpy as np


class ShapeMismatch(ValueError):
    """
    Raised when states and derivatives are not matched in size, so no
    residual dX - X M can be formed.
    """

    def __init__(self, message: str, x_shape: tuple = None, dx_shape: tuple = None):
        super().__init__(message)
        self.x_shape = x_shape
        self.dx_shape = dx_shape


class WarningKind(Enum):
    """Kinds of non-fatal fit notices."""
    SUSPICIOUS_SHAPE = "suspicious_shape"
    RANK_DEFICIENCY_RISK = "rank_deficiency_risk"
    OPTIMIZER_STALLED = "optimizer_stalled"


@dataclass(frozen=True)
class FitWarning:
    """A non-fatal notice raised while fitting."""
    kind: WarningKind
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


def check_shapes(
    dX: np.ndarray,
    X: np.ndarray,
    max_state_dim: int = 20,
    min_samples: int = 20
) -> List[FitWarning]:
    """Validate a (dX, X) pair before fitting.

    Args:
        dX: Derivatives, shape (ct, k)
        X: States, shape (ct, k)
        max_state_dim: Largest k considered typical
        min_samples: Smallest ct considered typical

    Returns:
        Warnings for shapes outside the tall-and-skinny regime

    Raises:
        ShapeMismatch: If the arrays are not 2-D or differ in shape
    """
    if X.ndim != 2 or dX.ndim != 2:
        raise ShapeMismatch(
            f"dX and X must be 2-D (samples x dimensions), got {dX.shape} and {X.shape}",
            x_shape=X.shape,
            dx_shape=dX.shape
        )
    if dX.shape != X.shape:
        raise ShapeMismatch(
            f"dX {dX.shape} and X {X.shape} are not matched in size; "
            "a skew-symmetric matrix cannot result",
            x_shape=X.shape,
            dx_shape=dX.shape
        )

    warnings = []
    ct, k = X.shape
    if k > max_state_dim or ct < min_samples:
        warnings.append(FitWarning(
            WarningKind.SUSPICIOUS_SHAPE,
            f"dX and X are {ct} x {k}; expected many samples (>= {min_samples}) "
            f"of few dimensions (<= {max_state_dim})"
        ))
    if ct < k:
        warnings.append(FitWarning(
            WarningKind.RANK_DEFICIENCY_RISK,
            f"dX and X are fat ({ct} x {k}), not skinny; the solution is subrank "
            "and not unique"
        ))
    return warnings


def fit_statistics(residuals: np.ndarray, dX: np.ndarray) -> Dict[str, float]:
    """Goodness-of-fit numbers for a residual matrix R = dX - prediction."""
    ss_res = float(np.sum(residuals**2))
    ss_tot = float(np.sum((dX - dX.mean(axis=0))**2))

    return {
        'loss': 0.5 * ss_res,
        'mse': ss_res / residuals.size,
        'rmse': float(np.sqrt(ss_res / residuals.size)),
        'r2': 1 - ss_res / ss_tot if ss_tot > 0 else float('nan'),
        'n_samples': dX.shape[0]
    }
