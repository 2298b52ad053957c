"""
skewreg - Skew-Symmetric Affine Regression

Least squares fitting of rotational linear dynamics

    dx(t) = x(t) M + y,    M = -M^T

to time-series data, with the constraint enforced exactly by optimizing
over the unique entries of M.
"""

from .system_id import (
    fit,
    fit_skew_model,
    SkewSymmetricRegression,
    SkewAffineModel,
    LinearSystemID,
    LinearModel,
    minimize,
    vectorize,
    matricize,
    ShapeMismatch,
    DimensionMismatch,
    WarningKind,
    FitWarning,
)
from .data_collection import (
    Dataset,
    RotationTrajectory,
    PlanarRotationTrajectory,
    collect_rotation_data,
)
from .config import (
    FitConfig,
    SkewRegConfig,
    create_config,
    configure_logging,
)

__version__ = "0.1.0"

__all__ = [
    # Regression
    "fit",
    "fit_skew_model",
    "SkewSymmetricRegression",
    "SkewAffineModel",
    "LinearSystemID",
    "LinearModel",
    "minimize",
    "vectorize",
    "matricize",
    # Errors and diagnostics
    "ShapeMismatch",
    "DimensionMismatch",
    "WarningKind",
    "FitWarning",
    # Data
    "Dataset",
    "RotationTrajectory",
    "PlanarRotationTrajectory",
    "collect_rotation_data",
    # Configuration
    "FitConfig",
    "SkewRegConfig",
    "create_config",
    "configure_logging",
]
