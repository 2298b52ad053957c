"""
System Identification Module

Provides methods for learning rotational linear dynamics from data:
- Skew-symmetric affine regression (constrained least squares)
- Unconstrained affine regression (baseline)
- Generic conjugate-gradient minimizer used by the constrained fit
"""

from .skew_param import (
    DimensionMismatch,
    vectorize,
    matricize,
    skew_dim,
    skew_part
)

from .diagnostics import (
    ShapeMismatch,
    WarningKind,
    FitWarning,
    check_shapes
)

from .objective import evaluate

from .minimize import minimize

from .linear_id import (
    LinearModel,
    LinearSystemID
)

from .skew_id import (
    SkewAffineModel,
    SkewSymmetricRegression,
    fit,
    fit_skew_model,
    warm_start
)

__all__ = [
    'DimensionMismatch',
    'vectorize',
    'matricize',
    'skew_dim',
    'skew_part',
    'ShapeMismatch',
    'WarningKind',
    'FitWarning',
    'check_shapes',
    'evaluate',
    'minimize',
    'LinearModel',
    'LinearSystemID',
    'SkewAffineModel',
    'SkewSymmetricRegression',
    'fit',
    'fit_skew_model',
    'warm_start'
]
