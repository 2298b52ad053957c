"""
Unconstrained Affine Regression

Baseline identification of linear dynamics without the skew-symmetric
constraint:

    dx(t) ≈ x(t) A + c

with A a free k x k matrix. Comparing its fit to the skew-symmetric one
shows how much of the observed dynamics is pure rotation.
"""

import logging
import numpy as np
from typing import Optional
from dataclasses import dataclass

from .diagnostics import check_shapes, fit_statistics
from .skew_param import skew_part


logger = logging.getLogger(__name__)


@dataclass
class LinearModel:
    """Container for an identified affine model.

    Model: dx = x A + c   (x a row vector)
    """
    A: np.ndarray  # Dynamics matrix
    c: np.ndarray  # Offset/bias term

    def predict(self, x: np.ndarray) -> np.ndarray:
        """Predict the derivative of one state or of a batch of states (rows)."""
        return np.asarray(x) @ self.A + self.c

    def skew_part(self) -> np.ndarray:
        """Rotational component of A, 0.5 (A - A^T)."""
        return skew_part(self.A)

    @property
    def state_dim(self) -> int:
        return self.A.shape[0]


class LinearSystemID:
    """Affine regression via least squares.

    Solves:
        min_{A,c} sum_t ||dx_t - (x_t A + c)||^2

    Using standard least squares regression on [x, 1].
    """

    def __init__(self, regularization: float = 0.0):
        """
        Args:
            regularization: Ridge regularization parameter (0 for plain least squares)
        """
        self.regularization = regularization
        self.model = None
        self._fit_info = {}

    def fit(self, dX: np.ndarray, X: np.ndarray) -> LinearModel:
        """Fit affine model to paired derivatives and states.

        Args:
            dX: Derivatives, shape (N, n)
            X: States, shape (N, n)

        Returns:
            Fitted LinearModel
        """
        dX = np.asarray(dX, dtype=float)
        X = np.asarray(X, dtype=float)
        warnings = check_shapes(dX, X)
        for warning in warnings:
            logger.warning(str(warning))

        N, n = X.shape

        # Build regression matrix: [x, 1]
        Phi = np.hstack([X, np.ones((N, 1))])  # (N, n+1)

        if self.regularization > 0:
            lambda_I = self.regularization * np.eye(Phi.shape[1])
            Theta = np.linalg.solve(
                Phi.T @ Phi + lambda_I,
                Phi.T @ dX
            )  # (n+1, n)
        else:
            Theta = np.linalg.lstsq(Phi, dX, rcond=None)[0]

        A = Theta[:n, :]    # (n, n)
        c = Theta[n, :]     # (n,)

        self.model = LinearModel(A=A, c=c)

        self._fit_info = fit_statistics(dX - Phi @ Theta, dX)
        self._fit_info['warnings'] = warnings

        return self.model

    def get_fit_info(self) -> dict:
        """Get information about the fit quality."""
        return self._fit_info.copy()

    def predict(self, x: np.ndarray) -> np.ndarray:
        """Predict derivatives using fitted model."""
        if self.model is None:
            raise ValueError("Model not fitted. Call fit() first.")
        return self.model.predict(x)
