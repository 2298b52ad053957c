"""
Skew-Symmetric Affine System Identification

Fits the rotational linear model

    dx(t) = x(t) M + y,     M = -M^T

to states X and their derivatives dX (one sample per row) in the least
squares sense. Skew-symmetric M generates pure rotation: no contraction or
expansion of the state.

The constraint is removed by optimizing over the k(k-1)/2 unique entries of
M (see skew_param) plus the k entries of y, with a conjugate-gradient
minimizer on the analytic objective (see objective, minimize). The problem
is convex, so the start only affects speed; it is the ordinary least squares
solution projected onto the skew-symmetric matrices, with y set to the mean
residual.
"""

import logging
import numpy as np
from typing import Tuple, Optional, Dict, List
from dataclasses import dataclass, field
from scipy.linalg import expm, pinv

from ..config import FitConfig
from .diagnostics import (
    FitWarning,
    WarningKind,
    check_shapes,
    fit_statistics
)
from .linear_id import LinearSystemID
from .minimize import minimize
from .objective import evaluate, residuals, split_params
from .skew_param import skew_part, vectorize


logger = logging.getLogger(__name__)


@dataclass
class SkewAffineModel:
    """Container for an identified skew-symmetric affine model.

    Model: dx = x M + y   (x a row vector, M = -M^T)
    """
    M: np.ndarray  # Skew-symmetric dynamics matrix
    y: np.ndarray  # Affine offset
    trace: List[float] = field(default_factory=list)  # Loss after each line search
    n_line_searches: int = 0
    warnings: List[FitWarning] = field(default_factory=list)

    def predict(self, x: np.ndarray) -> np.ndarray:
        """Predict the derivative of one state or of a batch of states (rows)."""
        return np.asarray(x) @ self.M + self.y

    def predict_sequence(
        self,
        x0: np.ndarray,
        times: np.ndarray
    ) -> np.ndarray:
        """Integrate the model exactly from x0.

        Uses the augmented generator [[M, 0], [y, 0]] acting on [x, 1], so
        [x(t), 1] = [x0, 1] expm(G t).

        Args:
            x0: Initial state, shape (k,)
            times: Times measured from x0, shape (T,)

        Returns:
            State sequence, shape (T, k)
        """
        k = self.state_dim
        G = np.zeros((k + 1, k + 1))
        G[:k, :k] = self.M
        G[k, :k] = self.y

        x_aug = np.append(np.asarray(x0, dtype=float), 1.0)
        states = np.array([x_aug @ expm(G * t) for t in np.asarray(times, dtype=float)])
        return states.reshape(-1, k + 1)[:, :k]

    def rotation_frequencies(self) -> np.ndarray:
        """Angular frequency of each rotation plane, largest first.

        The eigenvalues of a real skew-symmetric matrix are conjugate pairs
        +/- i w (plus a zero when k is odd); one w is returned per pair.
        """
        imag = np.sort(np.linalg.eigvals(self.M).imag)[::-1]
        return np.abs(imag[:self.state_dim // 2])

    @property
    def state_dim(self) -> int:
        return self.M.shape[0]

    @property
    def final_loss(self) -> float:
        return self.trace[-1] if self.trace else float('nan')


def warm_start(dX: np.ndarray, X: np.ndarray) -> np.ndarray:
    """Initial parameter vector for the minimizer.

    M0 is the unconstrained least squares solution pinv(X) dX projected onto
    the skew-symmetric matrices, and y0 is the least squares offset for that
    fixed M0, i.e. the mean residual.

    Returns:
        z0 = [vectorize(M0), y0]
    """
    M0 = pinv(X) @ dX
    M0_skew = skew_part(M0)
    y0 = np.mean(dX - X @ M0_skew, axis=0)
    return np.concatenate([vectorize(M0_skew), y0])


class SkewSymmetricRegression:
    """Least squares regression over skew-symmetric affine models.

    Solves:
        min_{M,y} 0.5 sum_t ||dx_t - (x_t M + y)||^2   s.t.  M = -M^T
    """

    def __init__(self, config: Optional[FitConfig] = None):
        """
        Args:
            config: Fit settings (evaluation budget, stall threshold, shape
                limits). Read from the environment if None.
        """
        self.config = config or FitConfig()
        self.config.validate()
        self.model = None
        self._fit_info = {}

    def fit(self, dX: np.ndarray, X: np.ndarray) -> SkewAffineModel:
        """Fit the model to derivatives dX and states X.

        Args:
            dX: Derivatives (or increments), shape (ct, k)
            X: States, shape (ct, k)

        Returns:
            Fitted SkewAffineModel

        Raises:
            ShapeMismatch: If dX and X are not matched in size
        """
        dX = np.asarray(dX, dtype=float)
        X = np.asarray(X, dtype=float)

        warnings = check_shapes(
            dX, X,
            max_state_dim=self.config.max_state_dim,
            min_samples=self.config.min_samples
        )
        for warning in warnings:
            logger.warning(str(warning))

        ct, k = X.shape
        logger.info(f"Fitting skew-symmetric affine model to {ct} samples of dimension {k}")

        z0 = warm_start(dX, X)
        logger.debug(f"Warm start loss: {evaluate(z0, X, dX)[0]:.6g}")

        z, trace, n_line_searches = minimize(
            z0, evaluate, self.config.max_evals, X, dX,
            ftol=self.config.ftol
        )

        if n_line_searches > self.config.stall_threshold:
            warning = FitWarning(
                WarningKind.OPTIMIZER_STALLED,
                f"{n_line_searches} line searches were required (more than "
                f"{self.config.stall_threshold}); check the conditioning of X"
            )
            logger.warning(str(warning))
            warnings.append(warning)

        M, y = split_params(z, k)

        self.model = SkewAffineModel(
            M=M,
            y=y,
            trace=trace,
            n_line_searches=n_line_searches,
            warnings=warnings
        )

        self._fit_info = fit_statistics(residuals(z, X, dX), dX)
        self._fit_info.update({
            'n_line_searches': n_line_searches,
            'trace_length': len(trace),
            'warnings': list(warnings)
        })

        return self.model

    def get_fit_info(self) -> dict:
        """Get information about the fit quality."""
        return self._fit_info.copy()

    def predict(self, x: np.ndarray) -> np.ndarray:
        """Predict derivatives using fitted model."""
        if self.model is None:
            raise ValueError("Model not fitted. Call fit() first.")
        return self.model.predict(x)


def fit(
    dX: np.ndarray,
    X: np.ndarray,
    config: Optional[FitConfig] = None
) -> Tuple[np.ndarray, np.ndarray, List[float]]:
    """Fit dX = X M + y with M skew-symmetric.

    Args:
        dX: Derivatives, shape (ct, k)
        X: States, shape (ct, k)
        config: Fit settings

    Returns:
        (M, y, trace): skew-symmetric matrix (k, k), offset (k,), and the
        loss after each accepted line search
    """
    model = SkewSymmetricRegression(config).fit(dX, X)
    return model.M, model.y, model.trace


def fit_skew_model(
    dataset,
    method: str = 'skew',
    config: Optional[FitConfig] = None,
    regularization: float = 0.0
) -> Dict:
    """Convenience function to fit a model to a Dataset.

    Args:
        dataset: Dataset object with states and derivatives
        method: 'skew' for the skew-symmetric model, 'unconstrained' for a
            free affine model
        config: Fit settings for the skew method
        regularization: Ridge regularization for the unconstrained method

    Returns:
        Dictionary with 'model', 'identifier' and 'info' keys
    """
    if method == 'skew':
        identifier = SkewSymmetricRegression(config)
    elif method == 'unconstrained':
        identifier = LinearSystemID(regularization=regularization)
    else:
        raise ValueError(f"Unknown method: {method}")

    model = identifier.fit(dataset.derivatives, dataset.states)
    return {
        'model': model,
        'identifier': identifier,
        'info': identifier.get_fit_info()
    }
