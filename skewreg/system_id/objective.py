"""
Least-Squares Objective for Skew-Symmetric Affine Regression

For the parameter vector z = [m, y] (m the unique entries of M, y the
affine offset) and data (X, dX) with one sample per row:

    R = dX - X M - 1 y^T
    f = 0.5 * sum(R**2)

Gradients:
    df/dy = -sum_t R[t, :]
    G     = -X^T R                      (gradient w.r.t. an unconstrained M)
    df/dm = vectorize(G - G^T)

Since M_ij = m and M_ji = -m, each free entry collects G_ij - G_ji, which
is the antisymmetrized gradient read off above the diagonal.
"""

from typing import Tuple

import numpy as np

from .skew_param import matricize, vectorize


def split_params(z: np.ndarray, k: int) -> Tuple[np.ndarray, np.ndarray]:
    """Split z into (M, y) given the state dimension k."""
    z = np.asarray(z, dtype=float).ravel()
    boundary = z.size - k
    return matricize(z[:boundary]), z[boundary:].copy()


def residuals(z: np.ndarray, X: np.ndarray, dX: np.ndarray) -> np.ndarray:
    """Residual matrix R = dX - X M - y, shape (ct, k)."""
    M, y = split_params(z, X.shape[1])
    return dX - X @ M - y


def evaluate(
    z: np.ndarray,
    X: np.ndarray,
    dX: np.ndarray
) -> Tuple[float, np.ndarray]:
    """Loss and exact gradient at z.

    Args:
        z: Parameters [vectorize(M), y], shape (k(k-1)/2 + k,)
        X: States, shape (ct, k)
        dX: Derivatives paired with X, shape (ct, k)

    Returns:
        (f, g) with g laid out like z
    """
    R = residuals(z, X, dX)

    f = 0.5 * float(np.sum(R**2))

    G = -X.T @ R
    dm = vectorize(G - G.T)
    dy = -np.sum(R, axis=0)

    return f, np.concatenate([dm, dy])
