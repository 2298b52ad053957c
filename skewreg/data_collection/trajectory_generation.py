"""
Trajectory Generation for Rotational Dynamics

Provides state trajectories of linear systems

    dx/dt = x M + y,    M = -M^T

sampled exactly (no integration error), used to build synthetic datasets
for skew-symmetric regression:
- Rotation trajectory for an arbitrary skew-symmetric M
- Planar rotations with prescribed angular frequencies
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Optional, Sequence
from scipy.linalg import block_diag, expm

from ..system_id.skew_param import matricize, skew_dim


def random_skew_matrix(
    k: int,
    scale: float = 1.0,
    seed: Optional[int] = None
) -> np.ndarray:
    """Random k x k skew-symmetric matrix with N(0, scale^2) free entries."""
    rng = np.random.default_rng(seed)
    return matricize(rng.normal(0, scale, skew_dim(k)))


class TrajectoryGenerator(ABC):
    """Base class for state trajectory generators."""

    def __init__(self, x0: np.ndarray):
        """
        Args:
            x0: State at t = 0
        """
        self.x0 = np.asarray(x0, dtype=float)

    @property
    def state_dim(self) -> int:
        return len(self.x0)

    @abstractmethod
    def get_state(self, t: float) -> np.ndarray:
        """State at time t."""
        pass

    @abstractmethod
    def get_derivative(self, t: float) -> np.ndarray:
        """Time derivative of the state at time t."""
        pass

    def get_sequence(self, times: np.ndarray) -> dict:
        """Get states and derivatives over a time array.

        Args:
            times: Array of time points

        Returns:
            Dictionary with 'states' and 'derivatives', each shape (T, k)
        """
        states = np.array([self.get_state(t) for t in times]).reshape(-1, self.state_dim)
        derivatives = np.array([self.get_derivative(t) for t in times]).reshape(-1, self.state_dim)
        return {
            'states': states,
            'derivatives': derivatives
        }


class RotationTrajectory(TrajectoryGenerator):
    """Exact flow of dx/dt = x M + y.

    With the augmented generator G = [[M, 0], [y, 0]]:
        [x(t), 1] = [x0, 1] expm(G t)
    """

    def __init__(
        self,
        M: np.ndarray,
        x0: np.ndarray,
        y: Optional[np.ndarray] = None
    ):
        """
        Args:
            M: Dynamics matrix, shape (k, k); skew-symmetric for pure rotation
            x0: Initial state, shape (k,)
            y: Constant offset, shape (k,); zero if None
        """
        super().__init__(x0)
        self.M = np.asarray(M, dtype=float)
        k = self.state_dim
        self.y = np.zeros(k) if y is None else np.asarray(y, dtype=float)

        self._generator = np.zeros((k + 1, k + 1))
        self._generator[:k, :k] = self.M
        self._generator[k, :k] = self.y

    def get_state(self, t: float) -> np.ndarray:
        x_aug = np.append(self.x0, 1.0) @ expm(self._generator * t)
        return x_aug[:self.state_dim]

    def get_derivative(self, t: float) -> np.ndarray:
        return self.get_state(t) @ self.M + self.y


class PlanarRotationTrajectory(RotationTrajectory):
    """Independent rotations in orthogonal 2-D planes.

    M is block diagonal with blocks [[0, w], [-w, 0]], one per frequency;
    a trailing zero row/column is added when state_dim is odd. An optional
    orthogonal basis mixes the planes into the observed coordinates
    (M -> Q^T M Q stays skew-symmetric).
    """

    def __init__(
        self,
        frequencies: Sequence[float],
        x0: np.ndarray,
        y: Optional[np.ndarray] = None,
        basis: Optional[np.ndarray] = None
    ):
        """
        Args:
            frequencies: Angular frequency of each plane (rad / time unit)
            x0: Initial state; its length sets state_dim >= 2 * len(frequencies)
            y: Constant offset
            basis: Orthogonal matrix Q, shape (k, k)
        """
        x0 = np.asarray(x0, dtype=float)
        k = len(x0)
        if k < 2 * len(frequencies):
            raise ValueError(
                f"State dimension {k} too small for {len(frequencies)} rotation planes"
            )

        blocks = [np.array([[0.0, w], [-w, 0.0]]) for w in frequencies]
        M = np.zeros((k, k))
        if blocks:
            n = 2 * len(blocks)
            M[:n, :n] = block_diag(*blocks)
        if basis is not None:
            Q = np.asarray(basis, dtype=float)
            M = Q.T @ M @ Q

        self.frequencies = np.asarray(frequencies, dtype=float)
        super().__init__(M, x0, y)
