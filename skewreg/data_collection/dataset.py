"""
Dataset Management for Skew-Symmetric Regression

Provides utilities for building, storing, and managing paired
(state, derivative) samples. Supports noise injection and data splitting.

Key classes:
- Dataset: Container for (x_t, dx_t) pairs
- Functions for building datasets from sampled trajectories
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Tuple, Optional

from ..system_id.diagnostics import ShapeMismatch


@dataclass
class Dataset:
    """Dataset container for skew-symmetric regression.

    Stores samples in the form (x_t, dx_t), one sample per row.

    Attributes:
        states: States, shape (N, state_dim)
        derivatives: Derivatives (or increments) paired with states, shape (N, state_dim)
        times: Time stamps, shape (N,)
    """
    states: np.ndarray
    derivatives: np.ndarray
    times: np.ndarray = field(default_factory=lambda: np.array([]))

    def __post_init__(self):
        """Validate data shapes."""
        self.states = np.asarray(self.states, dtype=float)
        self.derivatives = np.asarray(self.derivatives, dtype=float)
        if self.states.shape != self.derivatives.shape:
            raise ShapeMismatch(
                f"states {self.states.shape} and derivatives "
                f"{self.derivatives.shape} must have the same shape",
                x_shape=self.states.shape,
                dx_shape=self.derivatives.shape
            )
        self.times = np.asarray(self.times, dtype=float)
        if len(self.times) == 0:
            self.times = np.arange(len(self.states), dtype=float)
        elif self.times.shape != (len(self.states),):
            raise ShapeMismatch(
                f"times {self.times.shape} must hold one time stamp per sample "
                f"({len(self.states)})",
                x_shape=self.states.shape
            )

    @property
    def n_samples(self) -> int:
        """Number of data samples."""
        return len(self.states)

    @property
    def state_dim(self) -> int:
        """Dimension of state space."""
        return self.states.shape[1] if len(self.states.shape) > 1 else 1

    @classmethod
    def from_time_series(
        cls,
        states: np.ndarray,
        dt: float = 1.0,
        method: str = 'difference',
        times: Optional[np.ndarray] = None
    ) -> 'Dataset':
        """Estimate derivatives from a uniformly sampled trajectory.

        Args:
            states: Trajectory, shape (T, state_dim)
            dt: Sampling interval
            method: 'difference' pairs x(t) with (x(t+1) - x(t)) / dt and drops
                the last sample; 'central' uses second-order central
                differences and keeps every sample
            times: Time stamps, shape (T,)

        Returns:
            Dataset of (state, derivative) pairs
        """
        states = np.asarray(states, dtype=float)
        if times is None:
            times = np.arange(len(states)) * dt

        if method == 'difference':
            return cls(
                states=states[:-1],
                derivatives=np.diff(states, axis=0) / dt,
                times=np.asarray(times[:-1], dtype=float)
            )
        elif method == 'central':
            return cls(
                states=states,
                derivatives=np.gradient(states, dt, axis=0),
                times=np.asarray(times, dtype=float)
            )
        else:
            raise ValueError(f"Unknown method: {method}")

    def add_noise(
        self,
        state_noise_std: float = 0.0,
        derivative_noise_std: float = 0.0,
        seed: Optional[int] = None
    ) -> 'Dataset':
        """Add noise to the dataset.

        Args:
            state_noise_std: Std dev of noise added to states
            derivative_noise_std: Std dev of noise added to derivatives
            seed: Random seed

        Returns:
            New Dataset with added noise
        """
        rng = np.random.default_rng(seed)

        noisy_states = self.states + rng.normal(
            0, state_noise_std, self.states.shape
        ) if state_noise_std > 0 else self.states.copy()

        noisy_derivatives = self.derivatives + rng.normal(
            0, derivative_noise_std, self.derivatives.shape
        ) if derivative_noise_std > 0 else self.derivatives.copy()

        return Dataset(
            states=noisy_states,
            derivatives=noisy_derivatives,
            times=self.times.copy()
        )

    def split(
        self,
        train_ratio: float = 0.8,
        shuffle: bool = True,
        seed: Optional[int] = None
    ) -> Tuple['Dataset', 'Dataset']:
        """Split dataset into training and validation sets.

        Args:
            train_ratio: Fraction of data for training
            shuffle: Whether to shuffle before splitting
            seed: Random seed

        Returns:
            (train_dataset, val_dataset)
        """
        n = self.n_samples
        indices = np.arange(n)

        if shuffle:
            rng = np.random.default_rng(seed)
            rng.shuffle(indices)

        n_train = int(n * train_ratio)
        train_idx = indices[:n_train]
        val_idx = indices[n_train:]

        train_data = Dataset(
            states=self.states[train_idx],
            derivatives=self.derivatives[train_idx],
            times=self.times[train_idx]
        )

        val_data = Dataset(
            states=self.states[val_idx],
            derivatives=self.derivatives[val_idx],
            times=self.times[val_idx]
        )

        return train_data, val_data

    def subsample(self, n_samples: int, seed: Optional[int] = None) -> 'Dataset':
        """Create a subsampled dataset.

        Args:
            n_samples: Number of samples to keep
            seed: Random seed

        Returns:
            Subsampled Dataset
        """
        if n_samples >= self.n_samples:
            return Dataset(
                states=self.states.copy(),
                derivatives=self.derivatives.copy(),
                times=self.times.copy()
            )

        rng = np.random.default_rng(seed)
        indices = rng.choice(self.n_samples, size=n_samples, replace=False)
        indices = np.sort(indices)  # Keep temporal order

        return Dataset(
            states=self.states[indices],
            derivatives=self.derivatives[indices],
            times=self.times[indices]
        )

    def concatenate(self, other: 'Dataset') -> 'Dataset':
        """Concatenate with another dataset (e.g. another trial).

        Args:
            other: Another Dataset

        Returns:
            Combined Dataset
        """
        return Dataset(
            states=np.vstack([self.states, other.states]),
            derivatives=np.vstack([self.derivatives, other.derivatives]),
            times=np.concatenate([self.times, other.times])
        )

    def save(self, filepath: str):
        """Save dataset to file.

        Args:
            filepath: Path to save file (.npz)
        """
        np.savez(
            filepath,
            states=self.states,
            derivatives=self.derivatives,
            times=self.times
        )

    @classmethod
    def load(cls, filepath: str) -> 'Dataset':
        """Load dataset from file.

        Args:
            filepath: Path to .npz file

        Returns:
            Loaded Dataset
        """
        with np.load(filepath) as data:
            return cls(
                states=data['states'],
                derivatives=data['derivatives'],
                times=data['times']
            )


def collect_rotation_data(
    trajectory_generator,
    duration: float,
    dt: float = 0.01,
    derivative_noise_std: float = 0.0,
    seed: Optional[int] = None
) -> Dataset:
    """Sample a trajectory generator into a dataset.

    Derivatives are the exact time derivatives of the generator, optionally
    corrupted with Gaussian measurement noise.

    Args:
        trajectory_generator: TrajectoryGenerator object
        duration: Total duration
        dt: Time step
        derivative_noise_std: Std of noise added to derivatives
        seed: Random seed for noise

    Returns:
        Dataset with (x, dx) pairs
    """
    times = np.arange(0, duration, dt)
    sequence = trajectory_generator.get_sequence(times)

    dataset = Dataset(
        states=sequence['states'],
        derivatives=sequence['derivatives'],
        times=times
    )

    if derivative_noise_std > 0:
        dataset = dataset.add_noise(derivative_noise_std=derivative_noise_std, seed=seed)

    return dataset
