"""
Data Collection Module

Provides tools for building regression data from rotational systems:
- Exact trajectories of skew-symmetric linear dynamics
- Dataset management with noise injection and derivative estimation
"""

from .trajectory_generation import (
    TrajectoryGenerator,
    RotationTrajectory,
    PlanarRotationTrajectory,
    random_skew_matrix
)

from .dataset import (
    Dataset,
    collect_rotation_data
)

__all__ = [
    'TrajectoryGenerator',
    'RotationTrajectory',
    'PlanarRotationTrajectory',
    'random_skew_matrix',
    'Dataset',
    'collect_rotation_data'
]
