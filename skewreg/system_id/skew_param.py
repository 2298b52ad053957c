"""
Skew-Symmetric Parameterization

A k x k skew-symmetric matrix (M = -M^T) has a zero diagonal and its lower
triangle is the negated upper triangle, so it is fully described by the
k(k-1)/2 entries strictly above the diagonal:

    M = [[  0,   m0,  m1],
         [-m0,    0,  m2],
         [-m1,  -m2,   0]]   <->   m = [m0, m1, m2]

Entries are ordered row-major over i < j (the order of np.triu_indices(k, 1)).
"""

import math

import numpy as np


class DimensionMismatch(ValueError):
    """
    Raised when a vector length does not correspond to any matrix size k,
    i.e. len(m) != k(k-1)/2 for every integer k.
    """

    def __init__(self, message: str, length: int = None):
        super().__init__(message)
        self.length = length


def skew_dim(k: int) -> int:
    """Number of free parameters of a k x k skew-symmetric matrix."""
    return k * (k - 1) // 2


def state_dim_from_length(length: int) -> int:
    """Recover k from a parameter count, k = (1 + sqrt(1 + 8*length)) / 2.

    Raises:
        DimensionMismatch: If no integer k satisfies the relation
    """
    disc = 1 + 8 * length
    root = math.isqrt(disc) if length >= 0 else -1
    if root < 0 or root * root != disc:
        raise DimensionMismatch(
            f"Vector of length {length} is not the strict triangle of any square matrix",
            length=length
        )
    return (1 + root) // 2


def skew_part(A: np.ndarray) -> np.ndarray:
    """Orthogonal projection onto the skew-symmetric matrices: 0.5 (A - A^T)."""
    A = np.asarray(A, dtype=float)
    return 0.5 * (A - A.T)


def vectorize(M: np.ndarray) -> np.ndarray:
    """Flatten a skew-symmetric matrix to its strict upper triangle.

    The input is not checked for skew symmetry; callers project first
    (see skew_part).

    Args:
        M: Skew-symmetric matrix, shape (k, k)

    Returns:
        Unique entries, shape (k(k-1)/2,)
    """
    M = np.asarray(M, dtype=float)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise DimensionMismatch(f"Expected a square matrix, got shape {M.shape}")

    rows, cols = np.triu_indices(M.shape[0], k=1)
    return M[rows, cols].copy()


def matricize(m: np.ndarray) -> np.ndarray:
    """Rebuild the full skew-symmetric matrix from its unique entries.

    Args:
        m: Strict upper triangle entries, shape (k(k-1)/2,)

    Returns:
        Skew-symmetric matrix, shape (k, k)

    Raises:
        DimensionMismatch: If len(m) is not k(k-1)/2 for an integer k
    """
    m = np.asarray(m, dtype=float).ravel()
    k = state_dim_from_length(m.size)

    M = np.zeros((k, k))
    rows, cols = np.triu_indices(k, k=1)
    M[rows, cols] = m
    M[cols, rows] = -m
    return M
