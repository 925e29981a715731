"""Dense row-major matrix and vector helpers."""

from __future__ import annotations

import numpy as np

from .errors import InvalidConfiguration


def as_dense_matrix(values, n: int) -> np.ndarray:
    """Return a read-only (n, n) float64 view of a row-major coefficient array.

    Parameters
    ----------
    values : array_like
        Either a flat sequence of length n*n (row-major) or an (n, n) array
    n : int
        Matrix dimension

    Returns
    -------
    np.ndarray
        C-contiguous float64 array of shape (n, n), not writeable

    Raises
    ------
    InvalidConfiguration
        If the number of entries does not match n*n

    """
    A = np.array(values, dtype=np.float64, order="C", copy=True)
    if A.size != n * n or A.ndim not in (1, 2):
        raise InvalidConfiguration(
            f"Coefficient array has {A.size} entries, expected {n}x{n} = {n * n}"
        )
    if A.ndim == 2 and A.shape != (n, n):
        raise InvalidConfiguration(f"Coefficient array has shape {A.shape}, expected ({n}, {n})")
    A = A.reshape(n, n)
    A.flags.writeable = False
    return A


def as_vector(values, n: int) -> np.ndarray:
    """Return a float64 copy of a length-n vector."""
    v = np.array(values, dtype=np.float64, copy=True).reshape(-1)
    if v.shape[0] != n:
        raise InvalidConfiguration(f"Vector has length {v.shape[0]}, expected {n}")
    return v
