"""Test problems with known solutions.

This module provides small reference systems and a synthetic
block-diagonal-dominant matrix generator for verification.
"""

from __future__ import annotations

import numpy as np

from .matrix import as_dense_matrix
from .partition import block_ranges, compute_offsets


def generate_square_block_matrix(nrows: int, nblocks: int) -> np.ndarray:
    """Generate a block-diagonal-dominant matrix.

    Within each block the diagonal is ``nrows // nblocks + 100`` and the
    off-diagonal entries are 1. Entries coupling different blocks are zero.
    Block boundaries follow :func:`LinSys.partition.compute_offsets`.

    Parameters
    ----------
    nrows : int
        Matrix dimension
    nblocks : int
        Number of diagonal blocks

    Returns
    -------
    np.ndarray
        Flat row-major array of length nrows * nrows

    Examples
    --------
    >>> generate_square_block_matrix(4, 2).reshape(4, 4)
    array([[102.,   1.,   0.,   0.],
           [  1., 102.,   0.,   0.],
           [  0.,   0., 102.,   1.],
           [  0.,   0.,   1., 102.]])

    """
    diagonal = float(nrows // nblocks + 100)
    mat = np.zeros((nrows, nrows), dtype=np.float64)

    for at, to in block_ranges(compute_offsets(nrows, nblocks)):
        mat[at:to, at:to] = 1.0
        idx = np.arange(at, to)
        mat[idx, idx] = diagonal

    return mat.reshape(-1)


def setup_block_problem(nrows: int, nblocks: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Set up a block-diagonal-dominant system whose solution is all ones.

    Returns
    -------
    A : np.ndarray
        Read-only coefficient matrix, shape (nrows, nrows)
    rhs : np.ndarray
        Right-hand side A @ ones
    x_exact : np.ndarray
        Exact solution (all ones)

    """
    A = as_dense_matrix(generate_square_block_matrix(nrows, nblocks), nrows)
    x_exact = np.ones(nrows)
    rhs = A @ x_exact
    return A, rhs, x_exact


def default_problem() -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """3x3 diagonally dominant system with solution [1, 2, 3]."""
    A = as_dense_matrix([4.0, 1.0, -1.0,
                         2.0, 7.0, 1.0,
                         1.0, -3.0, 12.0], 3)
    rhs = np.array([3.0, 19.0, 31.0])
    x_exact = np.array([1.0, 2.0, 3.0])
    return A, rhs, x_exact


def classic_problem() -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """4x4 system made of two decoupled 2x2 blocks.

    The exact solution is [91/109, 256/109, -73/79, 139/79].
    """
    A = as_dense_matrix([10.0, -1.0, 0.0, 0.0,
                         -1.0, 11.0, 0.0, 0.0,
                         0.0, 0.0, 10.0, -1.0,
                         0.0, 0.0, -1.0, 8.0], 4)
    rhs = np.array([6.0, 25.0, -11.0, 15.0])
    x_exact = np.array([91.0 / 109.0, 256.0 / 109.0, -73.0 / 79.0, 139.0 / 79.0])
    return A, rhs, x_exact
