"""Computational kernels for the stationary iterative solvers.

This module contains the core sweep functions used by the relaxation
strategies. These are pure functions with no class dependencies, making
them ideal for JIT compilation with numba.
"""

from __future__ import annotations

import math

import numpy as np
from numba import njit, prange

from .errors import NumericalError
from .partition import compute_offsets
from .problems import setup_block_problem


def gauss_seidel_range_numpy(
    A: np.ndarray,
    rhs: np.ndarray,
    x_old: np.ndarray,
    x_new: np.ndarray,
    at: int,
    to: int,
    omega: float,
) -> None:
    """Relax rows at..to-1 in place, coupling only to columns in [at, to).

    For each row i in increasing order:

        gs = (rhs_i - sum_{at<=j<i} A_ij x_new_j - sum_{i<j<to} A_ij x_old_j) / A_ii
        x_new_i = x_old_i + omega * (gs - x_old_i)

    omega = 1 is plain Gauss-Seidel. Rows after i read the already relaxed
    values of earlier rows, which makes omega != 1 a true SOR sweep.

    Parameters
    ----------
    A : np.ndarray
        Coefficient matrix, shape (n, n)
    rhs : np.ndarray
        Right-hand side, shape (n,)
    x_old : np.ndarray
        Previous iterate, shape (n,)
    x_new : np.ndarray
        Next iterate, written in place on rows at..to-1
    at, to : int
        Row (and column) range of the sweep
    omega : float
        Relaxation factor

    """
    for i in range(at, to):
        s = (
            rhs[i]
            - np.dot(A[i, at:i], x_new[at:i])
            - np.dot(A[i, i + 1 : to], x_old[i + 1 : to])
        )
        x_new[i] = x_old[i] + omega * (s / A[i, i] - x_old[i])


@njit(cache=True)
def gauss_seidel_range_numba(
    A: np.ndarray,
    rhs: np.ndarray,
    x_old: np.ndarray,
    x_new: np.ndarray,
    at: int,
    to: int,
    omega: float,
) -> None:
    """Same update as gauss_seidel_range_numpy, with explicit loops."""
    for i in range(at, to):
        s = rhs[i]
        for j in range(at, i):
            s -= A[i, j] * x_new[j]
        for j in range(i + 1, to):
            s -= A[i, j] * x_old[j]
        x_new[i] = x_old[i] + omega * (s / A[i, i] - x_old[i])


@njit(parallel=True, cache=True)
def block_sweep_numba_parallel(
    A: np.ndarray,
    rhs: np.ndarray,
    x_old: np.ndarray,
    offsets: np.ndarray,
    omega: float,
) -> np.ndarray:
    """Block-restricted sweep with one parallel task per block.

    Blocks write disjoint row ranges of the fresh buffer, so they run
    without synchronization; prange joins before returning.

    Returns
    -------
    np.ndarray
        Next iterate, shape (n,)
    """
    x_new = rhs.copy()
    nblocks = offsets.shape[0] - 1

    # Parallel loop over blocks
    for k in prange(nblocks):
        gauss_seidel_range_numba(A, rhs, x_old, x_new, offsets[k], offsets[k + 1], omega)

    return x_new


def check_pivots(diagonal: np.ndarray, pivot_tol: float = 0.0) -> None:
    """Raise NumericalError if any |A_ii| <= pivot_tol (or is not finite)."""
    bad = np.flatnonzero(~(np.abs(diagonal) > pivot_tol) | ~np.isfinite(diagonal))
    if bad.size:
        i = int(bad[0])
        raise NumericalError(
            f"Zero pivot in row {i}: A[{i}, {i}] = {diagonal[i]!r} (pivot_tol={pivot_tol})"
        )


def relative_residual(A: np.ndarray, x: np.ndarray, rhs: np.ndarray) -> float:
    """Relative residual norm ||A x - b|| / ||x||.

    Falls back to the absolute residual ||A x - b|| when x is exactly zero.
    """
    r = A @ x - rhs
    rr = math.sqrt(float(np.dot(r, r)))
    xx = math.sqrt(float(np.dot(x, x)))
    if xx == 0.0:
        return rr
    return rr / xx


def warmup(n: int = 8, nblocks: int = 2) -> None:
    """Trigger JIT compilation of the numba kernels on a tiny problem."""
    A, rhs, _ = setup_block_problem(n, nblocks)
    offsets = compute_offsets(n, nblocks)
    x_old = np.zeros(n)
    x_new = rhs.copy()

    for _ in range(2):
        gauss_seidel_range_numba(A, rhs, x_old, x_new, 0, n, 1.0)
        x_old = block_sweep_numba_parallel(A, rhs, x_new, offsets, 1.0)
