"""Full-matrix (unblocked) relaxation strategy."""

from __future__ import annotations

import numpy as np

from .kernels import check_pivots, gauss_seidel_range_numba, gauss_seidel_range_numpy


class FullSweep:
    """Gauss-Seidel/SOR sweep over the whole matrix, no block restriction.

    Parameters
    ----------
    A : np.ndarray
        Read-only coefficient matrix, shape (n, n)
    use_numba : bool, default True
        Use the numba JIT kernel
    pivot_tol : float, default 0.0
        Pivots with |A_ii| <= pivot_tol raise NumericalError
    """

    def __init__(self, A: np.ndarray, use_numba: bool = True, pivot_tol: float = 0.0):
        self.A = A
        self.n = A.shape[0]
        self.use_numba = use_numba
        self.pivot_tol = pivot_tol
        self._diagonal = np.ascontiguousarray(np.diag(A))
        self._step = gauss_seidel_range_numba if use_numba else gauss_seidel_range_numpy

    def __call__(self, x_old: np.ndarray, rhs: np.ndarray, omega: float = 1.0) -> np.ndarray:
        check_pivots(self._diagonal, self.pivot_tol)
        x_old = np.ascontiguousarray(x_old, dtype=np.float64)
        rhs = np.ascontiguousarray(rhs, dtype=np.float64)
        x_new = rhs.copy()
        self._step(self.A, rhs, x_old, x_new, 0, self.n, omega)
        return x_new

    def close(self) -> None:
        """No resources to release."""

    def __repr__(self) -> str:
        kernel = "numba" if self.use_numba else "numpy"
        return f"FullSweep(n={self.n}, kernel={kernel})"
