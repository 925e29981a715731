"""Block-Jacobi operator with per-block Gauss-Seidel relaxation.

The coefficient matrix is split into contiguous diagonal blocks (see
:mod:`LinSys.partition`). Coupling between blocks is dropped, so each block
can be relaxed independently of every other one:

- **numba** (``use_numba=True``): one ``prange`` task per block inside a
  single JIT kernel. Numba's thread pool is fixed, and the parallel loop
  joins before the kernel returns.
- **thread pool** (``use_numba=False``): a persistent
  ``ThreadPoolExecutor`` with a fixed number of workers, created once per
  operator. Each relax call maps the blocks onto the pool and waits for
  all of them.

In both cases every block writes only its own row range of a freshly
allocated buffer, so no locking is needed.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from .kernels import (
    block_sweep_numba_parallel,
    check_pivots,
    gauss_seidel_range_numpy,
)
from .partition import block_ranges, compute_offsets


class BlockOperator:
    """Block-diagonal restriction of a dense matrix.

    Parameters
    ----------
    A : np.ndarray
        Read-only coefficient matrix, shape (n, n)
    nblocks : int
        Number of diagonal blocks (1 <= nblocks <= n)
    use_numba : bool, default True
        Relax blocks with the numba prange kernel instead of the thread pool
    num_threads : int, optional
        Worker count for the thread pool (default: min(nblocks, cpu count))
    pivot_tol : float, default 0.0
        Pivots with |A_ii| <= pivot_tol raise NumericalError

    Examples
    --------
    >>> op = BlockOperator(A, nblocks=4)
    >>> x_next = op.relax(x, rhs)
    >>> y = op.times(x)

    """

    def __init__(
        self,
        A: np.ndarray,
        nblocks: int,
        use_numba: bool = True,
        num_threads: int | None = None,
        pivot_tol: float = 0.0,
    ):
        self.A = A
        self._n = A.shape[0]
        self._offsets = compute_offsets(self._n, nblocks)
        self._offsets.flags.writeable = False
        self._ranges = list(block_ranges(self._offsets))
        self._diagonal = np.ascontiguousarray(np.diag(A))
        self.use_numba = use_numba
        self.pivot_tol = pivot_tol

        if num_threads is None:
            num_threads = min(nblocks, os.cpu_count() or 1)
        self.num_threads = num_threads
        self._pool: ThreadPoolExecutor | None = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def n(self) -> int:
        return self._n

    @property
    def nblocks(self) -> int:
        return len(self._ranges)

    @property
    def offsets(self) -> np.ndarray:
        return self._offsets

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def times(self, rhs: np.ndarray) -> np.ndarray:
        """Apply the block-diagonal part of A to a vector.

        Entries of A outside a row's own block are ignored.
        """
        rhs = np.asarray(rhs, dtype=np.float64)
        result = np.empty(self._n, dtype=np.float64)
        for at, to in self._ranges:
            result[at:to] = self.A[at:to, at:to] @ rhs[at:to]
        return result

    def relax(self, x_old: np.ndarray, rhs: np.ndarray, omega: float = 1.0) -> np.ndarray:
        """Compute the next iterate with within-block Gauss-Seidel updates.

        Parameters
        ----------
        x_old : np.ndarray
            Previous iterate, shape (n,)
        rhs : np.ndarray
            Right-hand side, shape (n,)
        omega : float, default 1.0
            Relaxation factor (1.0 = Gauss-Seidel)

        Returns
        -------
        np.ndarray
            Freshly allocated next iterate

        Raises
        ------
        NumericalError
            If any diagonal entry is a zero pivot

        """
        check_pivots(self._diagonal, self.pivot_tol)
        x_old = np.ascontiguousarray(x_old, dtype=np.float64)
        rhs = np.ascontiguousarray(rhs, dtype=np.float64)

        if self.use_numba:
            return block_sweep_numba_parallel(self.A, rhs, x_old, self._offsets, omega)

        x_new = rhs.copy()
        if self.nblocks == 1:
            gauss_seidel_range_numpy(self.A, rhs, x_old, x_new, 0, self._n, omega)
            return x_new

        pool = self._get_pool()
        futures = [
            pool.submit(gauss_seidel_range_numpy, self.A, rhs, x_old, x_new, at, to, omega)
            for at, to in self._ranges
        ]
        # Barrier: every block must finish before x_new is handed back
        for future in futures:
            future.result()
        return x_new

    __call__ = relax

    # ------------------------------------------------------------------
    # Resource handling
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Shut down the worker pool, if one was started."""
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _get_pool(self) -> ThreadPoolExecutor:
        if self._pool is None:
            self._pool = ThreadPoolExecutor(
                max_workers=self.num_threads, thread_name_prefix="block-relax"
            )
        return self._pool

    def __repr__(self) -> str:
        kernel = "numba" if self.use_numba else f"threads={self.num_threads}"
        return f"BlockOperator(n={self._n}, nblocks={self.nblocks}, {kernel})"
