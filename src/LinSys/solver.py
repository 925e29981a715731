"""Stationary iterative solver for dense linear systems.

The iteration driver is independent of how the next iterate is produced:
it is handed a relaxation strategy at construction, either a
:class:`~LinSys.sweep.FullSweep` over the whole matrix or the ``relax``
method of a :class:`~LinSys.block_operator.BlockOperator`. Convergence is
always judged on the full matrix, whatever strategy is used.
"""

from __future__ import annotations

import math
import os
import time
from dataclasses import asdict
from pathlib import Path
from typing import Callable

import numba
import numpy as np
import pandas as pd

from utils.io import ensure_output_dir, save_frame

from .block_operator import BlockOperator
from .datastructures import Method, RuntimeConfig, SolveResults, SolverState, SolverStatus
from .errors import InvalidConfiguration, NumericalError, SolverError
from .kernels import relative_residual
from .matrix import as_dense_matrix, as_vector
from .sweep import FullSweep

Relaxation = Callable[[np.ndarray, np.ndarray, float], np.ndarray]


class IterativeSolver:
    """Gauss-Seidel / SOR solver with optional block-Jacobi preconditioning.

    Parameters
    ----------
    max_steps : int
        Maximum number of iterations
    tolerance : float
        Convergence threshold for the relative residual ||Ax - b|| / ||x||
    n : int
        Matrix dimension
    A : array_like
        Coefficient matrix, flat row-major (length n*n) or shape (n, n)
    rhs : array_like
        Right-hand side, length n
    nblocks : int, optional
        Relax with a BlockOperator of this many diagonal blocks
    relaxation : callable, optional
        Custom strategy ``relax(x_old, rhs, omega) -> x_new``. Cannot be
        combined with nblocks.
    omega : float, default 0.5
        Relaxation factor used by the SOR method
    use_numba : bool, default True
        Use numba JIT kernels
    num_threads : int, optional
        Worker count for block relaxation without numba
    pivot_tol : float, default 0.0
        Pivots with |A_ii| <= pivot_tol raise NumericalError
    x0 : array_like, optional
        Initial iterate (default: zeros)
    verbose : bool, default False
        Print convergence info

    Examples
    --------
    >>> A, rhs, x_exact = classic_problem()
    >>> solver = IterativeSolver(100, 1e-6, 4, A, rhs)
    >>> results = solver.solve("gauss_seidel")
    >>> solver.solution()
    array([ 0.83486239,  2.34862385, -0.92405063,  1.75949367])

    """

    def __init__(
        self,
        max_steps: int,
        tolerance: float,
        n: int,
        A,
        rhs,
        *,
        nblocks: int | None = None,
        relaxation: Relaxation | None = None,
        omega: float = 0.5,
        use_numba: bool = True,
        num_threads: int | None = None,
        pivot_tol: float = 0.0,
        x0=None,
        verbose: bool = False,
    ):
        self.verbose = verbose

        if nblocks is not None and relaxation is not None:
            raise InvalidConfiguration("Pass either nblocks or relaxation, not both")
        if nblocks is not None and nblocks < 1:
            raise InvalidConfiguration(f"Number of blocks must be positive, got {nblocks}")

        if num_threads is None:
            num_threads = self.get_num_threads(use_numba, nblocks or 1)

        self.config = RuntimeConfig(
            n=n,
            nblocks=nblocks or 0,
            omega=omega,
            max_steps=max_steps,
            tolerance=tolerance,
            pivot_tol=pivot_tol,
            use_numba=use_numba,
            num_threads=num_threads,
        )
        self.config.validate()

        self._A = as_dense_matrix(A, n)
        self._rhs = as_vector(rhs, n)
        x = np.zeros(n) if x0 is None else as_vector(x0, n)
        self._state = SolverState(x=x)
        self._residual_history: list[float] = []
        self._results = SolveResults()

        # Strategy selection
        if relaxation is not None:
            self._relax = relaxation
        elif nblocks is not None:
            self._relax = BlockOperator(
                self._A, nblocks, use_numba=use_numba,
                num_threads=num_threads, pivot_tol=pivot_tol,
            ).relax
        else:
            self._relax = FullSweep(self._A, use_numba=use_numba, pivot_tol=pivot_tol)

        if self.verbose:
            kernel = "numba" if use_numba else "numpy"
            print(f"Using {kernel} kernel with {self.describe_relaxation()}")

    # ============================================================================
    # Queries
    # ============================================================================

    def solution(self) -> np.ndarray:
        """Copy of the last completed iterate."""
        return self._state.x.copy()

    def nsteps(self) -> int:
        """Number of iterations executed."""
        return len(self._residual_history)

    def residual_norms(self) -> list[float]:
        """Relative residual after each iteration."""
        return list(self._residual_history)

    @property
    def status(self) -> SolverStatus:
        return self._state.status

    @property
    def state(self) -> SolverState:
        return self._state.copy()

    @property
    def results(self) -> SolveResults:
        return self._results

    @property
    def relaxation(self) -> Relaxation:
        return self._relax

    def describe_relaxation(self) -> str:
        owner = getattr(self._relax, "__self__", self._relax)
        return repr(owner)

    def get_num_threads(self, use_numba: bool = False, nblocks: int = 1) -> int:
        """Get number of threads available for parallel execution."""
        if use_numba:
            return numba.get_num_threads()
        return min(nblocks, os.cpu_count() or 1)

    # ============================================================================
    # Solve
    # ============================================================================

    def solve(self, method=Method.GAUSS_SEIDEL, u_true=None) -> SolveResults:
        """Iterate until convergence or until max_steps is exhausted.

        Parameters
        ----------
        method : Method or str, default Method.GAUSS_SEIDEL
            "gauss_seidel" or "sor"
        u_true : array_like, optional
            Exact solution, used to report the final error

        Returns
        -------
        SolveResults
            Convergence info and timings. Running out of iterations is not
            an error: check ``converged`` or ``status``.

        Raises
        ------
        InvalidConfiguration
            If the method is not supported
        NumericalError
            If a sweep hits a zero pivot or produces non-finite values. The
            stored iterate and residual history are left at the last
            completed iteration.
        SolverError
            If an earlier solve() on this solver failed

        """
        method = Method.resolve(method)

        if self._state.status is SolverStatus.FAILED:
            raise SolverError(
                f"Solver failed after {self.nsteps()} iterations; construct a new solver to retry"
            )
        if self._state.status.terminal:
            if self.verbose:
                print(f"Solver already finished ({self._state.status.value}); not resuming")
            return self._results

        self.config.method = method.value
        omega = 1.0 if method is Method.GAUSS_SEIDEL else self.config.omega
        max_steps = self.config.max_steps
        tolerance = self.config.tolerance

        self._state.status = SolverStatus.RUNNING
        compute_times = []
        residual = math.nan
        t_start = time.perf_counter()

        # Main iteration loop
        for i in range(max_steps):
            t_comp_start = time.perf_counter()
            try:
                x_new = self._relax(self._state.x, self._rhs, omega)
                residual = self._check_step(x_new, i)
            except NumericalError:
                self._state.status = SolverStatus.FAILED
                self._finish(t_start, compute_times, u_true)
                raise
            compute_times.append(time.perf_counter() - t_comp_start)

            # Commit iterate and residual together
            self._state.x = x_new
            self._state.steps += 1
            self._residual_history.append(residual)

            if residual <= tolerance:
                self._state.converged = True
                self._state.status = SolverStatus.CONVERGED
                if self.verbose:
                    print(f"Converged at iteration {i + 1} (residual: {residual:.2e})")
                break
        else:
            self._state.status = SolverStatus.EXHAUSTED
            if self.verbose:
                print(f"Did not converge after {max_steps} iterations (residual: {residual:.2e})")

        return self._finish(t_start, compute_times, u_true)

    def close(self) -> None:
        """Release worker threads held by the relaxation strategy."""
        owner = getattr(self._relax, "__self__", self._relax)
        close = getattr(owner, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ============================================================================
    # Reporting
    # ============================================================================

    def residual_dataframe(self) -> pd.DataFrame:
        """Residual history as a DataFrame with columns step, residual."""
        return pd.DataFrame({
            "step": np.arange(1, self.nsteps() + 1),
            "residual": np.asarray(self._residual_history, dtype=np.float64),
        })

    def print_summary(self):
        """Print a summary of the solver results."""
        print(f"Method = {self.config.method}")
        print(f"Relaxation = {self.describe_relaxation()}")
        print(f"Wall time = {self._results.wall_time:.6f} s")
        print(f"Compute time = {self._results.compute_time:.6f} s")
        print(f"Iterations = {self._results.iterations}")
        if self._results.converged:
            print(f"Converged within tolerance {self.config.tolerance}")
        else:
            print(f"Status = {self._results.status}")
        print(f"Final residual = {self._results.final_residual:.6e}")
        if self._results.final_error > 0:
            print(f"Final error = {self._results.final_error:.6e}")

    def save_results(self, data_dir, output_name: str | None = None) -> dict[str, Path]:
        """Save config, results and residual history to parquet, solution to npy.

        Parameters
        ----------
        data_dir : Path or str
            Directory to save results
        output_name : str, optional
            Custom base name for output files

        Returns
        -------
        dict
            Paths of the written files keyed by "config", "results",
            "residuals" and "solution"

        """
        data_dir = ensure_output_dir(data_dir)

        if output_name:
            base_name = output_name.replace(".npy", "").replace(".parquet", "")
        else:
            blocks = f"_b{self.config.nblocks}" if self.config.nblocks else ""
            base_name = f"run_n{self.config.n}{blocks}_iter{self.nsteps()}_{self.config.method}"

        paths = {
            "config": data_dir / f"{base_name}_config.parquet",
            "results": data_dir / f"{base_name}_results.parquet",
            "residuals": data_dir / f"{base_name}_residuals.parquet",
            "solution": data_dir / f"{base_name}_solution.npy",
        }

        results = asdict(self._results)
        results.pop("residual_history")

        save_frame(pd.DataFrame([asdict(self.config)]), paths["config"], verbose=self.verbose)
        save_frame(pd.DataFrame([results]), paths["results"], verbose=self.verbose)
        save_frame(self.residual_dataframe(), paths["residuals"], verbose=self.verbose)

        np.save(paths["solution"], self._state.x)
        if self.verbose:
            print(f"Solution saved to: {paths['solution']}")

        return paths

    # ============================================================================
    # Internal methods
    # ============================================================================

    def _check_step(self, x_new: np.ndarray, i: int) -> float:
        if not np.all(np.isfinite(x_new)):
            raise NumericalError(f"Non-finite iterate produced at iteration {i + 1}")
        residual = relative_residual(self._A, x_new, self._rhs)
        if not math.isfinite(residual):
            raise NumericalError(f"Non-finite residual at iteration {i + 1}")
        return residual

    def _finish(self, t_start: float, compute_times: list[float], u_true) -> SolveResults:
        elapsed_time = time.perf_counter() - t_start

        final_error = 0.0
        if u_true is not None:
            final_error = float(np.linalg.norm(self._state.x - as_vector(u_true, self.config.n)))
            if self.verbose:
                print(f"Final error vs true solution: {final_error:.2e}")

        self._results = SolveResults(
            iterations=self.nsteps(),
            residual_history=self.residual_norms(),
            converged=self._state.converged,
            status=self._state.status.value,
            final_residual=self._residual_history[-1] if self._residual_history else 0.0,
            final_error=final_error,
            wall_time=elapsed_time,
            compute_time=sum(compute_times),
        )
        return self._results
