"""Data structures for solver configuration, state and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from .errors import InvalidConfiguration


class Method(str, Enum):
    """Stationary iteration method."""
    GAUSS_SEIDEL = "gauss_seidel"
    SOR = "sor"

    @classmethod
    def resolve(cls, method) -> "Method":
        """Turn a Method or its string value into a Method."""
        try:
            return cls(method)
        except ValueError:
            raise InvalidConfiguration(
                f"Unsupported method {method!r}. "
                f"Available methods: {[m.value for m in cls]}"
            ) from None


class SolverStatus(str, Enum):
    """Lifecycle of an IterativeSolver."""
    PENDING = "pending"
    RUNNING = "running"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (SolverStatus.CONVERGED, SolverStatus.EXHAUSTED, SolverStatus.FAILED)


@dataclass
class RuntimeConfig:
    """Solver configuration (fixed at construction)."""
    # Problem
    n: int = 0

    # Block preconditioning (0 = full sweep)
    nblocks: int = 0

    # Iteration
    method: str = Method.GAUSS_SEIDEL.value
    omega: float = 0.5
    max_steps: int = 0
    tolerance: float = 0.0
    pivot_tol: float = 0.0

    # Execution
    use_numba: bool = True
    num_threads: int = 1

    def validate(self) -> None:
        """Raise InvalidConfiguration if any setting is out of range."""
        if self.n < 1:
            raise InvalidConfiguration(f"Matrix dimension must be positive, got {self.n}")
        if self.max_steps < 1:
            raise InvalidConfiguration(f"max_steps must be positive, got {self.max_steps}")
        if not self.tolerance > 0.0:
            raise InvalidConfiguration(f"tolerance must be positive, got {self.tolerance}")
        if not 0.0 < self.omega < 2.0:
            raise InvalidConfiguration(f"Relaxation factor must lie in (0, 2), got {self.omega}")
        if self.nblocks < 0:
            raise InvalidConfiguration(f"Number of blocks must be positive, got {self.nblocks}")
        if self.nblocks > self.n:
            raise InvalidConfiguration(
                f"Number of blocks ({self.nblocks}) exceeds number of rows ({self.n})"
            )
        if self.pivot_tol < 0.0:
            raise InvalidConfiguration(f"pivot_tol must be non-negative, got {self.pivot_tol}")
        if self.num_threads < 1:
            raise InvalidConfiguration(f"num_threads must be positive, got {self.num_threads}")


@dataclass
class SolverState:
    """Current iterate and progress of a solve."""
    x: np.ndarray
    steps: int = 0
    converged: bool = False
    status: SolverStatus = SolverStatus.PENDING

    def copy(self) -> "SolverState":
        return SolverState(x=self.x.copy(), steps=self.steps,
                           converged=self.converged, status=self.status)


@dataclass
class SolveResults:
    """Global solver results."""
    # Convergence info
    iterations: int = 0
    residual_history: list[float] = field(default_factory=list)
    converged: bool = False
    status: str = SolverStatus.PENDING.value
    final_residual: float = 0.0
    final_error: float = 0.0
    # Timings
    wall_time: float = 0.0
    compute_time: float = 0.0
