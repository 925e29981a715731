"""Linear systems package: Gauss-Seidel/SOR with block-Jacobi preconditioning."""

from .block_operator import BlockOperator
from .datastructures import Method, RuntimeConfig, SolveResults, SolverState, SolverStatus
from .errors import InvalidConfiguration, NumericalError, SolverError
from .kernels import (
    block_sweep_numba_parallel,
    check_pivots,
    gauss_seidel_range_numba,
    gauss_seidel_range_numpy,
    relative_residual,
    warmup,
)
from .matrix import as_dense_matrix, as_vector
from .partition import block_ranges, block_sizes, compute_offsets
from .problems import classic_problem, default_problem, generate_square_block_matrix, setup_block_problem
from .solver import IterativeSolver
from .sweep import FullSweep

__all__ = [
    "BlockOperator",
    "Method",
    "RuntimeConfig",
    "SolveResults",
    "SolverState",
    "SolverStatus",
    "InvalidConfiguration",
    "NumericalError",
    "SolverError",
    "block_sweep_numba_parallel",
    "check_pivots",
    "gauss_seidel_range_numba",
    "gauss_seidel_range_numpy",
    "relative_residual",
    "warmup",
    "as_dense_matrix",
    "as_vector",
    "block_ranges",
    "block_sizes",
    "compute_offsets",
    "classic_problem",
    "default_problem",
    "generate_square_block_matrix",
    "setup_block_problem",
    "IterativeSolver",
    "FullSweep",
]
