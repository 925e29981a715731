"""Exceptions raised by the linear system solvers."""


class SolverError(Exception):
    """Base class for all solver errors."""


class InvalidConfiguration(SolverError, ValueError):
    """Raised for invalid solver setup (block counts, method, budgets)."""


class NumericalError(SolverError, ArithmeticError):
    """Raised when a sweep hits a zero pivot or produces non-finite values."""
