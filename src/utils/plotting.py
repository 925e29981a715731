"""Plotting utilities for solver convergence.

Automatically applies the seaborn style on import.
"""

from __future__ import annotations

import matplotlib.pyplot as plt
import numpy as np


# Auto-apply plotting styles on import
def _apply_styles():
    """Apply the seaborn style."""
    plt.style.use("seaborn-v0_8")


_apply_styles()


def plot_residual_history(results, ax=None, label: str | None = None, tolerance: float | None = None):
    """Plot relative residual per iteration on a log scale.

    Parameters
    ----------
    results : SolveResults or sequence of float
        Solver results (uses ``residual_history``) or the history itself
    ax : matplotlib.axes.Axes, optional
        Axes to draw on (default: new figure)
    label : str, optional
        Line label
    tolerance : float, optional
        Draw the convergence threshold as a horizontal line

    Returns
    -------
    matplotlib.axes.Axes
        The axes that were drawn on

    """
    history = getattr(results, "residual_history", results)
    history = np.asarray(history, dtype=np.float64)

    if ax is None:
        _, ax = plt.subplots()

    steps = np.arange(1, history.size + 1)
    ax.semilogy(steps, history, marker="o", markersize=3, label=label)
    if tolerance is not None:
        ax.axhline(tolerance, color="k", linestyle="--", linewidth=1, label="tolerance")

    ax.set_xlabel("Iteration")
    ax.set_ylabel(r"$\|Ax - b\| / \|x\|$")
    if label is not None or tolerance is not None:
        ax.legend()
    return ax
