"""Contiguous row partitioning for block preconditioning."""

from __future__ import annotations

from typing import Iterator

import numpy as np

from .errors import InvalidConfiguration


def compute_offsets(n: int, nblocks: int) -> np.ndarray:
    """Split n rows into nblocks contiguous ranges.

    The first ``n % nblocks`` blocks receive one extra row, so block sizes
    differ by at most one.

    Parameters
    ----------
    n : int
        Total number of rows
    nblocks : int
        Number of blocks (1 <= nblocks <= n)

    Returns
    -------
    np.ndarray
        int64 array of nblocks + 1 offsets; block k owns rows
        offsets[k]:offsets[k + 1]

    Raises
    ------
    InvalidConfiguration
        If nblocks is not in [1, n]

    Examples
    --------
    >>> compute_offsets(10, 3)
    array([ 0,  4,  7, 10])

    """
    if n < 1:
        raise InvalidConfiguration(f"Number of rows must be positive, got {n}")
    if nblocks < 1:
        raise InvalidConfiguration(f"Number of blocks must be positive, got {nblocks}")
    if nblocks > n:
        raise InvalidConfiguration(f"Number of blocks ({nblocks}) exceeds number of rows ({n})")

    base_size = n // nblocks
    remainder = n % nblocks

    sizes = np.full(nblocks, base_size, dtype=np.int64)
    sizes[:remainder] += 1

    offsets = np.zeros(nblocks + 1, dtype=np.int64)
    np.cumsum(sizes, out=offsets[1:])
    return offsets


def block_ranges(offsets: np.ndarray) -> Iterator[tuple[int, int]]:
    """Yield (at, to) row ranges for each block."""
    for k in range(len(offsets) - 1):
        yield int(offsets[k]), int(offsets[k + 1])


def block_sizes(offsets: np.ndarray) -> np.ndarray:
    """Number of rows in each block."""
    return np.diff(offsets)
