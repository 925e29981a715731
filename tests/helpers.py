import numpy as np


def random_dominant_matrix(n, seed=0):
    """Dense random matrix with a strictly dominant diagonal."""
    rng = np.random.default_rng(seed)
    A = rng.uniform(-1.0, 1.0, (n, n))
    A[np.arange(n), np.arange(n)] = n + 1.0
    return A


def reference_block_relax(A, rhs, x_old, offsets, omega=1.0):
    """Straight loop version of the within-block Gauss-Seidel/SOR update."""
    x_new = np.array(rhs, dtype=np.float64)
    for k in range(len(offsets) - 1):
        at, to = offsets[k], offsets[k + 1]
        for i in range(at, to):
            s = rhs[i]
            for j in range(at, i):
                s -= A[i, j] * x_new[j]
            for j in range(i + 1, to):
                s -= A[i, j] * x_old[j]
            x_new[i] = x_old[i] + omega * (s / A[i, i] - x_old[i])
    return x_new
