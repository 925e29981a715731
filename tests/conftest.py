import numpy as np
import pytest

from helpers import random_dominant_matrix


@pytest.fixture
def dominant_system():
    n = 12
    A = random_dominant_matrix(n, seed=42)
    rng = np.random.default_rng(7)
    rhs = rng.uniform(-5.0, 5.0, n)
    x_old = rng.uniform(-1.0, 1.0, n)
    return A, rhs, x_old
