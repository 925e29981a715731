import numpy as np
import pytest

from LinSys import BlockOperator, FullSweep, NumericalError, as_dense_matrix, compute_offsets

from helpers import random_dominant_matrix, reference_block_relax


@pytest.mark.parametrize("nblocks", [1, 2, 3, 5, 12])
def test_times_matches_masked_matvec(dominant_system, nblocks):
    A, _, x = dominant_system
    op = BlockOperator(as_dense_matrix(A, 12), nblocks)

    mask = np.zeros_like(A)
    offsets = compute_offsets(12, nblocks)
    for k in range(nblocks):
        mask[offsets[k]:offsets[k + 1], offsets[k]:offsets[k + 1]] = 1.0

    np.testing.assert_allclose(op.times(x), (A * mask) @ x, rtol=1e-13, atol=1e-13)


def test_times_random_matrices():
    rng = np.random.default_rng(3)
    for n in (1, 4, 9, 17):
        A = rng.normal(size=(n, n))
        x = rng.normal(size=n)
        for nblocks in range(1, n + 1):
            op = BlockOperator(as_dense_matrix(A, n), nblocks)
            expected = np.zeros(n)
            for k in range(nblocks):
                at, to = op.offsets[k], op.offsets[k + 1]
                expected[at:to] = A[at:to, at:to] @ x[at:to]
            np.testing.assert_allclose(op.times(x), expected, rtol=1e-12, atol=1e-12)


@pytest.mark.parametrize("use_numba", [True, False])
@pytest.mark.parametrize("nblocks", [1, 2, 4, 7, 12])
def test_relax_matches_reference(dominant_system, use_numba, nblocks):
    A, rhs, x_old = dominant_system
    with BlockOperator(as_dense_matrix(A, 12), nblocks, use_numba=use_numba) as op:
        x_new = op.relax(x_old, rhs)

    expected = reference_block_relax(A, rhs, x_old, compute_offsets(12, nblocks))
    np.testing.assert_allclose(x_new, expected, rtol=1e-12, atol=1e-12)


@pytest.mark.parametrize("use_numba", [True, False])
def test_relax_with_omega(dominant_system, use_numba):
    A, rhs, x_old = dominant_system
    with BlockOperator(as_dense_matrix(A, 12), 3, use_numba=use_numba) as op:
        x_new = op.relax(x_old, rhs, 0.7)

    expected = reference_block_relax(A, rhs, x_old, compute_offsets(12, 3), omega=0.7)
    np.testing.assert_allclose(x_new, expected, rtol=1e-12, atol=1e-12)


def test_relax_does_not_touch_inputs(dominant_system):
    A, rhs, x_old = dominant_system
    rhs_copy, x_copy = rhs.copy(), x_old.copy()
    with BlockOperator(as_dense_matrix(A, 12), 4, use_numba=False) as op:
        op.relax(x_old, rhs)
    np.testing.assert_array_equal(rhs, rhs_copy)
    np.testing.assert_array_equal(x_old, x_copy)


def test_single_block_equals_full_sweep(dominant_system):
    A, rhs, x_old = dominant_system
    A = as_dense_matrix(A, 12)
    with BlockOperator(A, 1) as op:
        np.testing.assert_allclose(op.relax(x_old, rhs), FullSweep(A)(x_old, rhs), rtol=1e-13)


def test_one_row_per_block_is_diagonal_scaling(dominant_system):
    A, rhs, x_old = dominant_system
    with BlockOperator(as_dense_matrix(A, 12), 12, use_numba=False) as op:
        np.testing.assert_allclose(op.relax(x_old, rhs), rhs / np.diag(A), rtol=1e-13)


def test_thread_pool_and_prange_agree():
    A = as_dense_matrix(random_dominant_matrix(30, seed=5), 30)
    rng = np.random.default_rng(11)
    rhs, x_old = rng.normal(size=30), rng.normal(size=30)

    with BlockOperator(A, 6, use_numba=False, num_threads=3) as pooled:
        x_pool = pooled.relax(x_old, rhs)
    x_numba = BlockOperator(A, 6, use_numba=True).relax(x_old, rhs)

    np.testing.assert_allclose(x_pool, x_numba, rtol=1e-12, atol=1e-12)


@pytest.mark.parametrize("use_numba", [True, False])
def test_zero_pivot_raises(use_numba):
    A = random_dominant_matrix(6, seed=1)
    A[4, 4] = 0.0
    with BlockOperator(as_dense_matrix(A, 6), 3, use_numba=use_numba) as op:
        with pytest.raises(NumericalError, match="row 4"):
            op.relax(np.zeros(6), np.ones(6))


def test_near_zero_pivot_with_tolerance():
    A = random_dominant_matrix(4, seed=2)
    A[0, 0] = 1e-14
    op = BlockOperator(as_dense_matrix(A, 4), 2, pivot_tol=1e-12)
    with pytest.raises(NumericalError):
        op.relax(np.zeros(4), np.ones(4))


def test_pool_is_released_on_close(dominant_system):
    A, rhs, x_old = dominant_system
    op = BlockOperator(as_dense_matrix(A, 12), 4, use_numba=False)
    first = op.relax(x_old, rhs)
    op.close()
    assert op._pool is None
    # A closed operator starts a new pool on demand
    np.testing.assert_array_equal(op.relax(x_old, rhs), first)
    op.close()


def test_properties():
    op = BlockOperator(as_dense_matrix(np.eye(10), 10), 3)
    assert op.n == 10
    assert op.nblocks == 3
    np.testing.assert_array_equal(op.offsets, [0, 4, 7, 10])
    assert not op.offsets.flags.writeable


@pytest.mark.parametrize("use_numba", [True, False])
@pytest.mark.parametrize("nblocks", [1, 2])
def test_relax_integer_inputs_are_not_truncated(use_numba, nblocks):
    A = as_dense_matrix([10, -1, 0, 0, -1, 11, 0, 0, 0, 0, 10, -1, 0, 0, -1, 8], 4)
    rhs_int = np.array([6, 25, -11, 15])
    x_int = np.zeros(4, dtype=np.int64)

    with BlockOperator(A, nblocks, use_numba=use_numba) as op:
        x_new = op.relax(x_int, rhs_int)
        expected = op.relax(np.zeros(4), rhs_int.astype(np.float64))

    assert x_new.dtype == np.float64
    np.testing.assert_allclose(x_new, expected, rtol=1e-15)
    np.testing.assert_allclose(x_new[0], 0.6)


@pytest.mark.parametrize("use_numba", [True, False])
def test_full_sweep_integer_inputs_are_not_truncated(use_numba):
    A = as_dense_matrix([10, -1, 0, 0, -1, 11, 0, 0, 0, 0, 10, -1, 0, 0, -1, 8], 4)
    x_new = FullSweep(A, use_numba=use_numba)(np.zeros(4, dtype=np.int64), np.array([6, 25, -11, 15]))

    assert x_new.dtype == np.float64
    np.testing.assert_allclose(x_new, [0.6, 25.6 / 11.0, -1.1, 13.9 / 8.0], rtol=1e-14)
