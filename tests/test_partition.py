import numpy as np
import pytest

from LinSys import InvalidConfiguration, block_ranges, block_sizes, compute_offsets


@pytest.mark.parametrize("n", [1, 2, 3, 7, 10, 16, 33])
def test_offsets_invariants(n):
    for nblocks in range(1, n + 1):
        offsets = compute_offsets(n, nblocks)
        sizes = block_sizes(offsets)

        assert len(offsets) == nblocks + 1
        assert offsets[0] == 0
        assert offsets[-1] == n
        assert np.all(sizes > 0)
        assert sizes.max() - sizes.min() <= 1
        # Larger blocks come first
        assert np.all(sizes[: n % nblocks] == n // nblocks + 1)
        assert np.all(sizes[n % nblocks :] == n // nblocks)


def test_offsets_example():
    np.testing.assert_array_equal(compute_offsets(10, 3), [0, 4, 7, 10])
    np.testing.assert_array_equal(compute_offsets(4, 4), [0, 1, 2, 3, 4])
    np.testing.assert_array_equal(compute_offsets(5, 1), [0, 5])


def test_offsets_deterministic():
    np.testing.assert_array_equal(compute_offsets(101, 7), compute_offsets(101, 7))


def test_block_ranges_cover_rows_once():
    offsets = compute_offsets(11, 4)
    rows = [i for at, to in block_ranges(offsets) for i in range(at, to)]
    assert rows == list(range(11))


@pytest.mark.parametrize("n, nblocks", [(5, 0), (5, -1), (5, 6), (0, 1)])
def test_offsets_rejects_invalid(n, nblocks):
    with pytest.raises(InvalidConfiguration):
        compute_offsets(n, nblocks)
