import numpy as np
import pytest

from Jacobi import Partitioner, TaskData, counts_displs, decompose_rows


@pytest.mark.parametrize("n,size", [(10, 1), (10, 3), (7, 7), (5, 8), (1000, 6)])
def test_decompose_rows_covers_range_once(n, size):
    parts = decompose_rows(n, size)
    assert len(parts) == size
    assert parts[0].start == 0 and parts[-1].end == n
    for left, right in zip(parts, parts[1:]):
        assert left.end == right.start
    sizes = [p.size for p in parts]
    assert sum(sizes) == n
    assert max(sizes) - min(sizes) <= 1


def test_decompose_rows_extra_rows_go_first():
    sizes = [p.size for p in decompose_rows(10, 4)]
    assert sizes == [3, 3, 2, 2]


def test_more_ranks_than_rows_leaves_empty_partitions():
    parts = decompose_rows(2, 4)
    assert [p.size for p in parts] == [1, 1, 0, 0]
    assert parts[3].start == parts[3].end == 2


def test_decompose_rows_rejects_zero_ranks():
    with pytest.raises(ValueError):
        decompose_rows(4, 0)


def test_counts_displs_scale_with_width():
    counts, displs = counts_displs(decompose_rows(5, 2), width=5)
    assert counts.tolist() == [15, 10]
    assert displs.tolist() == [0, 15]


@pytest.mark.parametrize("size", [1, 4])
def test_counts_displs_rejects_32bit_overflow(size):
    counts, _ = counts_displs(decompose_rows(46340, size), width=46340)
    assert int(counts.sum()) == 46340 * 46340
    with pytest.raises(ValueError, match="32-bit MPI count limit"):
        counts_displs(decompose_rows(46341, size), width=46341)


def test_distribute_sends_matching_rows(ranks):
    n = 7
    A = np.arange(n * n, dtype=float).reshape(n, n)
    b = np.arange(n, dtype=float)

    def work(ctx):
        task = TaskData(n=n, matrix=A, rhs=b, out=np.zeros(n)) if ctx.is_root else TaskData()
        return Partitioner(ctx).distribute(task)

    locals_ = ranks(3, work)
    for local in locals_:
        p = local.partition
        assert local.n == n
        np.testing.assert_array_equal(local.A_local, A[p.start : p.end])
        np.testing.assert_array_equal(local.b_local, b[p.start : p.end])
        np.testing.assert_array_equal(local.diag_local, np.diagonal(A)[p.start : p.end])
    assert [l.partition.size for l in locals_] == [3, 2, 2]
