import numpy as np
import pytest

from Jacobi import (
    MPIJacobiSliced,
    SequentialJacobi,
    ShapeError,
    SingularDiagonalError,
    SolverState,
    TaskData,
    example_2x2,
)
from Jacobi.communication import SerialContext
from Jacobi.validation import Validator, check_diagonal, check_shapes, is_diagonally_dominant


def test_check_shapes_accepts_consistent_sizes():
    check_shapes(3, 9, 3, 3)
    check_shapes(3, 9, 3, 10)


@pytest.mark.parametrize(
    "n,matrix_size,rhs_size,out_size",
    [(3, 8, 3, 3), (3, 9, 2, 3), (3, 9, 3, 2), (0, 0, 0, 0)],
)
def test_check_shapes_rejects_inconsistent_sizes(n, matrix_size, rhs_size, out_size):
    with pytest.raises(ShapeError):
        check_shapes(n, matrix_size, rhs_size, out_size)


def test_check_diagonal_reports_global_row():
    with pytest.raises(SingularDiagonalError) as info:
        check_diagonal(np.array([1.0, 0.0, 2.0]), offset=4)
    assert info.value.row == 5
    assert info.value.value == 0.0


def test_check_diagonal_epsilon_and_nan():
    with pytest.raises(SingularDiagonalError):
        check_diagonal(np.array([1.0, 1e-14]), epsilon=1e-12)
    with pytest.raises(SingularDiagonalError):
        check_diagonal(np.array([np.nan]))
    check_diagonal(np.array([-3.0, 1e-10]), epsilon=1e-12)


def test_is_diagonally_dominant():
    A, _ = example_2x2()
    assert is_diagonally_dominant(A)
    assert not is_diagonally_dominant(np.array([[1.0, 2.0], [0.0, 1.0]]))


def test_validator_missing_buffers_raise_shape_error():
    with pytest.raises(ShapeError):
        Validator(SerialContext()).validate(TaskData(n=2, matrix=np.eye(2), rhs=None, out=np.zeros(2)))


def test_shape_error_raised_before_any_iteration():
    A, b = example_2x2()
    solver = SequentialJacobi(TaskData(n=2, matrix=A, rhs=b, out=np.zeros(1)))
    with pytest.raises(ShapeError):
        solver.solve()
    assert solver.state is SolverState.UNINITIALIZED
    assert solver.iterations == 0


def test_zero_diagonal_raises_before_any_iteration():
    A = np.array([[0.0, 1.0], [1.0, 2.0]])
    solver = SequentialJacobi(TaskData(n=2, matrix=A, rhs=np.ones(2), out=np.zeros(2)))
    with pytest.raises(SingularDiagonalError) as info:
        solver.solve()
    assert info.value.row == 0
    assert solver.iterations == 0


def test_shape_error_raised_on_every_rank(ranks):
    A, b = example_2x2()

    def work(ctx):
        task = TaskData(n=3, matrix=A, rhs=b, out=np.zeros(3)) if ctx.is_root else TaskData()
        return MPIJacobiSliced(task, ctx).solve()

    outcomes = ranks(4, work, return_exceptions=True)
    assert all(isinstance(o, ShapeError) for o in outcomes)


def test_singular_diagonal_raised_on_every_rank(ranks):
    A = np.diag([1.0, 2.0, 3.0, 0.0])

    def work(ctx):
        task = TaskData(n=4, matrix=A, rhs=np.ones(4), out=np.zeros(4)) if ctx.is_root else TaskData()
        return MPIJacobiSliced(task, ctx).solve()

    outcomes = ranks(2, work, return_exceptions=True)
    assert all(isinstance(o, SingularDiagonalError) for o in outcomes)
    assert all(o.row == 3 for o in outcomes)


def test_workers_check_their_own_diagonal(ranks):
    A = np.diag([1.0, 2.0, 0.0, 4.0])

    def work(ctx):
        task = TaskData(n=4, matrix=A, rhs=np.ones(4), out=np.zeros(4)) if ctx.is_root else TaskData()
        solver = MPIJacobiSliced(task, ctx)
        # Skip the root-side validation to reach the per-rank check
        solver.state = SolverState.VALIDATED
        solver.initialize()

    outcomes = ranks(2, work, return_exceptions=True)
    assert all(isinstance(o, SingularDiagonalError) and o.row == 2 for o in outcomes)


def test_bytearray_out_receives_solution():
    A, b = example_2x2()
    out = bytearray(16)
    solver = SequentialJacobi(TaskData(n=2, matrix=A, rhs=b, out=out), tolerance=1e-10)
    assert solver.solve().converged
    np.testing.assert_allclose(np.frombuffer(out, dtype=np.float64), [1 / 11, 7 / 11], atol=1e-9)


@pytest.mark.parametrize(
    "out",
    [
        [0.0, 0.0],
        (0.0, 0.0),
        np.zeros(2, dtype=np.int64),
        np.zeros(2, dtype=np.float32),
        bytes(16),
        bytearray(15),
    ],
    ids=["list", "tuple", "int64", "float32", "bytes", "ragged-bytearray"],
)
def test_unusable_out_raises_shape_error(out):
    A, b = example_2x2()
    solver = SequentialJacobi(TaskData(n=2, matrix=A, rhs=b, out=out))
    with pytest.raises(ShapeError):
        solver.solve()
    assert solver.state is SolverState.UNINITIALIZED


def test_read_only_out_raises_shape_error():
    out = np.zeros(2)
    out.flags.writeable = False
    with pytest.raises(ShapeError, match="read-only"):
        Validator(SerialContext()).validate(TaskData(n=2, matrix=np.eye(2), rhs=np.ones(2), out=out))


@pytest.mark.parametrize("kind", ["read-only", "bytes", "list"])
def test_unusable_out_raised_on_every_rank(ranks, kind):
    A, b = example_2x2()

    def root_out():
        if kind == "bytes":
            return bytes(16)
        if kind == "list":
            return [0.0, 0.0]
        out = np.zeros(2)
        out.flags.writeable = False
        return out

    def work(ctx):
        task = TaskData(n=2, matrix=A, rhs=b, out=root_out()) if ctx.is_root else TaskData()
        return MPIJacobiSliced(task, ctx).solve()

    outcomes = ranks(3, work, return_exceptions=True)
    assert all(isinstance(o, ShapeError) for o in outcomes)
