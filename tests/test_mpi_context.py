import numpy as np
import pytest

from Jacobi import MPIJacobiSliced, create_context, example_2x2, make_task

MPI = pytest.importorskip("mpi4py.MPI")


def test_world_context_solves_example():
    context = create_context("mpi")
    assert context.get_name() == "mpi"
    A, b = example_2x2()
    task = make_task(A, b, is_root=context.is_root)
    solver = MPIJacobiSliced(task, context, tolerance=1e-10)
    results = solver.solve()
    assert results.converged
    if context.is_root:
        np.testing.assert_allclose(solver.x, [1 / 11, 7 / 11], atol=1e-9)


def test_allreduce_max_on_world():
    context = create_context("mpi", MPI.COMM_WORLD)
    np.testing.assert_array_equal(context.allreduce_max(np.array([1.0, 2.0])), [1.0, 2.0])
