"""Shared fixtures: an in-process transport that simulates several ranks with threads."""

from __future__ import annotations

import copy
import os
import threading

import numpy as np
import pytest

from Jacobi.communication import CommContext

# Newer MLflow refuses file:// tracking stores unless explicitly allowed.
os.environ.setdefault("MLFLOW_ALLOW_FILE_STORE", "true")


class ThreadedGroup:
    """State shared by the simulated ranks of one group."""

    def __init__(self, size: int, timeout: float = 30.0):
        self.size = size
        self.barrier = threading.Barrier(size, timeout=timeout)
        self.slots = [None] * size


class ThreadedContext(CommContext):
    """Each collective: publish a snapshot, wait for everyone, read, wait again."""

    def __init__(self, group: ThreadedGroup, rank: int):
        super().__init__(rank=rank, size=group.size)
        self.group = group

    def _exchange(self, obj):
        group = self.group
        group.slots[self.rank] = copy.deepcopy(obj)
        group.barrier.wait()
        values = list(group.slots)
        group.barrier.wait()
        return values

    def bcast(self, obj):
        return copy.deepcopy(self._exchange(obj)[self.root])

    def allgather(self, obj):
        return copy.deepcopy(self._exchange(obj))

    def scatter_rows(self, sendbuf, counts, displs, recvbuf):
        root_buf = self._exchange(sendbuf if self.is_root else None)[self.root]
        start = displs[self.rank]
        recvbuf[:] = root_buf[start : start + counts[self.rank]]

    def allgather_slices(self, local, counts, displs, out):
        for rank, piece in enumerate(self._exchange(local)):
            out[displs[rank] : displs[rank] + counts[rank]] = piece

    def gather_slices(self, local, counts, displs, out):
        pieces = self._exchange(local)
        if self.is_root:
            for rank, piece in enumerate(pieces):
                out[displs[rank] : displs[rank] + counts[rank]] = piece

    def allreduce_max(self, values):
        return np.max(np.stack(self._exchange(np.asarray(values, dtype=np.float64))), axis=0)

    def barrier(self):
        self.group.barrier.wait()

    def get_name(self) -> str:
        return "threaded"


def run_ranks(size, fn, return_exceptions=False):
    """Run ``fn(context)`` on ``size`` simulated ranks and collect per-rank results.

    With ``return_exceptions`` the raised exception takes the place of a
    rank's result; otherwise the lowest-rank exception is re-raised.
    """
    group = ThreadedGroup(size)
    results = [None] * size
    errors = [None] * size

    def target(rank):
        try:
            results[rank] = fn(ThreadedContext(group, rank))
        except BaseException as exc:
            errors[rank] = exc

    threads = [threading.Thread(target=target, args=(rank,)) for rank in range(size)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    if return_exceptions:
        return [err if err is not None else res for res, err in zip(results, errors)]
    for err in errors:
        if err is not None:
            raise err
    return results


@pytest.fixture
def ranks():
    return run_ranks
