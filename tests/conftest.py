from __future__ import annotations

import sys
from pathlib import Path

# Ensure repo root is importable for all tests, regardless of nested test layout.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dataclasses import dataclass, field
from typing import List

import numpy as np
import pytest

from verification.backend import AccessMode, Backend, Status
from verification.buffers import HostAllocator
from verification.params import ElementType
from verification.reference import reference_axpy


@dataclass
class FakeBuffer:
    data: np.ndarray
    access: AccessMode
    released: bool = False


@dataclass
class FakeEvent:
    queue: str


class FakeBackend(Backend):
    """numpy-backed backend that records every call"""

    def __init__(self, num_queues=4, supports_double=True, fail_buffer_at=None,
                 wait_status=Status.SUCCESS, read_status=Status.SUCCESS):
        self.num_queues = num_queues
        self.supports_double = supports_double
        self.fail_buffer_at = fail_buffer_at
        self.wait_status = wait_status
        self.read_status = read_status
        self.created: List[FakeBuffer] = []
        self.released: List[FakeBuffer] = []
        self.capability_queries = 0
        self.waited_events = None

    def supports(self, element_type):
        self.capability_queries += 1
        return self.supports_double or not element_type.is_double

    def create_buffer(self, host, access):
        if self.fail_buffer_at is not None and len(self.created) == self.fail_buffer_at:
            return None
        buf = FakeBuffer(data=host.copy(), access=access)
        self.created.append(buf)
        return buf

    def queues(self):
        return [f"queue{i}" for i in range(self.num_queues)]

    def wait_all(self, events):
        self.waited_events = list(events)
        if any(e is None for e in events):
            return Status.INVALID_EVENT
        return self.wait_status

    def read_buffer(self, handle, host, queue):
        assert not handle.released, "read after release"
        if self.read_status != Status.SUCCESS:
            return self.read_status
        host[...] = handle.data
        return Status.SUCCESS

    def release(self, handle):
        assert not handle.released, "double release"
        handle.released = True
        self.released.append(handle)

    @property
    def balanced(self):
        return len(self.created) == len(self.released)


class CountingAllocator(HostAllocator):
    """Counts host allocations and frees; can fail the k-th allocation"""

    def __init__(self, fail_at=None):
        self.fail_at = fail_at
        self.allocated = 0
        self.freed = 0

    def allocate(self, length, dtype):
        if self.fail_at is not None and self.allocated == self.fail_at:
            raise MemoryError("simulated host exhaustion")
        self.allocated += 1
        return super().allocate(length, dtype)

    def free(self, array):
        self.freed += 1


class FakeKernel:
    """Correct kernel: runs the reference on the buffers and fills every event"""

    def __init__(self, status=Status.SUCCESS, corrupt=False):
        self.status = status
        self.corrupt = corrupt
        self.calls = []

    def __call__(self, n, alpha, buf_x, off_x, incx, buf_y, off_y, incy, queues, events):
        self.calls.append({'n': n, 'alpha': alpha, 'queues': list(queues)})
        if self.status != Status.SUCCESS:
            return self.status
        assert buf_x.access == AccessMode.READ_ONLY
        assert buf_y.access == AccessMode.READ_WRITE
        reference_axpy(n, alpha, buf_x.data, off_x, incx, buf_y.data, off_y, incy)
        if self.corrupt and n > 0:
            pos = off_y if incy > 0 else off_y + (n - 1) * -incy
            buf_y.data[pos] += 1
        for k, queue in enumerate(queues):
            events[k] = FakeEvent(queue)
        return Status.SUCCESS


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def kernel():
    return FakeKernel()


@pytest.fixture
def allocator():
    return CountingAllocator()


ALL_TYPES = list(ElementType)
