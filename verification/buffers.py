"""
Buffer Lifecycle Management

Host arrays and accelerator buffers are acquired through a single
ExitStack, so every resource is released exactly once on every exit path
(pass, skip, failure or unexpected exception) in reverse acquisition order.
"""

import logging
from contextlib import ExitStack
from typing import Any

import numpy as np

from .backend import AccessMode, Backend
from .errors import BufferCreationError, HostAllocationError

logger = logging.getLogger(__name__)


class HostAllocator:
    """Allocates host arrays; subclass to instrument or to inject failures"""

    def allocate(self, length: int, dtype: np.dtype) -> np.ndarray:
        return np.zeros(length, dtype=dtype)

    def free(self, array: np.ndarray) -> None:
        pass


class BufferLifecycleManager:
    """
    Scoped owner of the host arrays and device buffers of one test case.

    Usage:
        with BufferLifecycleManager(backend) as buffers:
            x = buffers.allocate_host(n, np.float32)
            buf_x = buffers.create_buffer(x, AccessMode.READ_ONLY)
            ...
    """

    def __init__(self, backend: Backend, host_allocator: HostAllocator = None):
        self.backend = backend
        self.host_allocator = host_allocator or HostAllocator()
        self._stack = ExitStack()
        self.host_allocations = 0
        self.host_releases = 0
        self.buffers_created = 0
        self.buffers_released = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def allocate_host(self, length: int, dtype) -> np.ndarray:
        try:
            array = self.host_allocator.allocate(length, np.dtype(dtype))
        except MemoryError as e:
            raise HostAllocationError(
                f"Cannot allocate memory on host side ({length} x {np.dtype(dtype).name})"
            ) from e
        self.host_allocations += 1
        self._stack.callback(self._free_host, array)
        return array

    def create_buffer(self, host: np.ndarray, access: AccessMode) -> Any:
        try:
            handle = self.backend.create_buffer(host, access)
        except MemoryError as e:
            raise BufferCreationError(
                f"Failed to create/enqueue buffer of {host.nbytes} bytes: {e}"
            ) from e
        if handle is None:
            # Most probable reason is a vector too big for the device
            raise BufferCreationError(
                f"Failed to create/enqueue buffer of {host.nbytes} bytes; "
                "data is not transferred to the device"
            )
        self.buffers_created += 1
        self._stack.callback(self._release_buffer, handle)
        return handle

    def release(self) -> None:
        """Release everything acquired so far; safe to call more than once."""
        self._stack.close()

    @property
    def balanced(self) -> bool:
        return (self.host_allocations == self.host_releases
                and self.buffers_created == self.buffers_released)

    def _free_host(self, array: np.ndarray) -> None:
        self.host_allocator.free(array)
        self.host_releases += 1

    def _release_buffer(self, handle: Any) -> None:
        self.backend.release(handle)
        self.buffers_released += 1
        logger.debug("Released device buffer %r", handle)
