"""
Torch Backend

Implements the verification Backend with torch tensors as device buffers.
On CUDA, queues are streams and completion is tracked with CUDA events; on
other devices queues execute eagerly and their events are already complete.
"""

import contextlib
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

import numpy as np
import torch

from verification.backend import AccessMode, Backend, Status
from verification.params import ElementType, effective_length, logical_indices

logger = logging.getLogger(__name__)


@dataclass
class HostQueue:
    """Execution queue for devices without streams; work runs eagerly"""
    index: int

    def synchronize(self) -> None:
        pass


class HostEvent:
    """Event of an eagerly executed queue, complete on creation"""

    def query(self) -> bool:
        return True

    def synchronize(self) -> None:
        pass


@dataclass
class DeviceBuffer:
    tensor: Optional[torch.Tensor] = field(repr=False)
    access: AccessMode
    dtype: np.dtype

    @property
    def released(self) -> bool:
        return self.tensor is None

    def numel(self) -> int:
        return 0 if self.tensor is None else self.tensor.numel()


class TorchBackend(Backend):
    """
    Backend over a torch device.

    Args:
        device: torch device (default: 'cuda' when available, else 'cpu')
        max_queues: number of execution queues exposed
        supports_double: override double precision support, e.g. to
            emulate a capability-limited device
    """

    def __init__(self, device=None, max_queues: int = 4, supports_double: Optional[bool] = None):
        if device is None:
            device = 'cuda' if torch.cuda.is_available() else 'cpu'
        self.device = torch.device(device)
        if max_queues < 1:
            raise ValueError(f"max_queues must be at least 1, got {max_queues}")
        if self.device.type == 'cuda':
            self._queues = [torch.cuda.Stream(device=self.device) for _ in range(max_queues)]
        else:
            self._queues = [HostQueue(i) for i in range(max_queues)]
        if supports_double is None:
            # MPS has no float64
            supports_double = self.device.type != 'mps'
        self._supports_double = supports_double

    def supports(self, element_type: ElementType) -> bool:
        if element_type.is_double:
            return self._supports_double
        return True

    def create_buffer(self, host: np.ndarray, access: AccessMode) -> Optional[DeviceBuffer]:
        try:
            # Copy first: on CPU, from_numpy would alias the host array
            tensor = torch.from_numpy(host.copy()).to(self.device)
        except (RuntimeError, MemoryError) as e:
            # torch.cuda.OutOfMemoryError is a RuntimeError
            logger.warning("Buffer creation of %d bytes failed: %s", host.nbytes, e)
            return None
        return DeviceBuffer(tensor=tensor, access=access, dtype=host.dtype)

    def queues(self) -> Sequence[Any]:
        return list(self._queues)

    def wait_all(self, events: Sequence[Any]) -> Status:
        for event in events:
            if event is None:
                return Status.INVALID_EVENT
            try:
                event.synchronize()
            except RuntimeError as e:
                logger.error("Waiting for event failed: %s", e)
                return Status.EXEC_STATUS_ERROR
        return Status.SUCCESS

    def read_buffer(self, handle: DeviceBuffer, host: np.ndarray, queue: Any) -> Status:
        if handle.released:
            return Status.INVALID_MEM_OBJECT
        if handle.numel() != host.size:
            return Status.INVALID_VALUE
        try:
            if isinstance(queue, torch.cuda.Stream):
                queue.synchronize()
            host[...] = handle.tensor.cpu().numpy()
        except RuntimeError as e:
            logger.error("Reading buffer failed: %s", e)
            return Status.OUT_OF_RESOURCES
        return Status.SUCCESS

    def release(self, handle: DeviceBuffer) -> None:
        handle.tensor = None


def _on_queue(queue):
    if isinstance(queue, torch.cuda.Stream):
        return torch.cuda.stream(queue)
    return contextlib.nullcontext()


def _record_event(queue):
    if isinstance(queue, torch.cuda.Stream):
        event = torch.cuda.Event()
        event.record(queue)
        return event
    return HostEvent()


def _retain_on_queue(queue, *tensors):
    # Tensors allocated on the current stream must outlive their use on a side stream
    if isinstance(queue, torch.cuda.Stream):
        for t in tensors:
            t.record_stream(queue)


def _drain(queues):
    for queue in queues:
        try:
            queue.synchronize()
        except RuntimeError as e:
            logger.error("Draining queue after failed dispatch: %s", e)


def torch_axpy(
    n: int,
    alpha,
    buf_x: DeviceBuffer,
    off_x: int,
    incx: int,
    buf_y: DeviceBuffer,
    off_y: int,
    incy: int,
    queues: Sequence[Any],
    events: List[Any]
) -> Status:
    """
    Y := alpha*X + Y on the device, split across the supplied queues.

    The logical elements are partitioned into one contiguous slice per queue
    and events[k] is set when queue k's slice has been submitted.
    """
    if not queues or len(events) < len(queues):
        return Status.INVALID_COMMAND_QUEUE
    if n < 0 or incx == 0 or incy == 0 or off_x < 0 or off_y < 0:
        return Status.INVALID_VALUE
    if buf_x.released or buf_y.released or buf_y.access == AccessMode.READ_ONLY:
        return Status.INVALID_MEM_OBJECT
    if (off_x + effective_length(n, incx) > buf_x.numel()
            or off_y + effective_length(n, incy) > buf_y.numel()):
        return Status.INSUFFICIENT_MEM_OBJECT

    x, y = buf_x.tensor, buf_y.tensor
    ix_parts = np.array_split(logical_indices(n, off_x, incx), len(queues))
    iy_parts = np.array_split(logical_indices(n, off_y, incy), len(queues))

    dispatched = []
    try:
        alpha_t = torch.from_numpy(np.asarray(alpha, dtype=buf_y.dtype)).to(y.device)
        current = torch.cuda.current_stream(y.device) if y.is_cuda else None
        for k, queue in enumerate(queues):
            if current is not None:
                queue.wait_stream(current)
            dispatched.append(queue)
            _retain_on_queue(queue, x, y, alpha_t)
            with _on_queue(queue):
                if len(iy_parts[k]):
                    ix = torch.from_numpy(ix_parts[k]).to(y.device)
                    iy = torch.from_numpy(iy_parts[k]).to(y.device)
                    # Multiply then add, no fused multiply-add
                    y[iy] = alpha_t * x[ix] + y[iy]
                events[k] = _record_event(queue)
    except RuntimeError as e:
        logger.error("AXPY dispatch failed: %s", e)
        # No queue may still be writing Y once the caller releases the buffers
        _drain(dispatched)
        return Status.OUT_OF_RESOURCES
    return Status.SUCCESS
