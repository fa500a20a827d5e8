"""
Backend Abstraction

The harness talks to the accelerator only through this interface, so any
device layer (or a fake one in tests) can be plugged in.
"""

from abc import ABC, abstractmethod
from enum import Enum, IntEnum
from typing import Any, Optional, Sequence

import numpy as np

from .params import ElementType


class Status(IntEnum):
    """Status codes returned by kernels and backends (OpenCL numbering)"""
    SUCCESS = 0
    OUT_OF_RESOURCES = -5
    OUT_OF_HOST_MEMORY = -6
    EXEC_STATUS_ERROR = -14
    INVALID_VALUE = -30
    INVALID_COMMAND_QUEUE = -36
    INVALID_MEM_OBJECT = -38
    INVALID_EVENT = -58
    INSUFFICIENT_MEM_OBJECT = -1008


class AccessMode(Enum):
    READ_ONLY = "read_only"
    READ_WRITE = "read_write"


class Backend(ABC):
    """Capabilities the harness needs from an accelerator backend"""

    @abstractmethod
    def supports(self, element_type: ElementType) -> bool:
        """Whether the device natively supports the element type's precision"""
        pass

    @abstractmethod
    def create_buffer(self, host: np.ndarray, access: AccessMode) -> Optional[Any]:
        """
        Create a device buffer initialised from a host array.

        Returns an opaque handle, or None when the buffer cannot be created
        (typically the device is out of memory).
        """
        pass

    @abstractmethod
    def queues(self) -> Sequence[Any]:
        """Ordered execution queues available on the device"""
        pass

    @abstractmethod
    def wait_all(self, events: Sequence[Any]) -> Status:
        """Block until every event has completed"""
        pass

    @abstractmethod
    def read_buffer(self, handle: Any, host: np.ndarray, queue: Any) -> Status:
        """Blocking copy of a whole device buffer into a host array"""
        pass

    @abstractmethod
    def release(self, handle: Any) -> None:
        pass
