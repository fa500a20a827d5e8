"""
Torch implementation of the AXPY system under test.

Provides a verification Backend over a torch device and an AXPY kernel that
dispatches over several execution queues, so the harness can be run end to
end on CUDA or CPU.
"""

from .torch_backend import DeviceBuffer, HostEvent, HostQueue, TorchBackend, torch_axpy

__all__ = [
    'DeviceBuffer',
    'HostEvent',
    'HostQueue',
    'TorchBackend',
    'torch_axpy',
]
