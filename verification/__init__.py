"""
Correctness Verification Harness for AXPY Kernels

Runs an accelerated Y := alpha*X + Y against a host reference across
vector lengths, strides, offsets, scalars, precisions and queue counts,
and classifies every case as pass, skip or failure.
"""

from .backend import AccessMode, Backend, Status
from .buffers import BufferLifecycleManager, HostAllocator
from .capability import check_capability
from .comparator import ComparisonResult, Divergence, Tolerances, compare_vectors
from .errors import (BufferCreationError, CorrectnessFailure, EnvironmentSkip,
                     ExecutionFailure, HostAllocationError, InsufficientQueues,
                     TransferWarning, UnsupportedPrecision, VerificationError)
from .generators import ParamsGenerator, RandomVectorGenerator, ValueDistribution
from .outcome import Outcome, OutcomeKind, OutcomeTally
from .params import AxpyParams, ElementType, effective_length, logical_indices
from .reference import convert_multiplier, reference_axpy
from .scenarios import BoundaryScenario, QueueScenario, RandomScenario, StrideScenario, TestScenario
from .verification_engine import (VerificationEngine, axpy_correctness_test, caxpy_correctness,
                                  daxpy_correctness, saxpy_correctness, zaxpy_correctness)

__all__ = [
    'AccessMode',
    'Backend',
    'Status',
    'BufferLifecycleManager',
    'HostAllocator',
    'check_capability',
    'ComparisonResult',
    'Divergence',
    'Tolerances',
    'compare_vectors',
    'VerificationError',
    'EnvironmentSkip',
    'UnsupportedPrecision',
    'HostAllocationError',
    'BufferCreationError',
    'InsufficientQueues',
    'ExecutionFailure',
    'CorrectnessFailure',
    'TransferWarning',
    'ParamsGenerator',
    'RandomVectorGenerator',
    'ValueDistribution',
    'Outcome',
    'OutcomeKind',
    'OutcomeTally',
    'AxpyParams',
    'ElementType',
    'effective_length',
    'logical_indices',
    'convert_multiplier',
    'reference_axpy',
    'TestScenario',
    'BoundaryScenario',
    'StrideScenario',
    'QueueScenario',
    'RandomScenario',
    'VerificationEngine',
    'axpy_correctness_test',
    'saxpy_correctness',
    'daxpy_correctness',
    'caxpy_correctness',
    'zaxpy_correctness',
]
