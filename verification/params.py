"""
Parameter Descriptors for AXPY Correctness Tests

Describes one test case (sizes, strides, offsets, scalar, seed, queue count)
and the element types the harness is instantiated for.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

import numpy as np


class ElementType(Enum):
    """Element types supported by the harness, keyed by BLAS prefix"""
    SINGLE = "s"
    DOUBLE = "d"
    COMPLEX = "c"
    DOUBLE_COMPLEX = "z"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(_DTYPES[self])

    @property
    def real_dtype(self) -> np.dtype:
        return np.finfo(self.dtype).dtype

    @property
    def is_double(self) -> bool:
        return self in (ElementType.DOUBLE, ElementType.DOUBLE_COMPLEX)

    @property
    def is_complex(self) -> bool:
        return self in (ElementType.COMPLEX, ElementType.DOUBLE_COMPLEX)

    @property
    def routine(self) -> str:
        return f"{self.value}axpy"


_DTYPES = {
    ElementType.SINGLE: np.float32,
    ElementType.DOUBLE: np.float64,
    ElementType.COMPLEX: np.complex64,
    ElementType.DOUBLE_COMPLEX: np.complex128,
}


def effective_length(n: int, inc: int) -> int:
    """Number of storage elements spanned by n logical elements with stride inc."""
    if n <= 0:
        return 0
    return 1 + (n - 1) * abs(inc)


def logical_indices(n: int, offset: int, inc: int) -> np.ndarray:
    """
    Storage positions of the n logical elements of a strided vector.

    Follows the BLAS convention: a negative stride walks the vector backwards,
    so element 0 sits at the far end of the span.
    """
    steps = np.arange(n, dtype=np.int64)
    if inc > 0:
        return offset + steps * inc
    return offset + (n - 1 - steps) * (-inc)


@dataclass(frozen=True)
class AxpyParams:
    """Immutable description of a single AXPY test case"""
    n: int
    alpha: Union[float, complex] = 1.0
    incx: int = 1
    off_x: int = 0
    incy: int = 1
    off_y: int = 0
    num_queues: int = 1
    seed: int = 0

    def __post_init__(self):
        if self.n < 0:
            raise ValueError(f"n must be non-negative, got {self.n}")
        if self.incx == 0 or self.incy == 0:
            raise ValueError(f"strides must be non-zero, got incx={self.incx}, incy={self.incy}")
        if self.off_x < 0 or self.off_y < 0:
            raise ValueError(f"offsets must be non-negative, got off_x={self.off_x}, off_y={self.off_y}")
        if self.num_queues < 1:
            raise ValueError(f"num_queues must be at least 1, got {self.num_queues}")

    @property
    def length_x(self) -> int:
        return effective_length(self.n, self.incx)

    @property
    def length_y(self) -> int:
        return effective_length(self.n, self.incy)

    @property
    def alloc_x(self) -> int:
        return self.length_x + self.off_x

    @property
    def alloc_y(self) -> int:
        return self.length_y + self.off_y

    def indices_x(self) -> np.ndarray:
        return logical_indices(self.n, self.off_x, self.incx)

    def indices_y(self) -> np.ndarray:
        return logical_indices(self.n, self.off_y, self.incy)

    def describe(self) -> str:
        return (
            f"N = {self.n}, alpha = {self.alpha}, "
            f"offBX = {self.off_x}, incx = {self.incx}, "
            f"offCY = {self.off_y}, incy = {self.incy}, "
            f"queues = {self.num_queues}, seed = {self.seed}"
        )

    def to_dict(self):
        return {
            'n': self.n,
            'alpha': str(self.alpha),
            'incx': self.incx,
            'off_x': self.off_x,
            'incy': self.incy,
            'off_y': self.off_y,
            'num_queues': self.num_queues,
            'seed': self.seed,
        }
