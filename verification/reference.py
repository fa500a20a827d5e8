"""
Host reference implementation of AXPY (ground truth).
"""

from typing import Union

import numpy as np

from .params import ElementType, logical_indices


def convert_multiplier(alpha: Union[float, complex], element_type: ElementType):
    """Convert a descriptor's scalar to the element type (real types keep the real part)."""
    if element_type.is_complex:
        return element_type.dtype.type(complex(alpha))
    return element_type.dtype.type(complex(alpha).real)


def reference_axpy(
    n: int,
    alpha,
    x: np.ndarray,
    off_x: int,
    incx: int,
    y: np.ndarray,
    off_y: int,
    incy: int
) -> None:
    """y[off_y + i*incy] = alpha * x[off_x + i*incx] + y[off_y + i*incy], in place."""
    if n <= 0:
        return
    ix = logical_indices(n, off_x, incx)
    iy = logical_indices(n, off_y, incy)
    alpha = y.dtype.type(alpha)
    y[iy] = alpha * x[ix] + y[iy]
