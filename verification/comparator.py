"""
Result Comparison

Element-wise, stride/offset-aware comparison of a reference vector against
the accelerator's result with a precision-scaled tolerance.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from .params import ElementType, logical_indices


@dataclass(frozen=True)
class Tolerances:
    """An element passes when |actual - expected| <= atol + rtol * |expected|"""
    atol: float
    rtol: float

    def to_dict(self) -> Dict[str, float]:
        return {'atol': float(self.atol), 'rtol': float(self.rtol)}


_SINGLE_TOL = Tolerances(atol=1e-6, rtol=1e-6)
_DOUBLE_TOL = Tolerances(atol=1e-12, rtol=1e-12)

DEFAULT_TOLERANCES: Dict[ElementType, Tolerances] = {
    ElementType.SINGLE: _SINGLE_TOL,
    ElementType.COMPLEX: _SINGLE_TOL,
    ElementType.DOUBLE: _DOUBLE_TOL,
    ElementType.DOUBLE_COMPLEX: _DOUBLE_TOL,
}


def tolerances_for(element_type: ElementType) -> Tolerances:
    return DEFAULT_TOLERANCES[element_type]


@dataclass
class Divergence:
    """One logical element outside tolerance"""
    index: int        # logical index i in [0, N)
    position: int     # storage position offset + i*stride
    expected: complex
    actual: complex
    abs_error: float

    def to_dict(self) -> Dict:
        return {
            'index': self.index,
            'position': self.position,
            'expected': str(self.expected),
            'actual': str(self.actual),
            'abs_error': self.abs_error,
        }


@dataclass
class ComparisonResult:
    ok: bool
    num_compared: int
    num_failures: int
    max_abs_error: float
    tolerances: Tolerances
    divergences: List[Divergence] = field(default_factory=list)

    @property
    def first_divergence(self) -> Optional[Divergence]:
        return self.divergences[0] if self.divergences else None

    def summary(self) -> str:
        if self.ok:
            return f"{self.num_compared} elements match (max abs error {self.max_abs_error:.2e})"
        first = self.first_divergence
        return (
            f"{self.num_failures}/{self.num_compared} elements diverge; first at "
            f"index {first.index} (position {first.position}): expected {first.expected}, "
            f"got {first.actual} (abs error {first.abs_error:.2e}, "
            f"atol {self.tolerances.atol:g}, rtol {self.tolerances.rtol:g})"
        )


def _components(values: np.ndarray) -> List[np.ndarray]:
    if np.iscomplexobj(values):
        return [values.real, values.imag]
    return [values]


def compare_vectors(
    expected: np.ndarray,
    actual: np.ndarray,
    n: int,
    offset: int,
    stride: int,
    tolerances: Tolerances,
    max_divergences: Optional[int] = 1
) -> ComparisonResult:
    """
    Compare the n logical elements of two identically laid-out vectors.

    Nothing outside the logical index set is read. Complex components are
    checked independently. max_divergences limits how many divergences are
    reported (None reports all of them).
    """
    positions = logical_indices(n, offset, stride)
    exp = expected[positions]
    act = actual[positions]

    bad = np.zeros(n, dtype=bool)
    max_abs_error = 0.0
    for e, a in zip(_components(exp), _components(act)):
        e = e.astype(np.float64)
        a = a.astype(np.float64)
        with np.errstate(invalid='ignore', over='ignore'):
            diff = np.abs(a - e)
            within = diff <= tolerances.atol + tolerances.rtol * np.abs(e)
        # NaN only matches NaN; matching infinities are equal
        both_nan = np.isnan(e) & np.isnan(a)
        within = within | both_nan | (e == a)
        bad |= ~within
        finite = np.isfinite(diff)
        if finite.any():
            max_abs_error = max(max_abs_error, float(diff[finite].max()))

    bad_indices = np.flatnonzero(bad)
    if max_divergences is not None:
        bad_indices = bad_indices[:max_divergences]

    divergences = [
        Divergence(
            index=int(i),
            position=int(positions[i]),
            expected=exp[i].item(),
            actual=act[i].item(),
            abs_error=float(np.abs(act[i].astype(np.complex128) - exp[i].astype(np.complex128))),
        )
        for i in bad_indices
    ]

    num_failures = int(bad.sum())
    return ComparisonResult(
        ok=num_failures == 0,
        num_compared=n,
        num_failures=num_failures,
        max_abs_error=max_abs_error,
        tolerances=tolerances,
        divergences=divergences,
    )
