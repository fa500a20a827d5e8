"""
Outcome Policy

Every test case resolves to exactly one of pass, skip or hard failure.
Skips are environmental and never count against the suite.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .backend import Status
from .comparator import ComparisonResult, Divergence
from .errors import CorrectnessFailure, EnvironmentSkip, ExecutionFailure
from .params import AxpyParams, ElementType


class OutcomeKind(Enum):
    PASS = "pass"
    SKIP = "skip"
    FAILURE = "failure"


@dataclass
class Outcome:
    kind: OutcomeKind
    element_type: ElementType
    params: AxpyParams
    reason: str = ""
    status: Optional[Status] = None
    stage: Optional[str] = None
    comparison: Optional[ComparisonResult] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.kind == OutcomeKind.PASS

    @property
    def skipped(self) -> bool:
        return self.kind == OutcomeKind.SKIP

    @property
    def failed(self) -> bool:
        return self.kind == OutcomeKind.FAILURE

    @property
    def divergences(self) -> List[Divergence]:
        return self.comparison.divergences if self.comparison else []

    @property
    def test_name(self) -> str:
        p = self.params
        return (f"{self.element_type.routine}[n={p.n},incx={p.incx},incy={p.incy},"
                f"offx={p.off_x},offy={p.off_y},q={p.num_queues}]")

    def diagnostic(self) -> str:
        """Human-readable report for non-pass outcomes"""
        lines = [f"{self.test_name}: {self.kind.value}"]
        if self.reason:
            lines.append(f"  reason: {self.reason}")
        for d in self.divergences:
            lines.append(f"  index {d.index} (position {d.position}): "
                         f"expected {d.expected}, got {d.actual}")
        for w in self.warnings:
            lines.append(f"  warning: {w}")
        lines.append(f"  params: {self.params.describe()}")
        return "\n".join(lines)

    def check(self) -> None:
        """Raise the error matching a non-pass outcome"""
        if self.kind == OutcomeKind.SKIP:
            raise EnvironmentSkip(self.reason)
        if self.kind == OutcomeKind.FAILURE:
            if self.comparison is not None and not self.comparison.ok:
                raise CorrectnessFailure(self.comparison, self.params)
            raise ExecutionFailure(self.stage or "execution", self.status)

    def to_dict(self) -> Dict:
        return {
            'test_name': self.test_name,
            'kind': self.kind.value,
            'element_type': self.element_type.value,
            'params': self.params.to_dict(),
            'reason': self.reason,
            'status': int(self.status) if self.status is not None else None,
            'divergences': [d.to_dict() for d in self.divergences],
            'warnings': list(self.warnings),
        }


def passed(element_type: ElementType, params: AxpyParams,
           comparison: ComparisonResult, warnings: List[str]) -> Outcome:
    return Outcome(OutcomeKind.PASS, element_type, params,
                   comparison=comparison, warnings=warnings)


def skipped(element_type: ElementType, params: AxpyParams, error: EnvironmentSkip) -> Outcome:
    return Outcome(OutcomeKind.SKIP, element_type, params, reason=str(error))


def execution_failed(element_type: ElementType, params: AxpyParams,
                     error: ExecutionFailure, warnings: List[str]) -> Outcome:
    return Outcome(OutcomeKind.FAILURE, element_type, params, reason=str(error),
                   status=error.status, stage=error.stage, warnings=warnings)


def correctness_failed(element_type: ElementType, params: AxpyParams,
                       comparison: ComparisonResult, warnings: List[str]) -> Outcome:
    reason = comparison.summary()
    if warnings:
        # Stale data after a failed readback shows up here as a divergence
        reason = f"{reason}; preceded by: {'; '.join(warnings)}"
    return Outcome(OutcomeKind.FAILURE, element_type, params, reason=reason,
                   stage="comparison", comparison=comparison, warnings=warnings)


class OutcomeTally:
    """Counts outcomes across a run, grouped by element type"""

    def __init__(self):
        self.outcomes: List[Outcome] = []
        self.by_type: Dict[ElementType, Dict[OutcomeKind, int]] = defaultdict(
            lambda: {kind: 0 for kind in OutcomeKind})

    def record(self, outcome: Outcome) -> Outcome:
        self.outcomes.append(outcome)
        self.by_type[outcome.element_type][outcome.kind] += 1
        return outcome

    def count(self, kind: OutcomeKind) -> int:
        return sum(1 for o in self.outcomes if o.kind == kind)

    @property
    def failures(self) -> List[Outcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def ok(self) -> bool:
        return not self.failures

    def get_summary(self) -> Dict:
        total = len(self.outcomes)
        executed = total - self.count(OutcomeKind.SKIP)
        passed_count = self.count(OutcomeKind.PASS)
        return {
            'total_tests': total,
            'total_passed': passed_count,
            'total_skipped': self.count(OutcomeKind.SKIP),
            'total_failed': self.count(OutcomeKind.FAILURE),
            # Skips are excluded from the rate
            'pass_rate': passed_count / executed if executed > 0 else 1.0,
            'by_type': {
                et.routine: {kind.value: n for kind, n in counts.items()}
                for et, counts in self.by_type.items()
            },
        }
