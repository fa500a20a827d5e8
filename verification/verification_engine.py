"""
Main Verification Engine

Orchestrates AXPY correctness tests: generates data, runs the host reference
and the accelerated kernel over the same logical vectors, compares the
results and classifies every case as pass, skip or failure.
"""

import logging
import time
import warnings
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from tqdm import tqdm

from .backend import AccessMode, Backend, Status
from .buffers import BufferLifecycleManager, HostAllocator
from .capability import check_capability
from .comparator import Tolerances, compare_vectors, tolerances_for
from .errors import EnvironmentSkip, ExecutionFailure, InsufficientQueues, TransferWarning
from .generators import RandomVectorGenerator
from .outcome import (Outcome, OutcomeTally, correctness_failed, execution_failed,
                      passed, skipped)
from .params import AxpyParams, ElementType
from .reference import convert_multiplier, reference_axpy
from .scenarios import (BoundaryScenario, QueueScenario, RandomScenario,
                        StrideScenario, TestScenario)

logger = logging.getLogger(__name__)


class VerificationEngine:
    """
    Runs AXPY correctness tests against an injected backend and kernel.

    The engine holds no device state of its own: every case acquires its
    host arrays and device buffers through a BufferLifecycleManager and
    releases them before its outcome is returned.
    """

    def __init__(
        self,
        backend: Backend,
        kernel_function: Callable,
        reference_function: Optional[Callable] = None,
        generator: Optional[RandomVectorGenerator] = None,
        tolerances: Optional[Mapping[ElementType, Tolerances]] = None,
        max_divergences: Optional[int] = 1,
        host_allocator: Optional[HostAllocator] = None
    ):
        """
        Initialize verification engine.

        Args:
            backend: Device abstraction that owns queues and buffers
            kernel_function: Accelerated AXPY under test
            reference_function: Host reference (default: numpy reference_axpy)
            generator: Vector generator (default: uniform values in (-1, 1))
            tolerances: Per element type overrides of the default tolerances
            max_divergences: Divergences to report per case (None for all)
            host_allocator: Host array allocator, mainly for instrumentation
        """
        self.backend = backend
        self.kernel_function = kernel_function
        self.reference_function = reference_function or reference_axpy
        self.generator = generator or RandomVectorGenerator()
        self.tolerances = dict(tolerances or {})
        self.max_divergences = max_divergences
        self.host_allocator = host_allocator
        self.tally = OutcomeTally()

    def tolerance_for(self, element_type: ElementType) -> Tolerances:
        return self.tolerances.get(element_type) or tolerances_for(element_type)

    def run_case(self, element_type: ElementType, params: AxpyParams) -> Outcome:
        """Run one test case and return its outcome. Resources are always released."""
        logger.debug("Running %s: %s", element_type.routine, params.describe())
        transfer_warnings: List[str] = []

        try:
            check_capability(self.backend, element_type)
            queues = self._select_queues(params.num_queues)

            with BufferLifecycleManager(self.backend, self.host_allocator) as buffers:
                comparison = self._execute(element_type, params, queues, buffers, transfer_warnings)

        except EnvironmentSkip as e:
            logger.warning("%s skipped: %s", element_type.routine, e)
            outcome = skipped(element_type, params, e)
        except ExecutionFailure as e:
            logger.error("%s failed: %s [%s]", element_type.routine, e, params.describe())
            outcome = execution_failed(element_type, params, e, transfer_warnings)
        else:
            if comparison.ok:
                outcome = passed(element_type, params, comparison, transfer_warnings)
            else:
                outcome = correctness_failed(element_type, params, comparison, transfer_warnings)
                logger.error("%s failed: %s [%s]", element_type.routine,
                             outcome.reason, params.describe())

        return self.tally.record(outcome)

    def _select_queues(self, num_queues: int) -> List:
        available = list(self.backend.queues())
        if len(available) < num_queues:
            raise InsufficientQueues(
                f"{num_queues} command queues requested, backend provides {len(available)}")
        return available[:num_queues]

    def _execute(self, element_type, params, queues, buffers, transfer_warnings):
        dtype = element_type.dtype

        x = buffers.allocate_host(params.alloc_x, dtype)
        y = buffers.allocate_host(params.alloc_y, dtype)
        ref_x = buffers.allocate_host(params.alloc_x, dtype)
        ref_y = buffers.allocate_host(params.alloc_y, dtype)

        self.generator.populate(params, element_type, x, y)
        # Both paths start from identical storage, padding included
        ref_x[...] = x
        ref_y[...] = y
        alpha = convert_multiplier(params.alpha, element_type)

        buf_x = buffers.create_buffer(x, AccessMode.READ_ONLY)
        buf_y = buffers.create_buffer(y, AccessMode.READ_WRITE)

        self.reference_function(params.n, alpha, ref_x, params.off_x, params.incx,
                                ref_y, params.off_y, params.incy)

        events = [None] * len(queues)
        status = self.kernel_function(params.n, alpha, buf_x, params.off_x, params.incx,
                                      buf_y, params.off_y, params.incy, queues, events)
        if status != Status.SUCCESS:
            raise ExecutionFailure(f"{element_type.routine}()", _as_status(status))

        status = self.backend.wait_all(events)
        if status != Status.SUCCESS:
            raise ExecutionFailure("wait_all()", _as_status(status))

        status = self.backend.read_buffer(buf_y, y, queues[0])
        if status != Status.SUCCESS:
            message = f"{element_type.routine}: reading results failed with status {_as_status(status)!r}"
            logger.warning(message)
            transfer_warnings.append(message)
            # An "error" filter must not turn the readback warning into an abort
            with warnings.catch_warnings():
                warnings.simplefilter("always", TransferWarning)
                warnings.warn(message, TransferWarning, stacklevel=2)

        return compare_vectors(ref_y, y, params.n, params.off_y, params.incy,
                               self.tolerance_for(element_type),
                               max_divergences=self.max_divergences)

    def run_scenario(
        self,
        scenario: TestScenario,
        element_types: Sequence[ElementType],
        num_tests: int,
        verbose: bool = True
    ) -> Dict:
        """
        Run a single test scenario for each element type.

        Returns:
            Dictionary with pass/skip/fail counts
        """
        if verbose:
            print(f"\n{'='*60}")
            print(f"Running Scenario: {scenario.name}")
            print(f"Description: {scenario.get_description()}")
            print(f"Number of tests: {num_tests} x {len(element_types)} element types")
            print(f"{'='*60}")

        cases = [(et, p) for p in scenario.generate_params(num_tests) for et in element_types]
        counts = {'passed': 0, 'skipped': 0, 'failed': 0}

        iterator = tqdm(cases, desc=f"Testing {scenario.name}") if verbose else cases

        for element_type, params in iterator:
            outcome = self.run_case(element_type, params)
            if outcome.passed:
                counts['passed'] += 1
            elif outcome.skipped:
                counts['skipped'] += 1
            else:
                counts['failed'] += 1
                if verbose:
                    print(f"\n  ❌ FAILED: {outcome.diagnostic()}")

        executed = counts['passed'] + counts['failed']
        result = {
            'scenario': scenario.name,
            'total_tests': len(cases),
            **counts,
            'pass_rate': counts['passed'] / executed if executed > 0 else 1.0,
        }

        if verbose:
            print(f"\nScenario Results:")
            print(f"  Passed:  {counts['passed']}/{len(cases)}")
            print(f"  Skipped: {counts['skipped']}/{len(cases)}")
            print(f"  Failed:  {counts['failed']}/{len(cases)}")

        return result

    def run_full_suite(
        self,
        element_types: Iterable[ElementType] = tuple(ElementType),
        num_tests_per_scenario: int = 20,
        max_queues: int = 2,
        seed: Optional[int] = None,
        verbose: bool = True
    ) -> Dict:
        """Run the boundary, stride, queue and random scenarios."""
        element_types = list(element_types)
        if verbose:
            print("\n" + "="*60)
            print(" " * 15 + "AXPY CORRECTNESS SUITE")
            print("="*60)

        scenarios = [
            BoundaryScenario(seed=seed),
            StrideScenario(seed=seed),
            QueueScenario(max_queues=max_queues, seed=seed),
            RandomScenario(max_queues=max_queues, seed=seed),
        ]

        start_time = time.time()
        results = [self.run_scenario(s, element_types, num_tests_per_scenario, verbose)
                   for s in scenarios]
        elapsed_time = time.time() - start_time

        full_results = {
            'scenario_results': results,
            'summary': self.tally.get_summary(),
            'elapsed_time': elapsed_time,
        }

        if verbose:
            self._print_summary(full_results)

        return full_results

    def _print_summary(self, results: Dict):
        print("\n" + "="*60)
        print(" " * 20 + "VERIFICATION SUMMARY")
        print("="*60)

        summary = results['summary']
        print(f"\nOverall Statistics:")
        print(f"  Total Tests: {summary['total_tests']}")
        print(f"  Passed:  {summary['total_passed']}")
        print(f"  Skipped: {summary['total_skipped']}")
        print(f"  Failed:  {summary['total_failed']}")
        print(f"  Pass Rate (excluding skips): {summary['pass_rate']*100:.2f}%")
        print(f"\nElapsed Time: {results['elapsed_time']:.2f} seconds")
        print("="*60)


def _as_status(status):
    try:
        return Status(status)
    except ValueError:
        return status


def axpy_correctness_test(
    element_type: ElementType,
    params: AxpyParams,
    backend: Backend,
    kernel_function: Callable,
    **engine_kwargs
) -> Outcome:
    """Entry point for registration layers: one descriptor, one outcome."""
    engine = VerificationEngine(backend, kernel_function, **engine_kwargs)
    return engine.run_case(element_type, params)


def saxpy_correctness(params, backend, kernel_function, **engine_kwargs) -> Outcome:
    return axpy_correctness_test(ElementType.SINGLE, params, backend, kernel_function, **engine_kwargs)


def daxpy_correctness(params, backend, kernel_function, **engine_kwargs) -> Outcome:
    return axpy_correctness_test(ElementType.DOUBLE, params, backend, kernel_function, **engine_kwargs)


def caxpy_correctness(params, backend, kernel_function, **engine_kwargs) -> Outcome:
    return axpy_correctness_test(ElementType.COMPLEX, params, backend, kernel_function, **engine_kwargs)


def zaxpy_correctness(params, backend, kernel_function, **engine_kwargs) -> Outcome:
    return axpy_correctness_test(ElementType.DOUBLE_COMPLEX, params, backend, kernel_function, **engine_kwargs)
