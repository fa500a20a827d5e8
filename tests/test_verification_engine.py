import warnings

import numpy as np
import pytest

from conftest import ALL_TYPES, CountingAllocator, FakeBackend, FakeKernel
from verification import (AxpyParams, CorrectnessFailure, ElementType, EnvironmentSkip,
                          ExecutionFailure, OutcomeKind, Status, Tolerances,
                          TransferWarning, VerificationEngine, caxpy_correctness,
                          daxpy_correctness, saxpy_correctness, zaxpy_correctness)


def _engine(backend, kernel, allocator=None, **kwargs):
    return VerificationEngine(backend, kernel, host_allocator=allocator, **kwargs)


@pytest.mark.parametrize("element_type", ALL_TYPES)
def test_correct_kernel_passes(backend, kernel, allocator, element_type):
    params = AxpyParams(n=4, alpha=2.0, seed=42)
    outcome = _engine(backend, kernel, allocator).run_case(element_type, params)
    assert outcome.kind == OutcomeKind.PASS, outcome.diagnostic()
    assert outcome.comparison.num_compared == 4
    assert backend.balanced
    assert allocator.allocated == allocator.freed == 4


@pytest.mark.parametrize("params", [
    AxpyParams(n=0),
    AxpyParams(n=1, off_x=3, off_y=2),
    AxpyParams(n=17, incx=-1, incy=2),
    AxpyParams(n=17, incx=3, off_x=4, incy=-3, off_y=1),
    AxpyParams(n=64, alpha=complex(0.5, -0.75), num_queues=3),
])
@pytest.mark.parametrize("element_type", ALL_TYPES)
def test_boundary_cases_pass(backend, kernel, params, element_type):
    outcome = _engine(backend, kernel).run_case(element_type, params)
    assert outcome.passed, outcome.diagnostic()
    assert backend.balanced


def test_accelerated_path_sees_same_data_as_reference(backend):
    seen = {}

    def recording_kernel(n, alpha, buf_x, off_x, incx, buf_y, off_y, incy, queues, events):
        seen['x'] = buf_x.data.copy()
        seen['y'] = buf_y.data.copy()
        return FakeKernel()(n, alpha, buf_x, off_x, incx, buf_y, off_y, incy, queues, events)

    captured = {}

    def recording_reference(n, alpha, x, off_x, incx, y, off_y, incy):
        captured['x'] = x.copy()
        captured['y'] = y.copy()

    params = AxpyParams(n=9, incx=2, off_x=1, incy=-1, off_y=3, seed=5)
    engine = _engine(backend, recording_kernel, reference_function=recording_reference)
    engine.run_case(ElementType.DOUBLE, params)
    assert np.array_equal(seen['x'], captured['x'])
    assert np.array_equal(seen['y'], captured['y'])


def test_every_queue_reaches_the_barrier(kernel):
    backend = FakeBackend(num_queues=4)
    outcome = _engine(backend, kernel).run_case(ElementType.SINGLE, AxpyParams(n=8, num_queues=3))
    assert outcome.passed
    assert kernel.calls[0]['queues'] == ["queue0", "queue1", "queue2"]
    assert [e.queue for e in backend.waited_events] == ["queue0", "queue1", "queue2"]


def test_unsupported_double_is_skipped_before_allocation(kernel, allocator):
    backend = FakeBackend(supports_double=False)
    for element_type in (ElementType.DOUBLE, ElementType.DOUBLE_COMPLEX):
        outcome = _engine(backend, kernel, allocator).run_case(element_type, AxpyParams(n=4))
        assert outcome.kind == OutcomeKind.SKIP
        assert "double precision" in outcome.reason
    assert allocator.allocated == 0
    assert backend.created == []
    assert kernel.calls == []
    assert backend.waited_events is None


def test_single_precision_runs_without_double_support(kernel):
    backend = FakeBackend(supports_double=False)
    assert _engine(backend, kernel).run_case(ElementType.COMPLEX, AxpyParams(n=4)).passed


def test_host_allocation_failure_is_a_skip(backend, kernel):
    allocator = CountingAllocator(fail_at=3)
    outcome = _engine(backend, kernel, allocator).run_case(ElementType.SINGLE, AxpyParams(n=4))
    assert outcome.skipped
    assert "host" in outcome.reason
    assert allocator.allocated == allocator.freed == 3
    assert kernel.calls == []


@pytest.mark.parametrize("fail_at", [0, 1])
def test_buffer_creation_failure_is_a_skip(kernel, allocator, fail_at):
    backend = FakeBackend(fail_buffer_at=fail_at)
    outcome = _engine(backend, kernel, allocator).run_case(ElementType.SINGLE, AxpyParams(n=4))
    assert outcome.skipped
    assert backend.balanced and len(backend.created) == fail_at
    assert allocator.allocated == allocator.freed == 4
    assert kernel.calls == []


def test_too_few_queues_is_a_skip(kernel, allocator):
    backend = FakeBackend(num_queues=1)
    outcome = _engine(backend, kernel, allocator).run_case(ElementType.SINGLE, AxpyParams(n=4, num_queues=2))
    assert outcome.skipped
    assert allocator.allocated == 0


def test_kernel_error_status_is_a_hard_failure(backend, allocator):
    kernel = FakeKernel(status=Status.INVALID_VALUE)
    outcome = _engine(backend, kernel, allocator).run_case(ElementType.SINGLE, AxpyParams(n=4))
    assert outcome.kind == OutcomeKind.FAILURE
    assert outcome.status == Status.INVALID_VALUE
    assert outcome.stage == "saxpy()"
    assert backend.balanced
    assert allocator.allocated == allocator.freed == 4
    assert backend.waited_events is None
    with pytest.raises(ExecutionFailure):
        outcome.check()


def test_unknown_kernel_status_is_still_a_failure(backend):
    outcome = _engine(backend, FakeKernel(status=-9999)).run_case(ElementType.SINGLE, AxpyParams(n=4))
    assert outcome.failed
    assert outcome.status == -9999


def test_wait_failure_is_a_hard_failure(kernel, allocator):
    backend = FakeBackend(wait_status=Status.EXEC_STATUS_ERROR)
    outcome = _engine(backend, kernel, allocator).run_case(ElementType.DOUBLE, AxpyParams(n=4))
    assert outcome.failed
    assert outcome.stage == "wait_all()"
    assert outcome.status == Status.EXEC_STATUS_ERROR
    assert backend.balanced
    assert allocator.allocated == allocator.freed


def test_missing_events_fail_the_barrier(backend):
    def lazy_kernel(n, alpha, buf_x, off_x, incx, buf_y, off_y, incy, queues, events):
        return Status.SUCCESS

    outcome = _engine(backend, lazy_kernel).run_case(ElementType.SINGLE, AxpyParams(n=4, num_queues=2))
    assert outcome.failed
    assert outcome.status == Status.INVALID_EVENT


def test_divergence_is_a_correctness_failure(backend, allocator):
    params = AxpyParams(n=6, incy=-2, off_y=1, seed=3)
    outcome = _engine(backend, FakeKernel(corrupt=True), allocator).run_case(ElementType.COMPLEX, params)
    assert outcome.failed
    assert outcome.stage == "comparison"
    assert outcome.divergences[0].index == 0
    assert outcome.divergences[0].position == 1 + 5 * 2
    assert "incy = -2" in outcome.diagnostic()
    assert backend.balanced
    assert allocator.allocated == allocator.freed
    with pytest.raises(CorrectnessFailure):
        outcome.check()


def test_transfer_failure_warns_and_surfaces_through_comparison(kernel):
    backend = FakeBackend(read_status=Status.OUT_OF_RESOURCES)
    with pytest.warns(TransferWarning):
        outcome = _engine(backend, kernel).run_case(ElementType.SINGLE, AxpyParams(n=8, alpha=2.0))
    # The working Y still holds the pre-kernel values, so the stale data fails comparison
    assert outcome.failed
    assert outcome.stage == "comparison"
    assert outcome.warnings and "reading results failed" in outcome.warnings[0]
    assert "reading results failed" in outcome.reason
    assert backend.balanced


def test_transfer_failure_is_recorded_even_when_warnings_are_errors(kernel):
    backend = FakeBackend(read_status=Status.OUT_OF_RESOURCES)
    engine = _engine(backend, kernel)
    with warnings.catch_warnings():
        warnings.simplefilter("error", TransferWarning)
        outcome = engine.run_case(ElementType.SINGLE, AxpyParams(n=8, alpha=2.0))
    assert outcome.failed
    assert outcome.stage == "comparison"
    assert outcome.warnings
    assert engine.tally.outcomes == [outcome]
    assert backend.balanced


def test_transfer_failure_with_a_no_op_case_still_passes(kernel):
    backend = FakeBackend(read_status=Status.OUT_OF_RESOURCES)
    with pytest.warns(TransferWarning):
        outcome = _engine(backend, kernel).run_case(ElementType.SINGLE, AxpyParams(n=8, alpha=0.0))
    assert outcome.passed
    assert outcome.warnings


def test_skip_outcome_check_raises_environment_skip(kernel):
    outcome = _engine(FakeBackend(supports_double=False), kernel).run_case(ElementType.DOUBLE, AxpyParams(n=1))
    with pytest.raises(EnvironmentSkip):
        outcome.check()


def test_tolerance_override(backend):
    def sloppy_kernel(n, alpha, buf_x, off_x, incx, buf_y, off_y, incy, queues, events):
        status = FakeKernel()(n, alpha, buf_x, off_x, incx, buf_y, off_y, incy, queues, events)
        buf_y.data[off_y:off_y + n] += 1e-4
        return status

    strict = _engine(backend, sloppy_kernel).run_case(ElementType.DOUBLE, AxpyParams(n=4))
    loose = _engine(backend, sloppy_kernel,
                    tolerances={ElementType.DOUBLE: Tolerances(atol=1e-3, rtol=0.0)}
                    ).run_case(ElementType.DOUBLE, AxpyParams(n=4))
    assert strict.failed
    assert loose.passed


def test_tally_excludes_skips_from_failures(kernel):
    engine = _engine(FakeBackend(supports_double=False), kernel)
    for element_type in ALL_TYPES:
        engine.run_case(element_type, AxpyParams(n=3))
    summary = engine.tally.get_summary()
    assert summary['total_passed'] == 2
    assert summary['total_skipped'] == 2
    assert summary['total_failed'] == 0
    assert summary['pass_rate'] == 1.0
    assert engine.tally.ok


@pytest.mark.parametrize("entry,element_type", [
    (saxpy_correctness, ElementType.SINGLE),
    (daxpy_correctness, ElementType.DOUBLE),
    (caxpy_correctness, ElementType.COMPLEX),
    (zaxpy_correctness, ElementType.DOUBLE_COMPLEX),
])
def test_entry_points(backend, kernel, entry, element_type):
    outcome = entry(AxpyParams(n=5, incx=2), backend, kernel)
    assert outcome.passed
    assert outcome.element_type == element_type


def test_full_suite_runs_quietly(backend, kernel):
    engine = _engine(backend, kernel)
    results = engine.run_full_suite(num_tests_per_scenario=3, max_queues=2, seed=0, verbose=False)
    assert len(results['scenario_results']) == 4
    assert results['summary']['total_failed'] == 0
    assert results['summary']['total_tests'] == 4 * 3 * len(ALL_TYPES)
    assert backend.balanced
