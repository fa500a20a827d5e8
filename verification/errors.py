"""
Error taxonomy for the verification harness.

Environment problems become skips, execution and correctness problems become
hard failures. Readback problems are only warnings.
"""


class VerificationError(Exception):
    """Base class for everything the harness raises"""


class EnvironmentSkip(VerificationError):
    """The environment cannot run the test; never counted as a failure"""


class UnsupportedPrecision(EnvironmentSkip):
    pass


class HostAllocationError(EnvironmentSkip):
    pass


class BufferCreationError(EnvironmentSkip):
    pass


class InsufficientQueues(EnvironmentSkip):
    pass


class ExecutionFailure(VerificationError):
    """Kernel dispatch or synchronization returned a non-success status"""

    def __init__(self, stage: str, status):
        self.stage = stage
        self.status = status
        super().__init__(f"{stage} failed with status {_status_name(status)}")


class CorrectnessFailure(VerificationError):
    """Accelerated result diverged from the reference beyond tolerance"""

    def __init__(self, comparison, params=None):
        self.comparison = comparison
        self.params = params
        message = comparison.summary()
        if params is not None:
            message = f"{message} [{params.describe()}]"
        super().__init__(message)


class TransferWarning(UserWarning):
    """Reading results back from the accelerator failed"""


def _status_name(status) -> str:
    name = getattr(status, 'name', None)
    return f"{name} ({int(status)})" if name else str(status)
