"""
Test Scenarios for AXPY Correctness Verification

Each scenario produces a list of parameter descriptors covering one corner
of the parameter space: sizes, stride/offset layouts, queue counts, or
random combinations of all of them.
"""

import random
from abc import ABC, abstractmethod
from typing import List, Optional

from .generators import ParamsGenerator
from .params import AxpyParams

# Scalars cycled through by the fixed scenarios; real types use the real part
ALPHAS = [1.0, 2.0, -0.5, complex(0.5, -0.75), 0.0]


class TestScenario(ABC):
    """Base class for test scenarios"""

    def __init__(self, name: str, seed: Optional[int] = None):
        self.name = name
        self.rng = random.Random(seed)

    @abstractmethod
    def generate_params(self, num_tests: int) -> List[AxpyParams]:
        """Generate a list of test descriptors"""
        pass

    @abstractmethod
    def get_description(self) -> str:
        pass

    def _next_seed(self) -> int:
        return self.rng.randrange(2 ** 31)


class BoundaryScenario(TestScenario):
    """Vector lengths around zero, primes, and powers of two"""

    SIZES = [0, 1, 2, 3, 4, 7, 15, 16, 17, 31, 32, 33, 61, 63, 64, 65,
             127, 128, 129, 255, 256, 257, 1000, 1024, 4096]

    def __init__(self, seed: Optional[int] = None):
        super().__init__("Boundary Conditions", seed)

    def generate_params(self, num_tests: int) -> List[AxpyParams]:
        return [
            AxpyParams(n=n, alpha=ALPHAS[i % len(ALPHAS)], seed=self._next_seed())
            for i, n in enumerate(self.SIZES[:num_tests])
        ]

    def get_description(self) -> str:
        return "Tests vector lengths including zero, one, primes and powers of two"


class StrideScenario(TestScenario):
    """Positive and negative strides combined with zero and non-zero offsets"""

    STRIDES = [1, 2, -1, -3]
    OFFSETS = [(0, 0), (1, 0), (0, 7), (3, 5)]

    def __init__(self, n: int = 63, seed: Optional[int] = None):
        super().__init__("Strides and Offsets", seed)
        self.n = n

    def generate_params(self, num_tests: int) -> List[AxpyParams]:
        tests = []
        for incx in self.STRIDES:
            for incy in self.STRIDES:
                for off_x, off_y in self.OFFSETS:
                    tests.append(AxpyParams(
                        n=self.n,
                        alpha=ALPHAS[len(tests) % len(ALPHAS)],
                        incx=incx,
                        off_x=off_x,
                        incy=incy,
                        off_y=off_y,
                        seed=self._next_seed(),
                    ))
        return tests[:num_tests]

    def get_description(self) -> str:
        return "Tests reverse traversal, non-unit strides and buffer offsets"


class QueueScenario(TestScenario):
    """The same layouts dispatched over one and several execution queues"""

    SIZES = [1, 17, 256, 1023]

    def __init__(self, max_queues: int = 2, seed: Optional[int] = None):
        super().__init__("Command Queues", seed)
        self.max_queues = max_queues

    def generate_params(self, num_tests: int) -> List[AxpyParams]:
        tests = []
        for num_queues in range(1, self.max_queues + 1):
            for n in self.SIZES:
                tests.append(AxpyParams(
                    n=n,
                    alpha=ALPHAS[len(tests) % len(ALPHAS)],
                    incx=1 if n % 2 else -2,
                    incy=1,
                    off_y=n % 5,
                    num_queues=num_queues,
                    seed=self._next_seed(),
                ))
        return tests[:num_tests]

    def get_description(self) -> str:
        return f"Tests dispatch over 1 to {self.max_queues} command queues"


class RandomScenario(TestScenario):
    """Fully random descriptors"""

    def __init__(self, max_queues: int = 2, seed: Optional[int] = None):
        super().__init__("Constrained Random", seed)
        self.max_queues = max_queues
        self.generator = ParamsGenerator(self._next_seed())

    def generate_params(self, num_tests: int) -> List[AxpyParams]:
        return [
            self.generator.random_params(max_queues=self.max_queues,
                                         complex_alpha=bool(i % 2))
            for i in range(num_tests)
        ]

    def get_description(self) -> str:
        return "Random sizes, strides, offsets, scalars and queue counts"
