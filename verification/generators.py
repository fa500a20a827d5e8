"""
Randomized Vector Generators

Deterministic, seed-driven population of strided and offset vector layouts.
"""

import random
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from .params import AxpyParams, ElementType


class ValueDistribution(Enum):
    """Distribution types for random value generation"""
    UNIFORM = "uniform"
    NORMAL = "normal"
    EDGE_BIASED = "edge_biased"  # Biased towards the ends of the range


class RandomVectorGenerator:
    """
    Populates the logical elements of X and Y from a seed.

    Every call re-seeds from the descriptor, so the same (seed, N, layout)
    always yields the same values. Storage outside the logical index set is
    never written.
    """

    def __init__(
        self,
        value_range: Tuple[float, float] = (-1.0, 1.0),
        distribution: ValueDistribution = ValueDistribution.UNIFORM
    ):
        if isinstance(distribution, str):
            distribution = ValueDistribution(distribution)
        low, high = value_range
        if not low < high:
            raise ValueError(f"empty value range: {value_range}")
        self.value_range = (float(low), float(high))
        self.distribution = distribution

    def populate(
        self,
        params: AxpyParams,
        element_type: ElementType,
        x: np.ndarray,
        y: np.ndarray
    ) -> None:
        """Fill x and y at their logical positions; X is drawn before Y."""
        rng = np.random.default_rng(params.seed)
        x[params.indices_x()] = self.generate(rng, params.n, element_type)
        y[params.indices_y()] = self.generate(rng, params.n, element_type)

    def generate(self, rng: np.random.Generator, count: int, element_type: ElementType) -> np.ndarray:
        """Draw count values of the given element type"""
        real_dtype = element_type.real_dtype
        if element_type.is_complex:
            # Real and imaginary parts are drawn independently
            re = self._draw(rng, count).astype(real_dtype)
            im = self._draw(rng, count).astype(real_dtype)
            values = np.empty(count, dtype=element_type.dtype)
            values.real = re
            values.imag = im
            return values
        return self._draw(rng, count).astype(real_dtype)

    def _draw(self, rng: np.random.Generator, count: int) -> np.ndarray:
        low, high = self.value_range
        if self.distribution == ValueDistribution.UNIFORM:
            return rng.uniform(low, high, size=count)
        elif self.distribution == ValueDistribution.NORMAL:
            mean = (low + high) / 2
            std = (high - low) / 6
            return np.clip(rng.normal(mean, std, size=count), low, high)
        elif self.distribution == ValueDistribution.EDGE_BIASED:
            values = rng.uniform(low, high, size=count)
            # 30% chance of an edge value
            edge_mask = rng.random(count) < 0.3
            edges = np.where(rng.random(count) < 0.5, low, high)
            return np.where(edge_mask, edges, values)
        raise ValueError(f"unknown distribution: {self.distribution}")


class ParamsGenerator:
    """
    Draws random test descriptors.

    Used by the random scenario to cover the parameter space beyond the
    fixed grids.
    """

    def __init__(self, seed: Optional[int] = None):
        self.rng = random.Random(seed)

    def random_params(
        self,
        max_n: int = 512,
        max_stride: int = 4,
        max_offset: int = 16,
        max_queues: int = 2,
        complex_alpha: bool = False
    ) -> AxpyParams:
        n = self.rng.randint(0, max_n)
        incx = self.rng.choice([1, -1]) * self.rng.randint(1, max_stride)
        incy = self.rng.choice([1, -1]) * self.rng.randint(1, max_stride)
        alpha = round(self.rng.uniform(-2.0, 2.0), 3)
        if complex_alpha:
            alpha = complex(alpha / 2, round(self.rng.uniform(-1.0, 1.0), 3))
        return AxpyParams(
            n=n,
            alpha=alpha,
            incx=incx,
            off_x=self.rng.randint(0, max_offset),
            incy=incy,
            off_y=self.rng.randint(0, max_offset),
            num_queues=self.rng.randint(1, max_queues),
            seed=self.rng.randrange(2 ** 31),
        )
