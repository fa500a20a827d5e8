#!/usr/bin/env python3
"""
Example script demonstrating how to use the verification harness.

Shows a single descriptor run per element type, a custom generator, and a
deliberately broken kernel being caught by the comparator.
"""

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from verification import (AxpyParams, ElementType, RandomVectorGenerator,
                          ValueDistribution, VerificationEngine, saxpy_correctness)
from axpy import TorchBackend, torch_axpy


def example_single_case():
    """Run the N=4, alpha=2 example for every element type"""
    print("="*60)
    print("Single Case Example")
    print("="*60)

    backend = TorchBackend()
    engine = VerificationEngine(backend, torch_axpy)
    params = AxpyParams(n=4, alpha=2.0, seed=42)

    for element_type in ElementType:
        outcome = engine.run_case(element_type, params)
        line = f"  {element_type.routine}: {outcome.kind.value}"
        if outcome.comparison is not None:
            line += f" (max abs error {outcome.comparison.max_abs_error:.2e})"
        print(line)


def example_custom_generator():
    """Edge-biased values, negative strides and several queues"""
    print("\n" + "="*60)
    print("Custom Generator Example")
    print("="*60)

    generator = RandomVectorGenerator(value_range=(-1.0, 1.0),
                                      distribution=ValueDistribution.EDGE_BIASED)
    engine = VerificationEngine(TorchBackend(max_queues=3), torch_axpy, generator=generator)
    params = AxpyParams(n=1000, alpha=-0.5, incx=-2, off_x=3, incy=3, off_y=1,
                        num_queues=3, seed=7)
    outcome = engine.run_case(ElementType.COMPLEX, params)
    print(f"  {outcome.test_name}: {outcome.kind.value}")


def example_broken_kernel():
    """A kernel that forgets alpha is reported with the first divergence"""
    print("\n" + "="*60)
    print("Broken Kernel Example")
    print("="*60)

    def broken_axpy(n, alpha, buf_x, off_x, incx, buf_y, off_y, incy, queues, events):
        return torch_axpy(n, 1.0, buf_x, off_x, incx, buf_y, off_y, incy, queues, events)

    outcome = saxpy_correctness(AxpyParams(n=16, alpha=3.0, seed=1), TorchBackend(), broken_axpy)
    print(outcome.diagnostic())


if __name__ == '__main__':
    try:
        example_single_case()
        example_custom_generator()
        example_broken_kernel()

        print("\n" + "="*60)
        print("Examples completed successfully!")
        print("="*60)

    except Exception as e:
        print(f"\nERROR: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
