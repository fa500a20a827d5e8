#!/usr/bin/env python3
"""
Main script to run the AXPY correctness suite against the torch backend.

Usage:
    python verification/run_verification.py [options]

Example:
    python verification/run_verification.py --tests 50 --types s c --max-queues 4
"""

import argparse
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from verification import ElementType, VerificationEngine
from axpy import TorchBackend, torch_axpy


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Run the AXPY correctness verification suite'
    )
    parser.add_argument(
        '--tests',
        type=int,
        default=20,
        help='Number of tests per scenario and element type (default: 20)'
    )
    parser.add_argument(
        '--types',
        nargs='+',
        choices=[et.value for et in ElementType],
        default=[et.value for et in ElementType],
        help='Element types by BLAS prefix (default: s d c z)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for reproducibility'
    )
    parser.add_argument(
        '--device',
        type=str,
        default=None,
        help="Torch device (default: 'cuda' when available, else 'cpu')"
    )
    parser.add_argument(
        '--max-queues',
        type=int,
        default=2,
        help='Number of execution queues to exercise (default: 2)'
    )
    parser.add_argument(
        '--no-double',
        action='store_true',
        help='Treat the device as lacking double precision support'
    )
    parser.add_argument(
        '--all-divergences',
        action='store_true',
        help='Report every divergent element instead of the first one'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Verbose output'
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    backend = TorchBackend(
        device=args.device,
        max_queues=args.max_queues,
        supports_double=False if args.no_double else None,
    )

    print("="*60)
    print("AXPY Correctness Verification Suite")
    print("="*60)
    print(f"Device: {backend.device}")
    print(f"Element types: {' '.join(args.types)}")
    print(f"Tests per scenario: {args.tests}")
    print(f"Queues: {args.max_queues}")
    print("="*60)

    engine = VerificationEngine(
        backend=backend,
        kernel_function=torch_axpy,
        max_divergences=None if args.all_divergences else 1,
    )

    results = engine.run_full_suite(
        element_types=[ElementType(t) for t in args.types],
        num_tests_per_scenario=args.tests,
        max_queues=args.max_queues,
        seed=args.seed,
        verbose=args.verbose,
    )

    failures = engine.tally.failures
    for outcome in failures[:10]:
        print(f"\n{outcome.diagnostic()}")

    summary = results['summary']
    if not failures:
        print(f"\n✅ VERIFICATION PASSED ({summary['total_passed']} passed, "
              f"{summary['total_skipped']} skipped)")
        return 0
    print(f"\n❌ VERIFICATION FAILED ({summary['total_failed']} failed, "
          f"{summary['total_passed']} passed, {summary['total_skipped']} skipped)")
    return 1


if __name__ == '__main__':
    sys.exit(main())
