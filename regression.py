"""
regression
=================

Regression harness.  A regression algorithm mixes in
:class:`RegressionAlgorithmDefinition` to publish what a correct run
looks like: whether it can run on the bundled data, which languages the
same check exists in, how many data points it should see and the
expected summary statistics.  :func:`run_regression` runs the algorithm
and compares the completed run with those expectations.

Algorithms signal a violated expectation by raising
:class:`RegressionFailure`; nothing catches it, so the run stops at the
first failure.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Type

from data_loader import MarketDataLoader
from performance import compute_statistics
from simulator import Simulator

__all__ = [
    "RegressionFailure",
    "RegressionAlgorithmDefinition",
    "RegressionResult",
    "compare_statistics",
    "run_regression",
]


class RegressionFailure(Exception):
    """An expectation of a regression algorithm did not hold."""


class RegressionAlgorithmDefinition:
    """Reporting contract of a regression algorithm."""

    #: True when the bundled sample data is enough to run the algorithm.
    can_run_locally: bool = True
    #: Languages the equivalent algorithm is written in.
    languages: Tuple[str, ...] = ("Python",)
    #: Data points across all slices of the run.
    data_points: int = 0
    #: Data points requested through history calls.
    algorithm_history_data_points: int = 0
    #: Metric name -> expected formatted value.
    expected_statistics: Mapping[str, str] = MappingProxyType({})


def compare_statistics(expected: Mapping[str, str], actual: Dict[str, str]) -> Dict[str, Tuple[str, str]]:
    """Return ``{name: (expected, actual)}`` for every shared metric that differs."""
    return {
        name: (expected[name], actual[name])
        for name in expected
        if name in actual and expected[name] != actual[name]
    }


class RegressionResult:
    def __init__(self, simulator: Simulator, statistics: Dict[str, str], mismatches: Dict[str, Tuple[str, str]], skipped: List[str]) -> None:
        self.simulator = simulator
        self.statistics = statistics
        self.mismatches = mismatches
        # Expected metrics the simulator does not produce.
        self.skipped = skipped

    @property
    def passed(self) -> bool:
        return not self.mismatches


def run_regression(
    algorithm_cls: Type,
    loader: MarketDataLoader,
    check_statistics: bool = True,
    debug: bool = False,
    simulator: Optional[Simulator] = None,
) -> RegressionResult:
    """Run ``algorithm_cls`` against ``loader`` and check its reporting contract.

    Raises :class:`RegressionFailure` when an algorithm assertion fails or,
    with ``check_statistics``, when a statistic the simulator produces
    differs from the expected one.  A data point count different from the
    expected one is only logged: it depends on the dataset, not on the
    behaviour under test.
    """
    simulator = simulator or Simulator(loader, debug=debug)
    algorithm = algorithm_cls(simulator)
    simulator.run(algorithm)

    statistics = compute_statistics(simulator)
    expected = getattr(algorithm, "expected_statistics", {})
    mismatches = compare_statistics(expected, statistics)
    skipped = sorted(name for name in expected if name not in statistics)

    expected_points = getattr(algorithm, "data_points", 0)
    if expected_points and expected_points != simulator.data_points:
        simulator._log(
            f"Data points differ from the reference dataset: expected {expected_points}, got {simulator.data_points}"
        )

    if check_statistics and mismatches:
        details = ", ".join(f"{name}: expected {exp!r}, got {act!r}" for name, (exp, act) in sorted(mismatches.items()))
        raise RegressionFailure(f"Statistics mismatch for {algorithm_cls.__name__}: {details}")
    return RegressionResult(simulator, statistics, mismatches, skipped)
