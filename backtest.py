"""
backtest
===================

This module provides a command line entry point for running the
algorithms defined in :mod:`strategies`.  It wires together the data
loader, simulator and chosen algorithm, runs it through the regression
harness and reports the trade log, statistics and verdict.

Without data files the bundled SPX sample dataset is used.
"""

from __future__ import annotations

import argparse
from typing import Iterable, Optional

from data_loader import MarketDataLoader
from regression import RegressionResult, run_regression
from sample_data import load_spx_sample, write_spx_sample
from strategies import ALGORITHMS

__all__ = ["run_backtest", "parse_args", "main"]


def run_backtest(
    algorithm_name: str,
    contract_file: Optional[str] = None,
    market_data_file: Optional[str] = None,
    check_statistics: bool = True,
    debug: bool = False,
) -> RegressionResult:
    """Run one algorithm and print its trade log and statistics."""
    if algorithm_name not in ALGORITHMS:
        raise ValueError(f"algorithm must be one of {sorted(ALGORITHMS)}")
    if (contract_file is None) != (market_data_file is None):
        raise ValueError("contract_file and market_data_file must be given together")
    # Load instrument definitions and the historical price data into memory.
    if contract_file is not None:
        loader = MarketDataLoader(contract_file, market_data_file)
    else:
        loader = load_spx_sample()
    result = run_regression(
        ALGORITHMS[algorithm_name], loader, check_statistics=check_statistics, debug=debug
    )
    sim = result.simulator
    # Summarise the trades the simulator recorded during the run.
    print("Trade log:")
    for trade in sim.portfolio.trade_log:
        print(
            f"{trade.symbol} | {trade.side} | {trade.entry_time} -> {trade.exit_time} | "
            f"Entry: {trade.entry_price:.2f}, Exit: {trade.exit_price:.2f}, PnL: {trade.pnl:.2f}"
        )
    print("\nStatistics:")
    for name, value in result.statistics.items():
        print(f"  {name}: {value}")
    print(f"\nData points: {sim.data_points}")
    if result.skipped:
        print(f"Not produced by the simulator: {', '.join(result.skipped)}")
    print("Regression passed" if result.passed else f"Regression mismatches: {result.mismatches}")
    return result


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run an index option regression algorithm")
    parser.add_argument("--algorithm", default="index_option_short_call_otm_expiry", choices=sorted(ALGORITHMS), help="Algorithm to run")
    # Both files are optional; the bundled sample data is used without them.
    parser.add_argument("--contract-file", help="Path to the contract listing CSV")
    parser.add_argument("--market-data-file", help="Path to the minute bar CSV")
    parser.add_argument("--no-check-statistics", dest="check_statistics", action="store_false", help="Report statistic mismatches without failing")
    parser.add_argument("--write-sample", metavar="DIR", help="Write the sample dataset as CSV files to DIR and exit")
    # Toggle extra print statements inside the simulator.
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def main(argv: Optional[Iterable[str]] = None) -> None:
    # Parse CLI arguments (or provided list for unit tests) and kick off the run.
    args = parse_args(argv)
    if args.write_sample:
        contract_path, market_data_path = write_spx_sample(args.write_sample)
        print(f"Wrote {contract_path} and {market_data_path}")
        return
    run_backtest(
        algorithm_name=args.algorithm,
        contract_file=args.contract_file,
        market_data_file=args.market_data_file,
        check_statistics=args.check_statistics,
        debug=args.debug,
    )


if __name__ == "__main__":
    main()
