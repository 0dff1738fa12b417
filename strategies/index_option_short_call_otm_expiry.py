"""
strategies.index_option_short_call_otm_expiry
=============================================

Regression algorithm for out of the money index option expiry on a
short call.  Two orders are expected:

* the initial entry, selling one SPX call expiring OTM, which keeps the
  premium because the option is never assigned;
* the closing fill on the same contract when it expires worthless.

It also checks that delisting notifications for index options arrive on
the expected dates and that holdings always match the orders submitted.
"""

from __future__ import annotations

import datetime as dt
from types import MappingProxyType
from typing import Optional

from models import (
    DelistingType,
    OptionRight,
    OptionStyle,
    OrderDirection,
    OrderEvent,
    OrderStatus,
    Slice,
    Symbol,
)
from portfolio import Security
from regression import RegressionAlgorithmDefinition, RegressionFailure
from simulator import Simulator
from .base import BaseAlgorithm

__all__ = ["IndexOptionShortCallOTMExpiryRegressionAlgorithm"]


class IndexOptionShortCallOTMExpiryRegressionAlgorithm(BaseAlgorithm, RegressionAlgorithmDefinition):
    """Sells one OTM SPX call and asserts it expires worthless without assignment."""

    def __init__(self, simulator: Simulator) -> None:
        super().__init__(simulator)
        self.spx: Optional[Symbol] = None
        self.spx_option: Optional[Symbol] = None
        self.expected_contract: Optional[Symbol] = None

    def initialize(self) -> None:
        self.set_start_date(2021, 1, 4)
        self.set_end_date(2021, 1, 31)

        self.spx = self.add_index("SPX").symbol

        # Select the lowest January call at or above 4250, which expires OTM.
        chain = self.option_chain_provider.get_option_contract_list(self.spx, self.time)
        candidates = sorted(
            (
                x for x in chain
                if x.strike >= 4250 and x.right == OptionRight.CALL
                and x.expiry.year == 2021 and x.expiry.month == 1
            ),
            key=lambda x: x.strike,
        )[:1]
        if len(candidates) != 1:
            raise RegressionFailure(f"Expected a single contract from the chain, found {len(candidates)}")
        self.spx_option = self.add_index_option_contract(candidates[0]).symbol

        self.expected_contract = Symbol.create_option(
            self.spx, "usa", OptionStyle.EUROPEAN, OptionRight.CALL, 4250, dt.datetime(2021, 1, 15)
        )
        if self.spx_option != self.expected_contract:
            raise RegressionFailure(f"Contract {self.expected_contract} was not found in the chain")

        self.schedule.on(
            self.date_rules.tomorrow(),
            self.time_rules.after_market_open(self.spx, 1),
            lambda: self.market_order(self.spx_option, -1),
            name="sell_call",
        )

    def on_data(self, data: Slice) -> None:
        # Delisting warnings must arrive on expiry day and the delisting itself
        # the day after.
        for delisting in data.delistings.values():
            if delisting.type == DelistingType.WARNING and delisting.time != dt.datetime(2021, 1, 15):
                raise RegressionFailure(f"Delisting warning issued at unexpected date: {delisting.time}")
            if delisting.type == DelistingType.DELISTED and delisting.time != dt.datetime(2021, 1, 16):
                raise RegressionFailure(f"Delisting happened at unexpected date: {delisting.time}")

    def on_order_event(self, order_event: OrderEvent) -> None:
        if order_event.status != OrderStatus.FILLED:
            # Submissions and rejections are noise here; only fills matter.
            return

        if order_event.symbol not in self.securities:
            raise RegressionFailure(f"Order event Symbol not found in Securities collection: {order_event.symbol}")

        security = self.securities[order_event.symbol]
        if security.symbol == self.spx:
            raise RegressionFailure(f"Expected no order events for underlying Symbol {security.symbol}")

        if security.symbol == self.expected_contract:
            self.assert_index_option_contract_order(order_event, security)
        else:
            raise RegressionFailure(f"Received order event for unknown Symbol: {order_event.symbol}")

        self.log(f"{order_event}")

    def assert_index_option_contract_order(self, order_event: OrderEvent, option_contract: Security) -> None:
        quantity = option_contract.holdings.quantity
        if order_event.direction == OrderDirection.SELL and quantity != -1:
            raise RegressionFailure(f"No holdings were created for option contract {option_contract.symbol}")
        if order_event.direction == OrderDirection.BUY and quantity != 0:
            raise RegressionFailure(f"Expected no options holdings after closing position, found {quantity}")
        if order_event.is_assignment:
            raise RegressionFailure(f"Assignment was not expected for {order_event.symbol}")

    def on_end_of_algorithm(self) -> None:
        if self.portfolio.invested:
            invested = ", ".join(str(symbol) for symbol in self.portfolio.keys())
            raise RegressionFailure(f"Expected no holdings at end of algorithm, but are invested in: {invested}")

    can_run_locally = True
    languages = ("CSharp", "Python")
    data_points = 16486
    algorithm_history_data_points = 0
    expected_statistics = MappingProxyType({
        "Total Trades": "2",
        "Average Win": "0.01%",
        "Average Loss": "0%",
        "Compounding Annual Return": "0.142%",
        "Drawdown": "0%",
        "Expectancy": "0",
        "Net Profit": "0.010%",
        "Sharpe Ratio": "4.589",
        "Probabilistic Sharpe Ratio": "98.983%",
        "Loss Rate": "0%",
        "Win Rate": "100%",
        "Profit-Loss Ratio": "0",
        "Alpha": "0.001",
        "Beta": "-0",
        "Annual Standard Deviation": "0",
        "Annual Variance": "0",
        "Information Ratio": "-0.32",
        "Tracking Error": "0.138",
        "Treynor Ratio": "-9.479",
        "Total Fees": "$0.00",
        "Estimated Strategy Capacity": "$22000.00",
        "Lowest Capacity Asset": "SPX XL80P59H5E6M|SPX 31",
        "Fitness Score": "0",
        "Kelly Criterion Estimate": "0",
        "Kelly Criterion Probability Value": "0",
        "Sortino Ratio": "79228162514264337593543950335",
        "Return Over Maximum Drawdown": "79228162514264337593543950335",
        "Portfolio Turnover": "0",
        "Total Insights Generated": "0",
        "Total Insights Closed": "0",
        "Total Insights Analysis Completed": "0",
        "Long Insight Count": "0",
        "Short Insight Count": "0",
        "Long/Short Ratio": "100%",
        "Estimated Monthly Alpha Value": "$0",
        "Total Accumulated Estimated Alpha Value": "$0",
        "Mean Population Estimated Insight Value": "$0",
        "Mean Population Direction": "0%",
        "Mean Population Magnitude": "0%",
        "Rolling Averaged Population Direction": "0%",
        "Rolling Averaged Population Magnitude": "0%",
        "OrderListHash": "1f665263bd88e1668dfaf31e70f72705",
    })
