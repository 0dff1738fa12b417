"""
strategies.base
==========================

Defines the base class for algorithms run by the simulator.  Algorithms
inherit from :class:`BaseAlgorithm`, configure themselves in
``initialize`` and react to ``on_data``, ``on_order_event`` and
``on_end_of_algorithm``.  The helper methods forward to the simulator so
an algorithm reads like a script: add securities, query the option
chain, schedule callbacks and place orders.
"""

from __future__ import annotations

from models import OrderEvent, Slice, Symbol
from portfolio import Portfolio, Security, SecurityManager
from scheduler import DateRules, TimeRules
from simulator import Simulator

__all__ = ["BaseAlgorithm"]


class BaseAlgorithm:
    """Base class for simulator-driven algorithms."""

    date_rules = DateRules
    time_rules = TimeRules

    def __init__(self, simulator: Simulator) -> None:
        # Keep a reference to the simulator so derived algorithms can place
        # orders and query account state.
        self.simulator = simulator

    # Callbacks
    def initialize(self) -> None:
        """Called once before the run; set dates and subscriptions here."""
        raise NotImplementedError

    def on_data(self, data: Slice) -> None:
        """Called for every slice of bars and delisting notifications."""
        pass

    def on_order_event(self, order_event: OrderEvent) -> None:
        """Called on every order state change."""
        pass

    def on_end_of_algorithm(self) -> None:
        """Called once after the last slice."""
        pass

    # Helpers
    @property
    def time(self):
        return self.simulator.time

    @property
    def securities(self) -> SecurityManager:
        return self.simulator.securities

    @property
    def portfolio(self) -> Portfolio:
        return self.simulator.portfolio

    @property
    def option_chain_provider(self):
        return self.simulator.option_chain_provider

    @property
    def schedule(self):
        return self.simulator.schedule

    def set_start_date(self, year, month: int = 1, day: int = 1) -> None:
        self.simulator.set_start_date(year, month, day)

    def set_end_date(self, year, month: int = 1, day: int = 1) -> None:
        self.simulator.set_end_date(year, month, day)

    def add_index(self, ticker: str) -> Security:
        return self.simulator.add_index(ticker)

    def add_index_option_contract(self, symbol: Symbol) -> Security:
        return self.simulator.add_index_option_contract(symbol)

    def market_order(self, symbol: Symbol, quantity: int, tag: str = ""):
        return self.simulator.market_order(symbol, quantity, tag=tag)

    def log(self, message: str) -> None:
        self.simulator.log(message)
