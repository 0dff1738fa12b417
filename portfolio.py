"""
portfolio
=================

Security registry and holdings ledger used by the simulator.  The
simulator is the only writer; algorithms read securities, holdings and
the invested state through the same objects.
"""

from __future__ import annotations

import datetime as dt
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from models import Holding, Symbol, TradeBar, TradeLog

__all__ = ["Security", "SecurityManager", "Portfolio"]


class Security:
    """A subscribed instrument: its bars, last price and holdings."""

    def __init__(self, symbol: Symbol, bars: pd.DataFrame, multiplier: int = 1, is_tradable: bool = True) -> None:
        self.symbol = symbol
        self.bars = bars
        self.holdings = Holding(symbol=symbol, multiplier=multiplier)
        self.is_tradable = is_tradable
        self.is_delisted = False
        self.price: float = np.nan
        # Bars keyed by end time so the simulator can build slices with dict lookups.
        self.bar_map: Dict[dt.datetime, TradeBar] = {
            row.Index.to_pydatetime(): TradeBar(symbol, row.Index.to_pydatetime(), row.open, row.high, row.low, row.close)
            for row in bars.itertuples()
        }

    @property
    def invested(self) -> bool:
        return self.holdings.invested

    def __repr__(self) -> str:
        return f"Security({self.symbol}, quantity={self.holdings.quantity}, price={self.price})"


class SecurityManager(dict):
    """Mapping of :class:`Symbol` to :class:`Security`."""

    def add(self, security: Security) -> Security:
        # Re-adding a symbol keeps the existing security and its holdings.
        return self.setdefault(security.symbol, security)


class Portfolio:
    """Cash, holdings and closed trades for one simulated account."""

    def __init__(self, starting_cash: float = 100_000.0) -> None:
        self.starting_cash = starting_cash
        self.cash = starting_cash
        self.securities = SecurityManager()
        self.trade_log: List[TradeLog] = []
        self.total_fees = 0.0
        # Opening time, side, size and PnL realised so far for each open position.
        self._open: Dict[Symbol, list] = {}

    @property
    def invested(self) -> bool:
        return any(security.invested for security in self.securities.values())

    def keys(self) -> List[Symbol]:
        """Symbols with a non-zero position."""
        return [symbol for symbol, security in self.securities.items() if security.invested]

    def total_portfolio_value(self) -> float:
        total = self.cash
        for security in self.securities.values():
            if security.invested and not np.isnan(security.price):
                total += security.holdings.market_value(security.price)
        return total

    def apply_fill(self, symbol: Symbol, quantity: int, fill_price: float, time: dt.datetime) -> Optional[TradeLog]:
        """Update cash and holdings for a fill; returns the trade closed by it, if any."""
        holding = self.securities[symbol].holdings
        self.cash -= quantity * fill_price * holding.multiplier
        closed = None
        if holding.quantity == 0 or np.sign(holding.quantity) == np.sign(quantity):
            # Opening or adding to a position: weighted-average entry price.
            total_qty = holding.quantity + quantity
            holding.average_price = (
                holding.average_price * abs(holding.quantity) + fill_price * abs(quantity)
            ) / abs(total_qty)
            if holding.quantity == 0:
                self._open[symbol] = [time, "LONG" if quantity > 0 else "SHORT", abs(quantity), 0.0]
            else:
                self._open[symbol][2] += abs(quantity)
            holding.quantity = int(total_qty)
            return None
        # Reducing against an existing position realises PnL on the closed part.
        closing = min(abs(quantity), abs(holding.quantity))
        direction = np.sign(holding.quantity)
        pnl = float((fill_price - holding.average_price) * closing * direction * holding.multiplier)
        remaining = holding.quantity + quantity
        opened = self._open.setdefault(symbol, [time, "LONG" if direction > 0 else "SHORT", closing, 0.0])
        opened[3] += pnl
        if remaining == 0 or np.sign(remaining) != direction:
            entry_time, side, size, realised = self._open.pop(symbol)
            closed = TradeLog(
                symbol=symbol,
                side=side,
                entry_time=entry_time,
                exit_time=time,
                entry_price=holding.average_price,
                exit_price=fill_price,
                quantity=size,
                pnl=realised,
            )
            self.trade_log.append(closed)
            holding.average_price = fill_price if remaining != 0 else 0.0
            if remaining != 0:
                # Flipped through zero: the remainder opens a new position.
                self._open[symbol] = [time, "LONG" if remaining > 0 else "SHORT", abs(remaining), 0.0]
        holding.quantity = int(remaining)
        return closed
