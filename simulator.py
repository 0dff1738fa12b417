"""
simulator
====================

This module implements a simple event-driven trading simulator.  It
mimics the parts of a brokerage/backtesting engine an algorithm talks
to: subscribing to instruments, looking up option chains, scheduling
callbacks, placing market orders, tracking holdings and delivering data
slices, order events and delisting notifications.

The run loop walks the minute bars of every subscribed security in time
order.  For each time step it:

1. delivers the ``Delisted`` notification (and settles open positions)
   for option contracts that expired on an earlier date,
2. fires scheduled callbacks that are due,
3. builds the slice (bars plus a ``Warning`` delisting on expiry day) and
   hands it to ``on_data``.

Everything runs on one thread; exceptions raised by the algorithm are
not caught and abort the run.
"""

from __future__ import annotations

import datetime as dt
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from data_loader import MarketDataLoader
from models import (
    Delisting,
    DelistingType,
    Order,
    OrderEvent,
    OrderStatus,
    OptionRight,
    Slice,
    Symbol,
)
from portfolio import Portfolio, Security
from scheduler import ScheduleManager, TradingCalendar

__all__ = ["Simulator"]

OPTION_MULTIPLIER = 100


class Simulator:
    """Event-driven simulator for trading algorithms."""

    def __init__(
        self,
        data_loader: MarketDataLoader,
        starting_cash: float = 100_000.0,
        slippage: float = 0.0,
        debug: bool = False,
        calendar: Optional[TradingCalendar] = None,
    ) -> None:
        self.data_loader = data_loader
        self.option_chain_provider = data_loader
        self.calendar = calendar or TradingCalendar()
        self.schedule = ScheduleManager(self.calendar)
        self.portfolio = Portfolio(starting_cash)
        self.securities = self.portfolio.securities
        self.slippage = slippage
        self.debug = debug
        self.order_id_counter = 1
        self.event_id_counter = 1
        # Orders, events and logs are simple python containers that grow as
        # the backtest progresses.
        self.orders: List[Order] = []
        self.order_events: List[OrderEvent] = []
        self.log_lines: List[str] = []
        self.daily_equity: Dict[dt.date, float] = {}
        self.data_points = 0
        self.start_date: Optional[dt.date] = None
        self.end_date: Optional[dt.date] = None
        self.time: Optional[dt.datetime] = None
        self.algorithm = None
        self._warned: set = set()

    def _log(self, msg: str) -> None:
        # Print debug messages only when the user enables --debug.
        if self.debug:
            print(msg)

    def log(self, msg: str) -> None:
        line = f"{self.time:%Y-%m-%d %H:%M:%S} {msg}" if self.time else msg
        self.log_lines.append(line)
        self._log(line)

    # Setup API
    def set_start_date(self, year, month: int = 1, day: int = 1) -> None:
        self.start_date = year if isinstance(year, dt.date) else dt.date(year, month, day)
        self.time = dt.datetime.combine(self.start_date, dt.time())
        self._update_schedule_window()

    def set_end_date(self, year, month: int = 1, day: int = 1) -> None:
        self.end_date = year if isinstance(year, dt.date) else dt.date(year, month, day)
        self._update_schedule_window()

    def _update_schedule_window(self) -> None:
        if self.start_date is not None and self.end_date is not None:
            if self.end_date < self.start_date:
                raise ValueError(f"End date {self.end_date} is before start date {self.start_date}")
            self.schedule.set_window(self.start_date, self.end_date)

    def add_index(self, ticker: str) -> Security:
        symbol = self.data_loader.get_symbol(ticker.upper()) or Symbol.create_index(ticker)
        security = Security(symbol, self.data_loader.bars_for(symbol), multiplier=1, is_tradable=False)
        self._log(f"Added index {symbol}")
        return self.securities.add(security)

    def add_index_option_contract(self, symbol: Symbol) -> Security:
        if not symbol.is_option:
            raise ValueError(f"{symbol} is not an option contract")
        if symbol.underlying not in self.securities:
            self.add_index(symbol.underlying.value)
        security = Security(symbol, self.data_loader.bars_for(symbol), multiplier=OPTION_MULTIPLIER)
        self._log(f"Added option contract {symbol}")
        return self.securities.add(security)

    # Market data API
    def get_market_price(self, symbol: Symbol) -> float:
        # Return the last available closing price for the symbol up to the
        # current minute.
        security = self.securities.get(symbol)
        if security is not None and not np.isnan(security.price):
            return security.price
        bars = security.bars if security is not None else self.data_loader.bars_for(symbol)
        try:
            price = bars.loc[:self.time]["close"].iloc[-1]
        except IndexError:
            # Nothing traded yet; let the caller decide how to handle it.
            price = np.nan
        return float(price)

    # Order API
    def market_order(self, symbol: Symbol, quantity: int, tag: str = "") -> Order:
        if symbol not in self.securities:
            raise KeyError(f"Symbol {symbol} is not subscribed")
        if quantity == 0:
            raise ValueError("Order quantity must be non-zero")
        security = self.securities[symbol]
        price = self.get_market_price(symbol)
        order = self._new_order(symbol, quantity, price, tag=tag)
        self._emit(order, OrderStatus.SUBMITTED)
        if not security.is_tradable or security.is_delisted:
            return self._invalidate(order, f"{symbol} is not tradable")
        if np.isnan(price):
            return self._invalidate(order, f"No price available for {symbol} at {self.time}")
        # Apply simple proportional slippage if configured.
        slip = self.slippage * price
        fill_price = price + slip if quantity > 0 else price - slip
        self._fill(order, fill_price)
        return order

    def _new_order(self, symbol: Symbol, quantity: int, price: float, order_type: str = "MARKET", tag: str = "") -> Order:
        order = Order(
            order_id=self.order_id_counter,
            symbol=symbol,
            quantity=int(quantity),
            price=price,
            time=self.time,
            order_type=order_type,
            tag=tag,
        )
        self.order_id_counter += 1
        self.orders.append(order)
        return order

    def _invalidate(self, order: Order, message: str) -> Order:
        order.status = OrderStatus.INVALID
        self._log(f"Order {order.order_id} invalid: {message}")
        self._emit(order, OrderStatus.INVALID, message=message)
        return order

    def _fill(self, order: Order, fill_price: float, is_assignment: bool = False, message: str = "") -> None:
        order.executed_price = fill_price
        order.filled_time = self.time
        order.status = OrderStatus.FILLED
        # Holdings are updated before the event goes out so the algorithm sees
        # the post-fill position.
        self.portfolio.apply_fill(order.symbol, order.quantity, fill_price, self.time)
        self._emit(
            order,
            OrderStatus.FILLED,
            fill_quantity=order.quantity,
            fill_price=fill_price,
            is_assignment=is_assignment,
            message=message,
        )

    def _emit(self, order: Order, status: OrderStatus, **kwargs) -> OrderEvent:
        event = OrderEvent(
            order_id=order.order_id,
            event_id=self.event_id_counter,
            symbol=order.symbol,
            time=self.time,
            status=status,
            direction=order.direction,
            **kwargs,
        )
        self.event_id_counter += 1
        self.order_events.append(event)
        if self.algorithm is not None:
            self.algorithm.on_order_event(event)
        return event

    # Delisting and expiry
    def _expiring_options(self) -> List[Security]:
        return [
            security
            for security in self.securities.values()
            if security.symbol.is_option and not security.is_delisted
        ]

    def _delist_expired(self, before: Optional[dt.date]) -> None:
        """Deliver ``Delisted`` for contracts that expired before ``before`` (all, when None)."""
        for security in self._expiring_options():
            expiry = security.symbol.expiry
            if before is not None and expiry >= before:
                continue
            if before is None and expiry > self.end_date:
                continue
            if security.symbol not in self._warned:
                # No session on expiry day: the warning still precedes the delisting.
                self.time = dt.datetime.combine(expiry, dt.time())
                self._deliver(Slice(self.time, delistings={security.symbol: self._warning(security)}))
            delisted_time = dt.datetime.combine(expiry + dt.timedelta(days=1), dt.time())
            self.time = delisted_time
            delisting = Delisting(security.symbol, DelistingType.DELISTED, delisted_time, security.price)
            self._log(f"{security.symbol} delisted at {delisted_time:%Y-%m-%d}")
            self._deliver(Slice(delisted_time, delistings={security.symbol: delisting}))
            self._settle_expiry(security)
            security.is_delisted = True
            self._record_equity()

    def _settle_expiry(self, security: Security) -> None:
        holding = security.holdings
        if holding.quantity == 0:
            return
        symbol = security.symbol
        spot = self.get_market_price(symbol.underlying)
        if np.isnan(spot):
            raise ValueError(f"No underlying price to settle {symbol}")
        if symbol.right == OptionRight.CALL:
            intrinsic = max(spot - symbol.strike, 0.0)
        else:
            intrinsic = max(symbol.strike - spot, 0.0)
        order = self._new_order(symbol, -holding.quantity, intrinsic, order_type="OPTION_EXERCISE")
        self._emit(order, OrderStatus.SUBMITTED)
        if intrinsic > 0:
            # Short holders are assigned; long holders exercise. Index options
            # settle in cash at intrinsic value.
            assigned = holding.quantity < 0
            message = "Assigned" if assigned else "Automatic Exercise"
            self._fill(order, intrinsic, is_assignment=assigned, message=message)
        else:
            self._fill(order, 0.0, message="OTM")

    def _warning(self, security: Security) -> Delisting:
        symbol = security.symbol
        self._warned.add(symbol)
        warning_time = dt.datetime.combine(symbol.expiry, dt.time())
        return Delisting(symbol, DelistingType.WARNING, warning_time, security.price)

    def _warnings_for(self, date: dt.date) -> Dict[Symbol, Delisting]:
        return {
            security.symbol: self._warning(security)
            for security in self._expiring_options()
            if security.symbol.expiry == date and security.symbol not in self._warned
        }

    # Run loop
    def _timeline(self) -> pd.DatetimeIndex:
        start = pd.Timestamp(self.start_date)
        end = pd.Timestamp(self.end_date) + pd.Timedelta(days=1)
        timeline = pd.DatetimeIndex([])
        for security in self.securities.values():
            timeline = timeline.union(security.bars.index)
        return timeline[(timeline >= start) & (timeline < end)]

    def _build_slice(self, ts: dt.datetime) -> Slice:
        data = Slice(ts)
        for symbol, security in self.securities.items():
            if security.is_delisted:
                continue
            bar = security.bar_map.get(ts)
            if bar is not None:
                security.price = bar.close
                data.bars[symbol] = bar
        data.delistings.update(self._warnings_for(ts.date()))
        return data

    def _deliver(self, data: Slice) -> None:
        if data.has_data:
            self.data_points += len(data)
            self.algorithm.on_data(data)

    def _record_equity(self) -> None:
        self.daily_equity[self.time.date()] = self.portfolio.total_portfolio_value()

    def run(self, algorithm) -> None:
        """Initialise ``algorithm`` and drive it through the configured window."""
        self.algorithm = algorithm
        algorithm.initialize()
        if self.start_date is None or self.end_date is None:
            raise ValueError("Algorithm must set both a start and an end date")
        self.daily_equity[self.start_date] = self.portfolio.total_portfolio_value()
        for ts in self._timeline():
            ts = ts.to_pydatetime()
            self._delist_expired(before=ts.date())
            self.time = ts
            data = self._build_slice(ts)
            # Scheduled callbacks see prices of the current bar.
            self.schedule.fire_due(ts)
            self._deliver(data)
            self._record_equity()
        last_time = self.time
        self._delist_expired(before=None)
        # Expiry flushes move the clock past the window; the end callback sees the last step.
        self.time = last_time
        self._log(f"Run finished with portfolio value {self.portfolio.total_portfolio_value():.2f}")
        algorithm.on_end_of_algorithm()
