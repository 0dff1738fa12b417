"""
models
=================

This module defines the data containers shared by the simulator, the
data loader and the algorithms: instrument symbols, orders, order
events, holdings, delisting notifications, data slices and trade log
entries.  Using `@dataclass` for these structures keeps them readable
and gives us value equality for free, which matters for symbols since
algorithms compare the contract they resolved against one they build
themselves.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

__all__ = [
    "SecurityType",
    "OptionRight",
    "OptionStyle",
    "OrderStatus",
    "OrderDirection",
    "DelistingType",
    "Symbol",
    "Order",
    "OrderEvent",
    "Holding",
    "Delisting",
    "TradeBar",
    "Slice",
    "TradeLog",
]

USA = "usa"


class SecurityType(str, Enum):
    INDEX = "Index"
    INDEX_OPTION = "IndexOption"


class OptionRight(str, Enum):
    CALL = "Call"
    PUT = "Put"


class OptionStyle(str, Enum):
    EUROPEAN = "European"
    AMERICAN = "American"


class OrderStatus(str, Enum):
    SUBMITTED = "Submitted"
    FILLED = "Filled"
    INVALID = "Invalid"
    CANCELED = "Canceled"


class OrderDirection(str, Enum):
    BUY = "Buy"
    SELL = "Sell"


class DelistingType(str, Enum):
    WARNING = "Warning"
    DELISTED = "Delisted"


@dataclass(frozen=True)
class Symbol:
    """Immutable reference to an index or a single option contract."""
    # Ticker of the instrument itself (e.g. SPX for both the index and its options).
    value: str
    security_type: SecurityType
    market: str = USA
    # Option-only fields; left as None for the index.
    underlying: Optional["Symbol"] = None
    strike: Optional[float] = None
    expiry: Optional[dt.date] = None
    right: Optional[OptionRight] = None
    style: Optional[OptionStyle] = None

    @classmethod
    def create_index(cls, ticker: str, market: str = USA) -> "Symbol":
        return cls(value=ticker.upper(), security_type=SecurityType.INDEX, market=market)

    @classmethod
    def create_option(
        cls,
        underlying: "Symbol",
        market: str,
        style: OptionStyle,
        right: OptionRight,
        strike: float,
        expiry,
    ) -> "Symbol":
        """Build an option symbol from its identity, independent of any chain."""
        if isinstance(expiry, dt.datetime):
            expiry = expiry.date()
        return cls(
            value=underlying.value,
            security_type=SecurityType.INDEX_OPTION,
            market=market,
            underlying=underlying,
            strike=float(strike),
            expiry=expiry,
            right=OptionRight(right),
            style=OptionStyle(style),
        )

    @property
    def is_option(self) -> bool:
        return self.security_type == SecurityType.INDEX_OPTION

    def __str__(self) -> str:
        if not self.is_option:
            return self.value
        # OSI style ticker: root padded to six characters, yymmdd, C/P and
        # the strike in thousandths padded to eight digits.
        right = "C" if self.right == OptionRight.CALL else "P"
        strike = int(round(self.strike * 1000))
        return f"{self.value:<6}{self.expiry:%y%m%d}{right}{strike:08d}"


@dataclass
class Order:
    """Represents an order placed through the simulator."""
    # Unique identifier assigned by the simulator.
    order_id: int
    symbol: Symbol
    # Signed quantity: negative for sells.
    quantity: int
    # Market price observed when the order was created.
    price: float
    time: dt.datetime
    # Actual fill price after slippage (if any).
    executed_price: Optional[float] = None
    filled_time: Optional[dt.datetime] = None
    status: OrderStatus = OrderStatus.SUBMITTED
    # MARKET for algorithm orders, OPTION_EXERCISE for expiry settlement.
    order_type: str = "MARKET"
    tag: str = ""

    @property
    def direction(self) -> OrderDirection:
        return OrderDirection.BUY if self.quantity > 0 else OrderDirection.SELL


@dataclass(frozen=True)
class OrderEvent:
    """Notification the simulator sends to the algorithm for each order state change."""
    order_id: int
    event_id: int
    symbol: Symbol
    time: dt.datetime
    status: OrderStatus
    direction: OrderDirection
    # Signed quantity filled by this event; zero for non-fill events.
    fill_quantity: int = 0
    fill_price: float = 0.0
    is_assignment: bool = False
    message: str = ""

    def __str__(self) -> str:
        text = (
            f"Time: {self.time:%Y-%m-%d %H:%M:%S} OrderID: {self.order_id} "
            f"EventID: {self.event_id} Symbol: {self.symbol} Status: {self.status.value}"
        )
        if self.status == OrderStatus.FILLED:
            text += f" Quantity: {self.fill_quantity} FillPrice: {self.fill_price:g}"
        if self.is_assignment:
            text += " IsAssignment: True"
        if self.message:
            text += f" Message: {self.message}"
        return text


@dataclass
class Holding:
    """Signed position in a single security, owned by the simulator."""
    symbol: Symbol
    quantity: int = 0
    average_price: float = 0.0
    # Contract multiplier: 100 for index options, 1 for the index itself.
    multiplier: int = 1

    @property
    def invested(self) -> bool:
        return self.quantity != 0

    def market_value(self, price: float) -> float:
        return self.quantity * price * self.multiplier


@dataclass(frozen=True)
class Delisting:
    symbol: Symbol
    type: DelistingType
    # Midnight of the day the notification refers to.
    time: dt.datetime
    price: float = 0.0


@dataclass(frozen=True)
class TradeBar:
    symbol: Symbol
    # End time of the minute bar.
    time: dt.datetime
    open: float
    high: float
    low: float
    close: float


@dataclass
class Slice:
    """Everything the simulator knows at one point in time."""
    time: dt.datetime
    bars: Dict[Symbol, TradeBar] = field(default_factory=dict)
    delistings: Dict[Symbol, Delisting] = field(default_factory=dict)

    @property
    def has_data(self) -> bool:
        return bool(self.bars or self.delistings)

    def __len__(self) -> int:
        return len(self.bars) + len(self.delistings)


@dataclass
class TradeLog:
    """Record of a completed round trip for reporting purposes."""
    symbol: Symbol
    # LONG or SHORT, taken from the opening fill.
    side: str
    entry_time: dt.datetime
    exit_time: dt.datetime
    entry_price: float
    exit_price: float
    quantity: int
    pnl: float
