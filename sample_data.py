"""
sample_data
=================

Deterministic SPX minute data and a January/February 2021 option chain,
so the regression algorithms can run without a data vendor.

The index oscillates around 3750 during January 2021, so every call at
4100 and above finishes out of the money.  Option bars carry intrinsic
value plus a flat ten cent time value until expiry.
"""

from __future__ import annotations

import datetime as dt
import os
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from data_loader import MarketDataLoader
from models import OptionRight, OptionStyle, SecurityType, Symbol
from scheduler import TradingCalendar

__all__ = ["build_spx_frames", "load_spx_sample", "write_spx_sample"]

START = dt.date(2021, 1, 4)
END = dt.date(2021, 1, 31)
LISTED = dt.date(2020, 12, 1)
EXPIRIES = (dt.date(2021, 1, 15), dt.date(2021, 2, 19))
STRIKES = np.arange(4100, 4401, 50)
TIME_VALUE = 0.10


def _minute_index(calendar: TradingCalendar, start: dt.date, end: dt.date) -> pd.DatetimeIndex:
    # Bars are stamped with their end time: 09:31 is the first bar of a session.
    pieces = [
        pd.date_range(row.market_open + pd.Timedelta(minutes=1), row.market_close, freq="1min")
        for row in calendar.sessions(start, end).itertuples()
    ]
    return pieces[0].append(pieces[1:]) if pieces else pd.DatetimeIndex([])


def _bars(key: str, times: pd.DatetimeIndex, close: np.ndarray) -> pd.DataFrame:
    close = np.round(close, 2)
    return pd.DataFrame(
        {
            "time": times,
            "symbol": key,
            "open": close,
            "high": close,
            "low": close,
            "close": close,
        }
    )


def build_spx_frames(calendar: Optional[TradingCalendar] = None) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Return ``(contract_df, bars_df)`` laid out like the loader's CSV files."""
    calendar = calendar or TradingCalendar()
    spx = Symbol.create_index("SPX")
    times = _minute_index(calendar, START, END)
    spot = 3750.0 + 60.0 * np.sin(np.linspace(0.0, 4.0 * np.pi, len(times)))

    contracts = [
        {
            "ticker": "SPX",
            "underlying": "",
            "security_type": SecurityType.INDEX.value,
            "strike": np.nan,
            "expiry": END,
            "right": "",
            "style": "",
            "listed": LISTED,
        }
    ]
    frames = [_bars(str(spx), times, spot)]
    for expiry in EXPIRIES:
        # Only contracts expiring inside the window get bars.
        mask = times.date <= expiry
        for right in (OptionRight.CALL, OptionRight.PUT):
            for strike in STRIKES:
                symbol = Symbol.create_option(spx, spx.market, OptionStyle.EUROPEAN, right, strike, expiry)
                contracts.append(
                    {
                        "ticker": str(symbol),
                        "underlying": "SPX",
                        "security_type": SecurityType.INDEX_OPTION.value,
                        "strike": float(strike),
                        "expiry": expiry,
                        "right": right.value,
                        "style": OptionStyle.EUROPEAN.value,
                        "listed": LISTED,
                    }
                )
                if expiry > END:
                    continue
                if right == OptionRight.CALL:
                    intrinsic = np.maximum(spot[mask] - strike, 0.0)
                else:
                    intrinsic = np.maximum(strike - spot[mask], 0.0)
                frames.append(_bars(str(symbol), times[mask], intrinsic + TIME_VALUE))
    return pd.DataFrame(contracts), pd.concat(frames, ignore_index=True)


def load_spx_sample(calendar: Optional[TradingCalendar] = None) -> MarketDataLoader:
    contract_df, bars_df = build_spx_frames(calendar)
    return MarketDataLoader.from_frames(contract_df, bars_df)


def write_spx_sample(directory: str) -> Tuple[str, str]:
    """Write the sample dataset as CSV files and return their paths."""
    os.makedirs(directory, exist_ok=True)
    contract_df, bars_df = build_spx_frames()
    contract_path = os.path.join(directory, "contracts.csv")
    market_data_path = os.path.join(directory, "minute_bars.csv")
    contract_df.to_csv(contract_path, index=False)
    bars_df.to_csv(market_data_path, index=False)
    return contract_path, market_data_path
