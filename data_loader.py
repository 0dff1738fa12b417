"""
data_loader
======================

This module contains the :class:`MarketDataLoader` responsible for reading
contract listings and minute level OHLC data, and for answering option
chain queries.  Separating data loading into its own module keeps the
simulator independent from file format details and eases testing: the
tests and the bundled sample dataset build a loader straight from pandas
frames with :meth:`MarketDataLoader.from_frames`.

Contract file columns::

    ticker, underlying, security_type, strike, expiry, right, style, listed

Market data file columns (one row per symbol per minute)::

    time, symbol, open, high, low, close

``symbol`` in the market data file is the string form of the
:class:`models.Symbol` (``SPX`` or an OSI ticker such as
``SPX   210115C04250000``).
"""

from __future__ import annotations

import datetime as dt
from typing import Dict, List, Optional

import pandas as pd

from models import OptionRight, OptionStyle, SecurityType, Symbol

__all__ = ["MarketDataLoader"]

CONTRACT_COLUMNS = ["ticker", "underlying", "security_type", "strike", "expiry", "right", "style", "listed"]
BAR_COLUMNS = ["time", "symbol", "open", "high", "low", "close"]


class MarketDataLoader:
    """Utility class to load contract information and OHLC market data."""

    def __init__(self, contract_path: Optional[str] = None, market_data_path: Optional[str] = None) -> None:
        self.contract_path = contract_path
        self.market_data_path = market_data_path
        self.contract_df: pd.DataFrame = pd.DataFrame(columns=CONTRACT_COLUMNS)
        self.data_by_symbol: Dict[Symbol, pd.DataFrame] = {}
        if contract_path is not None:
            # Load metadata and price data immediately so downstream components
            # can start using them without worrying about IO.
            self.contract_df = self._load_contract(contract_path)
        self.symbols = self._build_symbols(self.contract_df)
        if market_data_path is not None:
            self.data_by_symbol = self._split_bars(self._load_market_data(market_data_path))

    @classmethod
    def from_frames(cls, contract_df: pd.DataFrame, bars_df: pd.DataFrame) -> "MarketDataLoader":
        """Build a loader from in-memory frames laid out like the CSV files."""
        loader = cls()
        loader.contract_df = cls._normalise_contracts(contract_df)
        loader.symbols = loader._build_symbols(loader.contract_df)
        loader.data_by_symbol = loader._split_bars(cls._normalise_bars(bars_df))
        return loader

    @classmethod
    def _load_contract(cls, path: str) -> pd.DataFrame:
        return cls._normalise_contracts(pd.read_csv(path, low_memory=False))

    @classmethod
    def _load_market_data(cls, path: str) -> pd.DataFrame:
        try:
            raw = pd.read_csv(path)
        except Exception as e:
            raise ValueError(
                f"Failed to load market data from {path}: {e}\n"
                "Ensure the file is a CSV with time/symbol/open/high/low/close columns."
            )
        return cls._normalise_bars(raw)

    @staticmethod
    def _normalise_contracts(df: pd.DataFrame) -> pd.DataFrame:
        missing = set(CONTRACT_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(f"Unexpected contract format: missing columns {sorted(missing)}")
        df = df[CONTRACT_COLUMNS].copy()
        # Expiry and listing dates are compared against plain dates throughout.
        df["expiry"] = pd.to_datetime(df["expiry"]).dt.date
        df["listed"] = pd.to_datetime(df["listed"]).dt.date
        df["underlying"] = df["underlying"].fillna("")
        return df.reset_index(drop=True)

    @staticmethod
    def _normalise_bars(df: pd.DataFrame) -> pd.DataFrame:
        missing = set(BAR_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(f"Unexpected market data format: missing columns {sorted(missing)}")
        df = df[BAR_COLUMNS].copy()
        df["time"] = pd.to_datetime(df["time"])
        return df

    @staticmethod
    def _build_symbols(contract_df: pd.DataFrame) -> Dict[str, Symbol]:
        symbols: Dict[str, Symbol] = {}
        # Indices first so that option rows can point at their underlying.
        for row in contract_df[contract_df["security_type"] == SecurityType.INDEX.value].itertuples():
            symbol = Symbol.create_index(row.ticker)
            symbols[str(symbol)] = symbol
        options = contract_df[contract_df["security_type"] == SecurityType.INDEX_OPTION.value]
        for row in options.itertuples():
            underlying = symbols.get(row.underlying) or Symbol.create_index(row.underlying)
            symbol = Symbol.create_option(
                underlying,
                underlying.market,
                OptionStyle(row.style),
                OptionRight(row.right),
                row.strike,
                row.expiry,
            )
            symbols[str(symbol)] = symbol
        return symbols

    def _split_bars(self, bars: pd.DataFrame) -> Dict[Symbol, pd.DataFrame]:
        data: Dict[Symbol, pd.DataFrame] = {}
        for key, frame in bars.groupby("symbol", sort=False):
            symbol = self.symbols.get(key)
            if symbol is None:
                raise ValueError(f"Market data references unknown symbol {key!r}")
            data[symbol] = (
                frame.drop(columns="symbol").set_index("time").sort_index()
            )
        return data

    def get_symbol(self, ticker: str) -> Optional[Symbol]:
        return self.symbols.get(ticker)

    def bars_for(self, symbol: Symbol) -> pd.DataFrame:
        if symbol not in self.data_by_symbol:
            raise KeyError(f"Symbol {symbol} not found in market data")
        return self.data_by_symbol[symbol]

    def get_option_contract_list(self, underlying: Symbol, date) -> List[Symbol]:
        """Return the option contracts on ``underlying`` trading on ``date``."""
        if isinstance(date, dt.datetime):
            date = date.date()
        df = self.contract_df
        listed = df[
            (df["security_type"] == SecurityType.INDEX_OPTION.value)
            & (df["underlying"] == underlying.value)
            & (df["listed"] <= date)
            & (df["expiry"] >= date)
        ]
        chain = []
        for row in listed.itertuples():
            symbol = Symbol.create_option(
                underlying,
                underlying.market,
                OptionStyle(row.style),
                OptionRight(row.right),
                row.strike,
                row.expiry,
            )
            chain.append(symbol)
        return chain
