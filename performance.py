"""
performance
=================

Summary statistics for a completed simulator run, formatted the way the
regression expectation tables write them (``"0.010%"``, ``"100%"``,
``"$0.00"``).

Only statistics the simulator can derive from its own ledger are
produced.  Annualised ratios, capacity estimates, insight statistics and
order list hashes belong to other engines and are left to the
expectation tables as opaque values.
"""

from __future__ import annotations

from typing import Dict

import pandas as pd

from models import OrderStatus
from simulator import Simulator

__all__ = ["compute_statistics", "max_drawdown"]


def _percent(value: float, digits: int, fixed: bool = False) -> str:
    rounded = round(value * 100, digits)
    if rounded == 0:
        return "0%"
    text = f"{rounded:.{digits}f}"
    if not fixed and "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text}%"


def _number(value: float, digits: int = 3) -> str:
    rounded = round(value, digits)
    if rounded == 0:
        return "0"
    text = f"{rounded:.{digits}f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


def max_drawdown(equity: pd.Series) -> float:
    """Largest peak-to-trough fall of ``equity`` as a fraction of the peak."""
    if equity.empty:
        return 0.0
    peaks = equity.cummax()
    return float((1.0 - equity / peaks).max())


def compute_statistics(simulator: Simulator) -> Dict[str, str]:
    portfolio = simulator.portfolio
    starting = portfolio.starting_cash
    fills = [order for order in simulator.orders if order.status == OrderStatus.FILLED]

    pnl = pd.Series([trade.pnl for trade in portfolio.trade_log], dtype=float)
    wins = pnl[pnl > 0]
    losses = pnl[pnl < 0]
    win_rate = len(wins) / len(pnl) if len(pnl) else 0.0
    loss_rate = len(losses) / len(pnl) if len(pnl) else 0.0
    average_win = wins.mean() / starting if len(wins) else 0.0
    average_loss = losses.mean() / starting if len(losses) else 0.0
    # Both ratios are undefined without losing trades; reported as zero.
    profit_loss_ratio = average_win / abs(average_loss) if average_loss else 0.0
    expectancy = win_rate * profit_loss_ratio - loss_rate if average_loss else 0.0

    equity = pd.Series(simulator.daily_equity, dtype=float).sort_index()
    net_profit = (portfolio.total_portfolio_value() - starting) / starting

    return {
        "Total Trades": str(len(fills)),
        "Average Win": _percent(average_win, 2),
        "Average Loss": _percent(average_loss, 2),
        "Drawdown": _percent(max_drawdown(equity), 3),
        "Expectancy": _number(expectancy),
        "Net Profit": _percent(net_profit, 3, fixed=True),
        "Loss Rate": _percent(loss_rate, 0),
        "Win Rate": _percent(win_rate, 0),
        "Profit-Loss Ratio": _number(profit_loss_ratio, 2),
        "Total Fees": f"${portfolio.total_fees:,.2f}",
    }
