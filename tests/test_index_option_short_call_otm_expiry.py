import datetime as dt

import pytest

from data_loader import MarketDataLoader
from models import (
    Delisting,
    DelistingType,
    OptionRight,
    OptionStyle,
    OrderDirection,
    OrderEvent,
    OrderStatus,
    Slice,
    Symbol,
)
from regression import RegressionFailure, run_regression
from simulator import Simulator
from strategies import IndexOptionShortCallOTMExpiryRegressionAlgorithm

SPX = Symbol.create_index("SPX")
EXPECTED = Symbol.create_option(SPX, "usa", OptionStyle.EUROPEAN, OptionRight.CALL, 4250, dt.date(2021, 1, 15))


@pytest.fixture
def algorithm(simulator):
    algorithm = IndexOptionShortCallOTMExpiryRegressionAlgorithm(simulator)
    simulator.algorithm = algorithm
    algorithm.initialize()
    return algorithm


def _fill(symbol, direction, quantity, is_assignment=False, status=OrderStatus.FILLED):
    return OrderEvent(
        order_id=1,
        event_id=1,
        symbol=symbol,
        time=dt.datetime(2021, 1, 5, 9, 31),
        status=status,
        direction=direction,
        fill_quantity=quantity,
        is_assignment=is_assignment,
    )


def test_full_run_passes(spx_loader, calendar):
    simulator = Simulator(spx_loader, calendar=calendar)
    result = run_regression(IndexOptionShortCallOTMExpiryRegressionAlgorithm, spx_loader, simulator=simulator)
    assert result.passed
    assert result.statistics["Total Trades"] == "2"
    assert result.statistics["Net Profit"] == "0.010%"
    assert result.statistics["Total Fees"] == "$0.00"
    assert "OrderListHash" in result.skipped

    fills = [e for e in simulator.order_events if e.status == OrderStatus.FILLED]
    assert [e.symbol for e in fills] == [EXPECTED, EXPECTED]
    assert not any(e.is_assignment for e in fills)
    assert not simulator.portfolio.invested
    assert len(simulator.log_lines) == 2
    assert "Symbol: SPX   210115C04250000 Status: Filled Quantity: -1" in simulator.log_lines[0]


def test_contract_selection(algorithm):
    assert algorithm.spx == SPX
    assert algorithm.spx_option == EXPECTED
    assert algorithm.spx_option == algorithm.expected_contract
    assert [e.fire_times for e in algorithm.schedule.events] == [[dt.datetime(2021, 1, 5, 9, 31)]]


def test_chain_drift_is_fatal(spx_frames, calendar):
    contract_df, bars_df = spx_frames
    drifted = MarketDataLoader.from_frames(
        contract_df[contract_df["ticker"] != str(EXPECTED)],
        bars_df[bars_df["symbol"] != str(EXPECTED)],
    )
    algorithm = IndexOptionShortCallOTMExpiryRegressionAlgorithm(Simulator(drifted, calendar=calendar))
    with pytest.raises(RegressionFailure, match="was not found in the chain"):
        algorithm.initialize()


def test_empty_chain_is_fatal(spx_frames, calendar):
    contract_df, bars_df = spx_frames
    spx_only = MarketDataLoader.from_frames(
        contract_df[contract_df["security_type"] == "Index"],
        bars_df[bars_df["symbol"] == "SPX"],
    )
    algorithm = IndexOptionShortCallOTMExpiryRegressionAlgorithm(Simulator(spx_only, calendar=calendar))
    with pytest.raises(RegressionFailure, match="single contract"):
        algorithm.initialize()


def test_non_fill_events_are_ignored(algorithm):
    stranger = Symbol.create_index("NDX")
    algorithm.on_order_event(_fill(stranger, OrderDirection.BUY, 0, status=OrderStatus.SUBMITTED))
    algorithm.on_order_event(_fill(SPX, OrderDirection.BUY, 0, status=OrderStatus.INVALID))


def test_fill_on_unregistered_symbol_is_fatal(algorithm):
    with pytest.raises(RegressionFailure, match="not found in Securities"):
        algorithm.on_order_event(_fill(Symbol.create_index("NDX"), OrderDirection.BUY, 1))


def test_fill_on_underlying_is_fatal(algorithm):
    with pytest.raises(RegressionFailure, match="underlying Symbol SPX"):
        algorithm.on_order_event(_fill(SPX, OrderDirection.BUY, 1))


def test_fill_on_other_registered_contract_is_fatal(algorithm, simulator):
    other = Symbol.create_option(SPX, "usa", OptionStyle.EUROPEAN, OptionRight.CALL, 4300, dt.date(2021, 1, 15))
    simulator.add_index_option_contract(other)
    with pytest.raises(RegressionFailure, match="unknown Symbol"):
        algorithm.on_order_event(_fill(other, OrderDirection.SELL, -1))


def test_sell_fill_requires_short_position(algorithm):
    with pytest.raises(RegressionFailure, match="No holdings were created"):
        algorithm.on_order_event(_fill(EXPECTED, OrderDirection.SELL, -1))


def test_sell_fill_with_short_position_is_logged(algorithm, simulator):
    simulator.securities[EXPECTED].holdings.quantity = -1
    algorithm.on_order_event(_fill(EXPECTED, OrderDirection.SELL, -1))
    assert len(simulator.log_lines) == 1


def test_buy_fill_requires_flat_position(algorithm, simulator):
    simulator.securities[EXPECTED].holdings.quantity = -1
    with pytest.raises(RegressionFailure, match="Expected no options holdings"):
        algorithm.on_order_event(_fill(EXPECTED, OrderDirection.BUY, 1))


def test_assignment_is_fatal(algorithm):
    with pytest.raises(RegressionFailure, match="Assignment was not expected"):
        algorithm.on_order_event(_fill(EXPECTED, OrderDirection.BUY, 1, is_assignment=True))


@pytest.mark.parametrize(
    "kind, when, message",
    [
        (DelistingType.WARNING, dt.datetime(2021, 1, 14), "warning issued at unexpected date"),
        (DelistingType.WARNING, dt.datetime(2021, 1, 16), "warning issued at unexpected date"),
        (DelistingType.DELISTED, dt.datetime(2021, 1, 15), "Delisting happened at unexpected date"),
    ],
)
def test_delisting_at_wrong_date_is_fatal(algorithm, kind, when, message):
    data = Slice(when, delistings={EXPECTED: Delisting(EXPECTED, kind, when)})
    with pytest.raises(RegressionFailure, match=message):
        algorithm.on_data(data)


def test_delistings_at_expected_dates_pass(algorithm):
    algorithm.on_data(Slice(dt.datetime(2021, 1, 15), delistings={
        EXPECTED: Delisting(EXPECTED, DelistingType.WARNING, dt.datetime(2021, 1, 15)),
    }))
    algorithm.on_data(Slice(dt.datetime(2021, 1, 16), delistings={
        EXPECTED: Delisting(EXPECTED, DelistingType.DELISTED, dt.datetime(2021, 1, 16)),
    }))


def test_holdings_at_end_are_fatal(algorithm, simulator):
    simulator.securities[EXPECTED].holdings.quantity = -1
    with pytest.raises(RegressionFailure, match="invested in: SPX   210115C04250000"):
        algorithm.on_end_of_algorithm()


def test_reporting_contract():
    algo = IndexOptionShortCallOTMExpiryRegressionAlgorithm
    assert algo.can_run_locally
    assert algo.languages == ("CSharp", "Python")
    assert algo.data_points == 16486
    assert algo.algorithm_history_data_points == 0
    assert len(algo.expected_statistics) == 42
    assert algo.expected_statistics["OrderListHash"] == "1f665263bd88e1668dfaf31e70f72705"
