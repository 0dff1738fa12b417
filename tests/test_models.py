import datetime as dt

from models import (
    OptionRight,
    OptionStyle,
    Order,
    OrderDirection,
    OrderEvent,
    OrderStatus,
    SecurityType,
    Slice,
    Symbol,
)


SPX = Symbol.create_index("spx")


def test_index_symbol():
    assert SPX.value == "SPX"
    assert SPX.security_type == SecurityType.INDEX
    assert not SPX.is_option
    assert str(SPX) == "SPX"


def test_option_symbols_compare_by_identity():
    a = Symbol.create_option(SPX, "usa", OptionStyle.EUROPEAN, OptionRight.CALL, 4250, dt.datetime(2021, 1, 15))
    b = Symbol.create_option(SPX, "usa", "European", "Call", 4250.0, dt.date(2021, 1, 15))
    assert a == b
    assert hash(a) == hash(b)
    assert a.expiry == dt.date(2021, 1, 15)


def test_option_symbols_differ_on_style_or_strike():
    base = Symbol.create_option(SPX, "usa", OptionStyle.EUROPEAN, OptionRight.CALL, 4250, dt.date(2021, 1, 15))
    american = Symbol.create_option(SPX, "usa", OptionStyle.AMERICAN, OptionRight.CALL, 4250, dt.date(2021, 1, 15))
    higher = Symbol.create_option(SPX, "usa", OptionStyle.EUROPEAN, OptionRight.CALL, 4300, dt.date(2021, 1, 15))
    assert base != american
    assert base != higher


def test_option_symbol_string_is_osi():
    call = Symbol.create_option(SPX, "usa", OptionStyle.EUROPEAN, OptionRight.CALL, 4250, dt.date(2021, 1, 15))
    put = Symbol.create_option(SPX, "usa", OptionStyle.EUROPEAN, OptionRight.PUT, 3712.5, dt.date(2021, 2, 19))
    assert str(call) == "SPX   210115C04250000"
    assert str(put) == "SPX   210219P03712500"


def test_order_direction_follows_quantity_sign():
    now = dt.datetime(2021, 1, 5, 9, 31)
    assert Order(1, SPX, -1, 0.1, now).direction == OrderDirection.SELL
    assert Order(2, SPX, 3, 0.1, now).direction == OrderDirection.BUY


def test_order_event_string():
    event = OrderEvent(
        order_id=1,
        event_id=2,
        symbol=SPX,
        time=dt.datetime(2021, 1, 5, 9, 31),
        status=OrderStatus.FILLED,
        direction=OrderDirection.SELL,
        fill_quantity=-1,
        fill_price=0.1,
    )
    assert str(event) == (
        "Time: 2021-01-05 09:31:00 OrderID: 1 EventID: 2 Symbol: SPX Status: Filled Quantity: -1 FillPrice: 0.1"
    )


def test_empty_slice_has_no_data():
    data = Slice(dt.datetime(2021, 1, 5))
    assert not data.has_data
    assert len(data) == 0
