"""Tests for Order: classification, fill lifecycle, text record."""

import pytest

from trade_core.contracts import Currency, OrderStatus, OrderType, Security, Side, Tick
from trade_core.errors import OrderFormatError, OrderStateError, OrderValidationError
from trade_core.order import Order


def _tick(price: float = 10.0, size: int = 100) -> Tick:
    return Tick.new_trade("SPY", 20080509, 93000, price, size)


class TestClassification:
    def test_market(self) -> None:
        o = Order("spy", Side.BUY, 100)
        assert o.symbol == "SPY"
        assert o.is_market and o.order_type is OrderType.MARKET
        assert o.is_valid

    def test_limit(self) -> None:
        o = Order("SPY", Side.SELL, 100, price=10.5)
        assert o.is_limit and not o.is_market
        assert o.order_type is OrderType.LIMIT

    def test_stop(self) -> None:
        o = Order("SPY", Side.BUY, 100, stop=11.0)
        assert o.is_stop
        assert o.order_type is OrderType.STOP

    def test_stop_limit_is_invalid(self) -> None:
        o = Order("SPY", Side.BUY, 100, price=10.0, stop=11.0)
        assert not o.is_valid

    def test_zero_size_and_empty_symbol_are_invalid(self) -> None:
        assert not Order("SPY", Side.BUY, 0).is_valid
        assert not Order("", Side.BUY, 100).is_valid

    def test_negative_size_rejected(self) -> None:
        with pytest.raises(OrderValidationError):
            Order("SPY", Side.BUY, -5)

    def test_from_signed(self) -> None:
        sell = Order.from_signed("SPY", -150)
        assert sell.side is Side.SELL
        assert sell.size == 150
        assert sell.signed_size == -150
        assert Order.from_signed("SPY", 20).signed_size == 20

    def test_equal_fields_are_distinct_orders(self) -> None:
        a = Order("SPY", Side.BUY, 100)
        b = Order("SPY", Side.BUY, 100)
        assert a != b
        assert a == a


class TestLifecycle:
    def test_pending_fill_fields_raise(self) -> None:
        o = Order("SPY", Side.BUY, 100)
        assert o.status is OrderStatus.PENDING
        for name in ("fill_price", "fill_size", "fill_date", "fill_time"):
            with pytest.raises(OrderStateError):
                getattr(o, name)

    def test_fill_copies_tick(self) -> None:
        o = Order("SPY", Side.SELL, 100, price=10.0)
        returned = o.fill(_tick(10.25, 300))
        assert returned is o
        assert o.is_filled
        assert o.fill_price == 10.25
        assert o.fill_size == 100
        assert o.signed_fill_size == -100
        assert (o.fill_date, o.fill_time) == (20080509, 93000)

    def test_double_fill_raises(self) -> None:
        o = Order("SPY", Side.BUY, 100).fill(_tick())
        with pytest.raises(OrderStateError):
            o.fill(_tick())

    def test_str_shows_order_then_fill(self) -> None:
        o = Order("SPY", Side.BUY, 100, price=10.0, date=20080509, time=93000)
        assert str(o) == "20080509:93000 BUY 100 SPY@10.0"
        o.fill(_tick(9.95))
        assert str(o) == "20080509:93000 BUY 100 SPY@9.95"
        assert "Market" in str(Order("SPY", Side.SELL, 5))
        assert "stop" in str(Order("SPY", Side.SELL, 5, stop=9.0))


class TestTextRecord:
    def test_round_trip_preserves_fields(self) -> None:
        o = Order(
            "IBM",
            Side.SELL,
            250,
            price=101.37,
            stop=0.0,
            comment="breakout",
            exchange="NYSE",
            account="ACC1",
            security=Security.FUT,
            currency=Currency.EUR,
        )
        back = Order.deserialize(o.serialize())
        for name in ("symbol", "side", "size", "price", "stop", "comment", "account", "exchange", "security", "currency"):
            assert getattr(back, name) == getattr(o, name), name

    def test_round_trip_resets_status(self) -> None:
        o = Order("SPY", Side.BUY, 100, stop=11.5).fill(_tick(11.6))
        back = Order.deserialize(o.serialize())
        assert back.status is OrderStatus.PENDING
        assert back.stop == 11.5

    def test_record_layout(self) -> None:
        o = Order("SPY", Side.BUY, 100, price=10.0, comment="c", exchange="X", account="A")
        assert o.serialize() == "SPY,B,100,10.0,0.0,c,X,A,STK,USD"

    def test_trailing_delimiter_and_extra_fields(self) -> None:
        assert Order.deserialize("SPY,S,10,0,0,,,,STK,USD,").side is Side.SELL
        assert Order.deserialize("SPY,S,10,0,0,,,,STK,USD,future1,future2").size == 10

    @pytest.mark.parametrize(
        "record",
        [
            "SPY,B,100",
            "SPY,X,100,0,0,,,,STK,USD",
            "SPY,B,abc,0,0,,,,STK,USD",
            "SPY,B,100,0,0,,,,XYZ,USD",
            "SPY,B,-1,0,0,,,,STK,USD",
        ],
    )
    def test_malformed_records(self, record: str) -> None:
        with pytest.raises(OrderFormatError):
            Order.deserialize(record)

    def test_delimiter_in_text_field_refused(self) -> None:
        with pytest.raises(OrderFormatError):
            Order("SPY", Side.BUY, 1, comment="a,b").serialize()
