import pytest
from analyst.ingest import parser
from analyst.ingest.source import validate_tick
from analyst.utils.errors import FetchError, InvalidTick
from analyst.utils.types import Tick

BOOK = {"symbol": "BTCUSDT", "bidPrice": "43000.10", "bidQty": "1.2",
        "askPrice": "43000.30", "askQty": "0.8"}
KLINE = [1700000000000, "42990.00", "43050.00", "42980.00", "43000.20", "12.5",
         1700000059999, "537000.0", 321, "6.1", "262000.0", "0"]

def test_parse_market_snapshot():
    t = parser.parse_market_snapshot(BOOK, KLINE, ts=1700000030.0)
    assert isinstance(t, Tick)
    assert t.timestamp == 1700000030.0
    assert t.price == pytest.approx(43000.20)
    assert t.bid == pytest.approx(43000.10) and t.ask == pytest.approx(43000.30)
    assert t.high == pytest.approx(43050.0) and t.low == pytest.approx(42980.0)
    assert t.volume == pytest.approx(12.5)
    assert validate_tick(t) is t

def test_close_outside_kline_range_widens_extremes():
    k = list(KLINE)
    k[4] = "43060.00"
    t = parser.parse_market_snapshot(BOOK, k, ts=1.0)
    assert t.high == pytest.approx(43060.0)

def test_malformed_payloads_raise_fetch_error():
    for book, kline in [({}, KLINE), (BOOK, KLINE[:3]), (BOOK, [0, "x", "y", "z", "nan?", "1"])]:
        with pytest.raises(FetchError):
            parser.parse_market_snapshot(book, kline, ts=1.0)

@pytest.mark.parametrize("kwargs", [
    dict(low=101.0, high=99.0),          # low above high
    dict(price=0.0, low=0.0, high=1.0),  # non-positive price
    dict(price=105.0),                   # price above high
    dict(bid=100.0, ask=100.0),          # crossed / locked book
    dict(volume=-1.0),
    dict(high=float("nan")),
])
def test_validate_tick_rejects(kwargs):
    base = dict(timestamp=10.0, price=100.0, bid=99.9, ask=100.1, volume=1.0, high=101.0, low=99.0)
    base.update(kwargs)
    with pytest.raises(InvalidTick):
        validate_tick(Tick(**base))

def test_validate_tick_rejects_going_back_in_time():
    t = Tick(timestamp=10.0, price=100.0, bid=99.9, ask=100.1, volume=1.0, high=101.0, low=99.0)
    assert validate_tick(t, last_ts=10.0) is t
    with pytest.raises(InvalidTick):
        validate_tick(t, last_ts=10.5)
