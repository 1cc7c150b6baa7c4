import pytest

from analyst.analysis.regime import classify_regime
from analyst.analysis.state import AnalysisState
from analyst.data.ring_buffer import RingBufferTicks
from analyst.indicators.volatility import atr

from tests.helpers.fake_source import make_tick


def window_from_prices(prices, wick=0.0):
    rb = RingBufferTicks(100)
    for i, p in enumerate(prices):
        rb.append(make_tick(i * 5, p, wick=wick))
    return rb.snapshot()


def test_too_few_ticks_is_noop():
    st = AnalysisState()
    classify_regime(window_from_prices([100.0] * 19, wick=1.0), st)
    assert st == AnalysisState()


def test_sets_atr14():
    w = window_from_prices([100.0 + (i % 2) for i in range(25)], wick=0.5)
    st = AnalysisState()
    classify_regime(w, st)
    assert st.atr == pytest.approx(atr(w, 14))
    assert st.atr > 0.0


def test_wide_range_is_high_volatility_even_with_trend_swings():
    # 100 -> 102 is a 2% range > 1.5%
    prices = [100.0 + 0.1 * i for i in range(21)]
    st = AnalysisState(recent_highs=[1.0, 2.0], recent_lows=[1.0, 2.0])
    classify_regime(window_from_prices(prices), st)
    assert st.regime == "high-volatility"


def test_trend_when_swings_drift_more_than_one_percent():
    prices = [1000.0 + (i % 3) for i in range(20)]  # range 2 / ~1001 < 1.5%
    st = AnalysisState(recent_highs=[1000.0, 1008.0], recent_lows=[995.0, 1003.0])
    classify_regime(window_from_prices(prices), st)
    # |8 + 8| = 16 > 10.01
    assert st.regime == "trend"


def test_range_when_swings_drift_cancels_out():
    prices = [1000.0 + (i % 3) for i in range(20)]
    st = AnalysisState(regime="trend", recent_highs=[1000.0, 1008.0], recent_lows=[1003.0, 995.0])
    classify_regime(window_from_prices(prices), st)
    assert st.regime == "range"


def test_unchanged_without_two_swings_each():
    prices = [1000.0 + (i % 3) for i in range(20)]
    st = AnalysisState(regime="trend", recent_highs=[1001.0, 1002.0], recent_lows=[999.0])
    classify_regime(window_from_prices(prices), st)
    assert st.regime == "trend"
