import numpy as np
import pytest

from analyst.analysis.state import AnalysisState
from analyst.analysis.structure import detect_structure, find_swings
from analyst.data.ring_buffer import RingBufferTicks

from tests.helpers.fake_source import make_tick, zigzag_prices


def window_from_prices(prices):
    rb = RingBufferTicks(100)
    for i, p in enumerate(prices):
        rb.append(make_tick(i * 5, p))
    return rb.snapshot()


def test_find_swings_strict_two_tick_neighborhood():
    prices = np.array([1, 2, 5, 2, 1, 3, 4, 3, 0, 3, 4], dtype=float)
    highs, lows = find_swings(prices)
    # highs at 2 and 6, lows at 4 and 8; index 9+ lacks a right neighborhood
    assert highs == [5.0, 4.0]
    assert lows == [1.0, 0.0]


def test_find_swings_ties_are_not_swings():
    prices = np.array([1, 2, 5, 5, 2, 1, 1], dtype=float)
    highs, lows = find_swings(prices)
    assert highs == []
    assert lows == []


def test_find_swings_monotonic_has_none():
    highs, lows = find_swings(np.arange(20, dtype=float))
    assert highs == [] and lows == []


def test_too_few_ticks_is_noop():
    st = AnalysisState()
    detect_structure(window_from_prices(zigzag_prices(19)), st)
    assert st == AnalysisState()


def test_rising_zigzag_gives_hh_bull_and_levels():
    st = AnalysisState()
    prices = zigzag_prices(40)
    detect_structure(window_from_prices(prices), st)

    last20 = prices[-20:]
    start = len(prices) - 20
    exp_highs = [p for j, p in enumerate(last20) if (start + j) % 6 == 3 and 2 <= j <= 17]
    exp_lows = [p for j, p in enumerate(last20) if (start + j) % 6 == 0 and 2 <= j <= 17]

    assert st.last_structure == "HH"
    assert st.bias == "bull"
    assert st.recent_highs == pytest.approx(exp_highs[-3:])
    assert st.recent_lows == pytest.approx(exp_lows[-3:])
    assert st.key_levels.resistance == pytest.approx(max(exp_highs[-3:]))
    assert st.key_levels.support == pytest.approx(min(exp_lows[-3:]))


def test_falling_zigzag_gives_ll_before_lh():
    # mirror image: lower highs and lower lows both present, LL has priority
    prices = [2000.0 - p for p in zigzag_prices(40)]
    st = AnalysisState()
    detect_structure(window_from_prices(prices), st)
    assert st.last_structure == "LL"
    assert st.bias == "bear"


def test_lower_high_with_flat_lows():
    # highs fall, lows equal -> LH / bear
    prices = [10, 10.5, 11, 15, 11, 10.5, 10, 10.5, 11, 14, 11, 10.5, 10, 10.5, 11, 13, 11, 10.5, 10, 10.5]
    st = AnalysisState()
    detect_structure(window_from_prices(prices), st)
    assert st.recent_highs == [15.0, 14.0, 13.0]
    assert st.recent_lows == [10.0, 10.0]
    assert st.last_structure == "LH"
    assert st.bias == "bear"


def test_higher_low_with_flat_highs():
    prices = [15, 14.5, 14, 10, 14, 14.5, 15, 14.5, 14, 11, 14, 14.5, 15, 14.5, 14, 12, 14, 14.5, 15, 14.5]
    st = AnalysisState()
    detect_structure(window_from_prices(prices), st)
    assert st.recent_lows == [10.0, 11.0, 12.0]
    assert st.last_structure == "HL"
    assert st.bias == "bull"


def test_no_swings_keeps_previous_label_and_levels():
    st = AnalysisState(bias="bear", last_structure="LL")
    st.key_levels.support = 90.0
    st.key_levels.resistance = 110.0
    detect_structure(window_from_prices([100.0 + i for i in range(25)]), st)
    assert st.last_structure == "LL"
    assert st.bias == "bear"
    assert st.recent_highs == [] and st.recent_lows == []
    assert st.key_levels.support == 90.0
    assert st.key_levels.resistance == 110.0


def test_detection_is_deterministic():
    w = window_from_prices(zigzag_prices(33, base=500.0, drift=-0.3))
    a, b = AnalysisState(), AnalysisState()
    detect_structure(w, a)
    detect_structure(w, b)
    detect_structure(w, b)
    assert (a.last_structure, a.bias, a.recent_highs, a.recent_lows) == (
        b.last_structure, b.bias, b.recent_highs, b.recent_lows)
