import numpy as np
import pytest

from analyst.data.ring_buffer import RingBufferTicks
from analyst.indicators.volatility import atr, compute_true_range, true_ranges
from analyst.ingest.simulated import SimulatedTickSource, SimulatorConfig

from tests.helpers.fake_source import make_tick


def window_of(ticks, capacity=100):
    rb = RingBufferTicks(capacity)
    for t in ticks:
        rb.append(t)
    return rb.snapshot()


def test_true_range_picks_largest_component():
    h = np.array([10.0, 12.0, 9.0])
    l = np.array([8.0, 11.5, 7.0])
    c_prev = np.array([9.0, 9.0, 12.0])
    tr = compute_true_range(h, l, c_prev)
    # H-L wins, |H-prev| wins, |L-prev| wins
    assert tr.tolist() == pytest.approx([2.0, 3.0, 5.0])


def test_atr_zero_when_window_shorter_than_period():
    w = window_of([make_tick(i, 100.0 + i, wick=1.0) for i in range(13)])
    assert atr(w, 14) == 0.0
    assert atr(window_of([]), 5) == 0.0


def test_atr_first_tick_uses_high_minus_low_only():
    # big gap into the slice's first tick must not count
    ticks = [make_tick(0, 50.0), make_tick(1, 100.0, wick=1.0), make_tick(2, 100.0, wick=1.0)]
    w = window_of(ticks)
    assert true_ranges(w, 2).tolist() == pytest.approx([2.0, 2.0])
    assert atr(w, 2) == pytest.approx(2.0)


def test_atr_uses_previous_price_inside_slice():
    ticks = [make_tick(0, 100.0, wick=1.0), make_tick(1, 105.0, wick=1.0), make_tick(2, 104.0, wick=0.5)]
    w = window_of(ticks)
    # TRs: 2.0 ; max(2, |106-100|, |104-100|)=6 ; max(1, |104.5-105|, |103.5-105|)=1.5
    assert atr(w, 3) == pytest.approx((2.0 + 6.0 + 1.5) / 3)


def test_atr_non_negative_on_random_feed():
    src = SimulatedTickSource(SimulatorConfig(seed=7), clock=iter(range(0, 1000, 5)).__next__)
    w = window_of([src.next_tick() for _ in range(60)])
    for period in (1, 5, 14, 60):
        assert atr(w, period) >= 0.0
    assert atr(w, 61) == 0.0
