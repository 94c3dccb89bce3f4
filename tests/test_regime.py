"""Deterministic tests for the market regime classifier.

Each scenario starts from a flat, range-bound snapshot and overrides only
the fields the rule under test reads.
"""

from decimal import Decimal

import pytest

from tradesignal.strategy.models import MarketConditions, MarketType
from tradesignal.strategy.regime import (
    band_position,
    band_width_percent,
    classify_market,
    price_to_ema50_percent,
)


def _conditions(**overrides) -> MarketConditions:
    """Flat market at 100 with 2% bands — classifies as RANGE_BOUND."""
    values = {
        "rsi": 50,
        "sma9": 100,
        "sma21": 100,
        "support": 98,
        "resistance": 102,
        "current_price": 100,
        "current_volume": 1000,
        "average_volume": 1000,
        "ema8": 100,
        "ema21": 100,
        "ema50": 100,
        "ema100": 100,
        "momentum": 0,
        "volatility": "0.5",
        "bollinger_upper": 101,
        "bollinger_middle": 100,
        "bollinger_lower": 99,
        "price_slope": 0,
        "macd": 0,
        "stochastic_k": 50,
        "stochastic_d": 50,
        "atr": 1,
        "obv": 0,
    }
    values.update(overrides)
    return MarketConditions(**{k: Decimal(str(v)) for k, v in values.items()})


def _strong_uptrend(**overrides) -> MarketConditions:
    values = {
        "ema8": 110, "ema21": 108, "ema50": 105, "ema100": 100,
        "current_price": 112, "momentum": "0.5", "volatility": 1, "rsi": 60,
        "bollinger_upper": 114, "bollinger_middle": 108, "bollinger_lower": 102,
        "price_slope": "0.5",
    }
    values.update(overrides)
    return _conditions(**values)


def _strong_downtrend(**overrides) -> MarketConditions:
    values = {
        "ema8": 90, "ema21": 92, "ema50": 95, "ema100": 100,
        "current_price": 88, "momentum": "-0.5", "volatility": 1, "rsi": 40,
        "bollinger_upper": 98, "bollinger_middle": 92, "bollinger_lower": 86,
        "price_slope": "-0.5",
    }
    values.update(overrides)
    return _conditions(**values)


def _oversold_reversal(**overrides) -> MarketConditions:
    """Price under the averages, oversold, slope turning up, momentum flat."""
    values = {
        "ema8": 98, "ema21": 99, "ema50": 100, "ema100": 101,
        "current_price": 97, "rsi": 18, "momentum": 0, "volatility": 1,
        "bollinger_upper": 104, "bollinger_middle": 100, "bollinger_lower": 96,
        "price_slope": "0.001",
    }
    values.update(overrides)
    return _conditions(**values)


# ── Derived quantities ───────────────────────────────────────────────────


class TestDerivedQuantities:
    def test_band_width_percent(self):
        assert band_width_percent(_conditions()) == Decimal(2)

    def test_band_position_mid(self):
        assert band_position(_conditions()) == Decimal("0.5")

    def test_band_position_at_lower_band(self):
        assert band_position(_conditions(current_price=99)) == 0

    def test_collapsed_bands_count_as_mid_band(self):
        flat = _conditions(bollinger_upper=100, bollinger_lower=100)
        assert band_position(flat) == Decimal("0.5")

    def test_price_to_ema50_is_absolute(self):
        above = price_to_ema50_percent(_conditions(current_price=102))
        below = price_to_ema50_percent(_conditions(current_price=98))
        assert above == below == Decimal(2)


# ── Decision table ───────────────────────────────────────────────────────


class TestClassifyMarket:
    def test_flat_market_is_range_bound(self):
        assert classify_market(_conditions()) == MarketType.RANGE_BOUND

    def test_strong_uptrend(self):
        assert classify_market(_strong_uptrend()) == MarketType.STRONG_UPTREND

    def test_strong_downtrend(self):
        assert classify_market(_strong_downtrend()) == MarketType.STRONG_DOWNTREND

    def test_extreme_volatility_overrides_trend(self):
        assert classify_market(_strong_uptrend(volatility=6)) == MarketType.HIGH_VOLATILITY

    def test_strongly_oversold_reversal(self):
        assert classify_market(_oversold_reversal()) == MarketType.TREND_REVERSAL

    def test_reversal_beats_high_volatility(self):
        # volatility 4 with 8% bands would match the high-volatility rule
        assert classify_market(_oversold_reversal(volatility=4)) == MarketType.TREND_REVERSAL

    def test_mildly_oversold_reversal(self):
        assert classify_market(_oversold_reversal(rsi=25)) == MarketType.TREND_REVERSAL

    def test_reversal_needs_flat_momentum(self):
        result = classify_market(_oversold_reversal(momentum="0.1"))
        assert result != MarketType.TREND_REVERSAL

    def test_overbought_reversal(self):
        snapshot = _conditions(
            ema8=102, ema21=101, ema50=100, ema100=99, current_price=103, rsi=85,
            bollinger_upper=104, bollinger_middle=100, bollinger_lower=96,
            price_slope="-0.001",
        )
        assert classify_market(snapshot) == MarketType.TREND_REVERSAL

    def test_high_volatility_with_very_wide_bands(self):
        snapshot = _conditions(
            volatility=4, bollinger_upper=104, bollinger_middle=100, bollinger_lower=96,
        )
        assert classify_market(snapshot) == MarketType.HIGH_VOLATILITY

    def test_breakout_up(self):
        snapshot = _conditions(current_price="100.5", momentum="0.1", price_slope="0.01")
        assert classify_market(snapshot) == MarketType.WEAK_UPTREND

    def test_breakout_down(self):
        snapshot = _conditions(current_price="99.5", momentum="-0.1", price_slope="-0.01")
        assert classify_market(snapshot) == MarketType.WEAK_DOWNTREND

    def test_squeeze_beats_weak_uptrend(self):
        snapshot = _conditions(
            ema8=101, ema21="100.5", ema50=100, ema100=99,
            momentum="0.02", volatility=2,
            bollinger_upper="100.5", bollinger_lower="99.5",
        )
        assert classify_market(snapshot) == MarketType.RANGE_BOUND

    def test_weak_uptrend(self):
        snapshot = _conditions(
            ema8=101, ema21="100.5", ema50=100, ema100=99,
            momentum="0.02", volatility=2, rsi=60,
            bollinger_upper="100.5", bollinger_lower="99.5",
        )
        assert classify_market(snapshot) == MarketType.WEAK_UPTREND

    def test_weak_downtrend(self):
        snapshot = _conditions(ema8=99, ema21="99.5", ema50=100, ema100=101, momentum="-0.02")
        assert classify_market(snapshot) == MarketType.WEAK_DOWNTREND

    def test_wide_bands_without_trend(self):
        snapshot = _conditions(
            ema100="99.9", bollinger_upper=103, bollinger_lower=97,
        )
        assert classify_market(snapshot) == MarketType.HIGH_VOLATILITY

    def test_falls_through_to_range_bound(self):
        snapshot = _conditions(
            current_price="98.5", bollinger_upper=103, bollinger_lower=97,
        )
        assert classify_market(snapshot) == MarketType.RANGE_BOUND

    def test_collapsed_bands_do_not_crash(self):
        snapshot = _conditions(
            rsi=100, volatility=0,
            bollinger_upper=100, bollinger_middle=100, bollinger_lower=100,
        )
        assert classify_market(snapshot) == MarketType.RANGE_BOUND

    @pytest.mark.parametrize(
        "snapshot",
        [_conditions(), _strong_uptrend(), _strong_downtrend(), _oversold_reversal()],
    )
    def test_deterministic(self, snapshot):
        assert classify_market(snapshot) == classify_market(snapshot)
