"""Tests for analyze_market — candle window → MarketConditions snapshot."""

import decimal
from concurrent.futures import ThreadPoolExecutor
from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from tradesignal.errors import InsufficientData, InvalidInput
from tradesignal.strategy.indicators import calculate_ema, calculate_rsi, calculate_sma
from tradesignal.strategy.market_analyzer import analyze_market
from tradesignal.strategy.models import Candle, IndicatorConfig


def _trend_candles(n: int = 120, start: str = "100", step: str = "0.5") -> list[Candle]:
    """*n* one-minute candles drifting by *step* per candle with a small wiggle."""
    candles = []
    prev_close = Decimal(start)
    for i in range(n):
        wiggle = Decimal((i * 7) % 5 - 2) * Decimal("0.2")
        close = Decimal(start) + Decimal(step) * i + wiggle
        open_ = prev_close if i else close
        candles.append(
            Candle(
                open_time=1_700_000_000_000 + i * 60_000,
                open=open_,
                high=max(open_, close) + Decimal("0.3"),
                low=min(open_, close) - Decimal("0.3"),
                close=close,
                volume=Decimal(1000 + (i % 10) * 25),
            )
        )
        prev_close = close
    return candles


class TestAnalyzeMarket:
    def test_snapshot_fields(self):
        candles = _trend_candles()
        closes = [c.close for c in candles]
        conditions = analyze_market(candles)

        assert conditions.current_price == closes[-1]
        assert conditions.current_volume == candles[-1].volume
        assert conditions.sma9 == calculate_sma(closes, 9)
        assert conditions.sma21 == calculate_sma(closes, 21)
        assert conditions.ema100 == calculate_ema(closes, 100)
        assert conditions.rsi == calculate_rsi(closes, 14)
        assert conditions.support == min(closes[-20:])
        assert conditions.resistance == max(closes[-20:])

    def test_invariants(self):
        conditions = analyze_market(_trend_candles())
        assert 0 <= conditions.rsi <= 100
        assert conditions.bollinger_lower <= conditions.bollinger_middle <= conditions.bollinger_upper
        assert conditions.support <= conditions.current_price <= conditions.resistance
        assert 0 <= conditions.stochastic_k <= 100
        assert conditions.atr > 0

    def test_uptrend_orders_emas(self):
        conditions = analyze_market(_trend_candles())
        assert conditions.ema8 > conditions.ema21 > conditions.ema50 > conditions.ema100
        assert conditions.macd > 0
        assert conditions.momentum > 0
        assert conditions.price_slope > 0

    def test_deterministic(self):
        candles = _trend_candles()
        assert analyze_market(candles) == analyze_market(list(candles))

    def test_snapshot_is_immutable(self):
        conditions = analyze_market(_trend_candles())
        with pytest.raises(FrozenInstanceError):
            conditions.rsi = Decimal(0)

    def test_does_not_modify_window(self):
        candles = _trend_candles()
        before = list(candles)
        analyze_market(candles)
        assert candles == before

    def test_as_dict_is_string_valued(self):
        data = analyze_market(_trend_candles()).as_dict()
        assert len(data) == 23
        assert all(isinstance(v, str) for v in data.values())


class TestAnalyzeMarketErrors:
    def test_empty_window(self):
        with pytest.raises(InvalidInput):
            analyze_market([])

    def test_one_candle_short_of_ema100(self):
        with pytest.raises(InsufficientData) as exc_info:
            analyze_market(_trend_candles(99))
        assert exc_info.value.indicator == "EMA(100)"
        assert exc_info.value.missing == 1

    def test_zero_prices_are_invalid(self):
        candles = [
            Candle(i, Decimal(0), Decimal(0), Decimal(0), Decimal(0), Decimal(1))
            for i in range(120)
        ]
        with pytest.raises(InvalidInput):
            analyze_market(candles)


class TestIndicatorConfig:
    def test_default_required_candles(self):
        assert IndicatorConfig().required_candles == 100

    def test_custom_lookbacks(self):
        config = IndicatorConfig(ema_periods=(3, 5, 8, 13))
        assert config.required_candles == 26  # MACD slow EMA
        conditions = analyze_market(_trend_candles(26), config)
        assert conditions.current_price == _trend_candles(26)[-1].close

    def test_bollinger_multiplier(self):
        candles = _trend_candles()
        narrow = analyze_market(candles, IndicatorConfig(bollinger_std_dev_multiplier=Decimal(1)))
        wide = analyze_market(candles)
        assert narrow.bollinger_middle == wide.bollinger_middle
        assert narrow.bollinger_upper < wide.bollinger_upper

    @pytest.mark.parametrize(
        "overrides",
        [
            {"sma_short_period": 0},
            {"atr_period": -3},
            {"rsi_period": 1.5},
            {"slope_period": 0},
            {"ema_periods": (8, 21, 50)},
            {"ema_periods": (8, 21, 0, 100)},
            {"bollinger_std_dev_multiplier": Decimal(0)},
        ],
    )
    def test_rejects_bad_periods(self, overrides):
        with pytest.raises(InvalidInput):
            IndicatorConfig(**overrides)


class TestThreadContext:
    def test_result_ignores_caller_precision(self):
        candles = _trend_candles(start="65000.12345678", step="0.37")
        expected = analyze_market(candles)

        def analyze_at_low_precision():
            decimal.getcontext().prec = 6
            return analyze_market(candles)

        with ThreadPoolExecutor(max_workers=1) as pool:
            low_precision = pool.submit(analyze_at_low_precision).result()

        assert low_precision == expected
