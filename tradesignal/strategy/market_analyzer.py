"""Market analyzer — turns a candle window into one ``MarketConditions`` snapshot.

Pure function, no I/O.  The window must be sorted oldest-first by the
caller; it is neither sorted nor deduplicated here.
"""

from typing import Optional

from tradesignal.errors import InvalidInput
from tradesignal.strategy.decimal_ops import fixed_context
from tradesignal.strategy.indicators import (
    average_volume,
    calculate_atr,
    calculate_bollinger,
    calculate_ema,
    calculate_macd,
    calculate_momentum,
    calculate_obv,
    calculate_price_slope,
    calculate_resistance,
    calculate_rsi,
    calculate_sma,
    calculate_stochastic,
    calculate_support,
    calculate_volatility,
)
from tradesignal.strategy.models import Candle, IndicatorConfig, MarketConditions


@fixed_context
def analyze_market(
    candles: list[Candle],
    config: Optional[IndicatorConfig] = None,
) -> MarketConditions:
    """Compute every indicator for the most recent candle in *candles*.

    Args:
        candles: Candle window, oldest-first.  Needs at least
            ``config.required_candles`` entries (100 with the defaults).
        config: Lookback periods; defaults to ``IndicatorConfig()``.

    Returns:
        An immutable ``MarketConditions`` snapshot.

    Raises:
        InvalidInput: empty window, or a zero EMA50 / Bollinger middle that
            would make the regime classification divide by zero.
        InsufficientData: the window is shorter than some indicator's
            lookback; the error names that indicator.
    """
    if not candles:
        raise InvalidInput("Empty candle window for market analysis")

    config = config or IndicatorConfig()
    closes = [c.close for c in candles]
    ema_short, ema_mid, ema_long, ema_trend = config.ema_periods

    rsi = calculate_rsi(closes, config.rsi_period)
    sma_short = calculate_sma(closes, config.sma_short_period)
    sma_long = calculate_sma(closes, config.sma_long_period)
    support = calculate_support(closes, config.support_resistance_window)
    resistance = calculate_resistance(closes, config.support_resistance_window)
    ema8 = calculate_ema(closes, ema_short)
    ema21 = calculate_ema(closes, ema_mid)
    ema50 = calculate_ema(closes, ema_long)
    ema100 = calculate_ema(closes, ema_trend)
    momentum = calculate_momentum(closes, config.momentum_period)
    volatility = calculate_volatility(closes, config.volatility_period)
    upper, middle, lower = calculate_bollinger(
        closes, config.bollinger_period, config.bollinger_std_dev_multiplier
    )
    price_slope = calculate_price_slope(closes, config.slope_period)
    macd = calculate_macd(closes, config.macd_fast_period, config.macd_slow_period)
    stochastic_k, stochastic_d = calculate_stochastic(
        candles, config.stochastic_period, config.stochastic_d_period
    )
    atr = calculate_atr(candles, config.atr_period)
    obv = calculate_obv(candles)

    if ema50 == 0:
        raise InvalidInput(f"EMA({ema_long}) is zero; candle data looks corrupt")
    if middle == 0:
        raise InvalidInput(
            f"Bollinger({config.bollinger_period}) middle band is zero; "
            "candle data looks corrupt"
        )

    return MarketConditions(
        rsi=rsi,
        sma9=sma_short,
        sma21=sma_long,
        support=support,
        resistance=resistance,
        current_price=closes[-1],
        current_volume=candles[-1].volume,
        average_volume=average_volume(candles),
        ema8=ema8,
        ema21=ema21,
        ema50=ema50,
        ema100=ema100,
        momentum=momentum,
        volatility=volatility,
        bollinger_upper=upper,
        bollinger_middle=middle,
        bollinger_lower=lower,
        price_slope=price_slope,
        macd=macd,
        stochastic_k=stochastic_k,
        stochastic_d=stochastic_d,
        atr=atr,
        obv=obv,
    )
