"""CLI report — prints one analysis cycle to the console."""

from decimal import ROUND_HALF_UP, Decimal

from tradesignal.pipeline import CycleResult
from tradesignal.strategy.decimal_ops import HUNDRED, divide
from tradesignal.strategy.models import MarketConditions
from tradesignal.strategy.regime import band_position, band_width_percent

HIGH_VOLUME_RATIO = Decimal("1.2")
LOW_VOLUME_RATIO = Decimal("0.8")


def _fmt(value: Decimal, places: int = 2) -> str:
    return str(value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def _rsi_label(rsi: Decimal) -> str:
    if rsi > 70:
        return "overbought"
    if rsi < 30:
        return "oversold"
    return "neutral"


def _band_label(position_pct: Decimal) -> str:
    if position_pct > 80:
        return "upper band (sell zone)"
    if position_pct < 20:
        return "lower band (buy zone)"
    return "middle band (neutral)"


def _volume_label(conditions: MarketConditions) -> tuple[str, str]:
    if conditions.average_volume == 0:
        return "N/A", "no volume"
    ratio = divide(conditions.current_volume, conditions.average_volume, "volume ratio")
    if ratio > HIGH_VOLUME_RATIO:
        label = "high"
    elif ratio < LOW_VOLUME_RATIO:
        label = "low"
    else:
        label = "normal"
    return _fmt(ratio, 3), label


def describe_conditions(conditions: MarketConditions) -> list[str]:
    """Human-readable summary lines for an indicator snapshot."""
    c = conditions
    position_pct = band_position(c) * HUNDRED
    volume_ratio, volume_label = _volume_label(c)
    slope_arrow = "up" if c.price_slope > 0 else "down"

    return [
        f"Price:        {_fmt(c.current_price, 5)} | SMA9 {_fmt(c.sma9, 5)} | SMA21 {_fmt(c.sma21, 5)}",
        f"EMA:          8={_fmt(c.ema8)} 21={_fmt(c.ema21)} 50={_fmt(c.ema50)} 100={_fmt(c.ema100)}",
        f"RSI:          {_fmt(c.rsi)} ({_rsi_label(c.rsi)})",
        f"Momentum:     {_fmt(c.momentum)}% | Volatility {_fmt(c.volatility, 4)}%",
        f"Slope:        {slope_arrow} {_fmt(c.price_slope, 5)}",
        f"MACD:         {_fmt(c.macd, 5)} | Stoch %K {_fmt(c.stochastic_k)} %D {_fmt(c.stochastic_d)}",
        f"ATR:          {_fmt(c.atr, 5)} | OBV {_fmt(c.obv)}",
        f"Bollinger:    {_fmt(c.bollinger_lower)} / {_fmt(c.bollinger_middle)} / "
        f"{_fmt(c.bollinger_upper)} (width {_fmt(band_width_percent(c))}%)",
        f"Band pos:     {_fmt(position_pct)}% - {_band_label(position_pct)}",
        f"S/R:          {_fmt(c.support, 5)} / {_fmt(c.resistance, 5)}",
        f"Volume:       {_fmt(c.current_volume, 5)} vs avg {_fmt(c.average_volume, 5)} "
        f"(ratio {volume_ratio}, {volume_label})",
    ]


def _flags(inputs) -> str:
    active = [name.removesuffix("_condition") for name, on in inputs.as_dict().items() if on]
    return ", ".join(active) if active else "none"


def print_report(result: CycleResult) -> str:
    """Format and print one cycle.

    Returns:
        The formatted string (also printed to stdout).
    """
    symbol = result.symbol or "N/A"
    favorable = "yes" if result.market_favorable else "no (down candles dominate)"

    lines = [
        f"──────────────── TradeSignal {symbol} ────────────────",
        f"  Market type:  {result.market_type.value}",
        f"  Favorable:    {favorable}",
        *(f"  {line}" for line in describe_conditions(result.conditions)),
        f"  Buy:          {result.buy.score} / {result.buy.threshold} "
        f"-> {'BUY' if result.buy.decision else 'no'} [{_flags(result.buy_inputs)}]",
        f"  Sell:         {result.sell.score} / {result.sell.threshold} "
        f"-> {'SELL' if result.sell.decision else 'no'} [{_flags(result.sell_inputs)}]",
        f"  Action:       {result.action.upper()}",
        "──────────────────────────────────────────────────",
    ]
    output = "\n".join(lines)
    print(output)
    return output
