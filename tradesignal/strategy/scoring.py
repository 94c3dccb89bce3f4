"""Regime-dependent signal scoring — weighted buy / sell decisions.

Each condition flag contributes its regime weight when true and its
(usually zero or negative) weight when false.  The summed score is
compared with the regime threshold.  On the sell side a stop-loss or
take-profit flag forces a sell regardless of score.

Every ``MarketType`` must appear in all four tables below.  Lookups have no
fallback; ``_check_tables()`` runs at import so a regime added to
``MarketType`` without a weight profile and threshold fails immediately.
"""

from dataclasses import dataclass
from decimal import Decimal

from tradesignal.strategy.decimal_ops import ZERO, fixed_context
from tradesignal.strategy.models import (
    SCORED_FLAGS,
    MarketType,
    SignalEvaluation,
    SignalInputs,
)


@dataclass(frozen=True)
class Weight:
    """Score contribution of one flag: *if_true* when set, *if_false* otherwise."""

    if_true: Decimal
    if_false: Decimal = ZERO


def _profile(
    rsi, rejection, volume, price, patterns, trend, macd, stoch, momentum, volatility,
) -> dict[str, Weight]:
    """Build a weight profile from ``"true/false"`` cells in table-column order."""
    cells = (rsi, rejection, volume, price, patterns, trend, macd, stoch, momentum, volatility)
    profile = {}
    for flag, cell in zip(SCORED_FLAGS, cells):
        if_true, _, if_false = cell.partition("/")
        profile[flag] = Weight(Decimal(if_true), Decimal(if_false or "0"))
    return profile


# ── Buy side ─────────────────────────────────────────────────────────────
#                                rsi         rejection   volume      price       patterns    trend       macd   stoch  momentum    volatility
_BUY_STRONG_DOWNTREND = _profile("1.8/-1.0", "1.8/-0.6", "1.6/-0.5", "1.5/-0.4", "1.4/-0.3", "0.4",      "0.5", "0.6", "0.7",      "0.3")
_BUY_RANGE_BOUND = _profile(     "1.5/-0.5", "1.0/-0.2", "1.3/-0.3", "2.0/-1.0", "0.8",      "0.3",      "0.4", "1.2", "0.5",      "0.6")
_BUY_TREND_REVERSAL = _profile(  "1.7/-0.6", "2.0/-0.8", "1.4/-0.3", "0.7",      "1.5/-0.4", "0.5",      "0.6", "0.8", "1.6/-0.5", "0.9")
_BUY_DEFAULT = _profile(         "1.2/-0.5", "1.2/-0.4", "1.5",      "1.3",      "1.3",      "0.8/-0.5", "1.1", "1.0", "1.4",      "0.7")

BUY_WEIGHTS: dict[MarketType, dict[str, Weight]] = {
    MarketType.STRONG_UPTREND: _BUY_DEFAULT,
    MarketType.WEAK_UPTREND: _BUY_DEFAULT,
    MarketType.RANGE_BOUND: _BUY_RANGE_BOUND,
    MarketType.WEAK_DOWNTREND: _BUY_DEFAULT,
    MarketType.STRONG_DOWNTREND: _BUY_STRONG_DOWNTREND,
    MarketType.HIGH_VOLATILITY: _BUY_DEFAULT,
    MarketType.TREND_REVERSAL: _BUY_TREND_REVERSAL,
}

BUY_THRESHOLDS: dict[MarketType, Decimal] = {
    MarketType.STRONG_UPTREND: Decimal("4.5"),
    MarketType.WEAK_UPTREND: Decimal("3.8"),
    MarketType.RANGE_BOUND: Decimal("3.5"),
    MarketType.WEAK_DOWNTREND: Decimal("4.8"),
    MarketType.STRONG_DOWNTREND: Decimal("5.5"),
    MarketType.HIGH_VOLATILITY: Decimal("5.0"),
    MarketType.TREND_REVERSAL: Decimal("3.3"),
}

# ── Sell side ────────────────────────────────────────────────────────────
# rejection = bearish rejection wick
#                                 rsi         rejection   volume      price       patterns    trend       macd   stoch  momentum    volatility
_SELL_STRONG_UPTREND = _profile(  "1.5/-0.5", "1.6/-0.4", "1.0",      "1.3/-0.3", "1.2/-0.2", "0.5",      "0.8", "0.7", "1.0",      "0.4")
_SELL_WEAK_UPTREND = _profile(    "1.4/-0.4", "1.4/-0.3", "1.0",      "1.2/-0.2", "1.1",      "0.7",      "0.9", "0.8", "1.0",      "0.5")
_SELL_RANGE_BOUND = _profile(     "1.5/-0.4", "1.2/-0.2", "0.8",      "2.0/-0.8", "0.8",      "0.3",      "0.5", "1.2", "0.5",      "0.6")
_SELL_DOWNTREND = _profile(       "1.0",      "1.3",      "1.0",      "1.0",      "1.0",      "1.5/-0.3", "1.2", "0.8", "1.4",      "0.6")
_SELL_HIGH_VOLATILITY = _profile( "1.3/-0.3", "1.5/-0.3", "1.2",      "1.2",      "1.0",      "0.8",      "0.9", "0.9", "1.1",      "1.2/-0.2")
_SELL_TREND_REVERSAL = _profile(  "1.7/-0.5", "2.0/-0.6", "1.2/-0.2", "0.8",      "1.5/-0.4", "0.6",      "0.8", "0.8", "1.6/-0.4", "0.7")

SELL_WEIGHTS: dict[MarketType, dict[str, Weight]] = {
    MarketType.STRONG_UPTREND: _SELL_STRONG_UPTREND,
    MarketType.WEAK_UPTREND: _SELL_WEAK_UPTREND,
    MarketType.RANGE_BOUND: _SELL_RANGE_BOUND,
    MarketType.WEAK_DOWNTREND: _SELL_DOWNTREND,
    MarketType.STRONG_DOWNTREND: _SELL_DOWNTREND,
    MarketType.HIGH_VOLATILITY: _SELL_HIGH_VOLATILITY,
    MarketType.TREND_REVERSAL: _SELL_TREND_REVERSAL,
}

SELL_THRESHOLDS: dict[MarketType, Decimal] = {
    MarketType.STRONG_UPTREND: Decimal("3.5"),
    MarketType.WEAK_UPTREND: Decimal("3.2"),
    MarketType.RANGE_BOUND: Decimal("2.8"),
    MarketType.WEAK_DOWNTREND: Decimal("2.5"),
    MarketType.STRONG_DOWNTREND: Decimal("2.5"),
    MarketType.HIGH_VOLATILITY: Decimal("2.5"),
    MarketType.TREND_REVERSAL: Decimal("3.0"),
}


def _check_tables() -> None:
    """Raise ``RuntimeError`` unless every regime has a full profile and threshold."""
    tables = {
        "BUY_WEIGHTS": BUY_WEIGHTS,
        "BUY_THRESHOLDS": BUY_THRESHOLDS,
        "SELL_WEIGHTS": SELL_WEIGHTS,
        "SELL_THRESHOLDS": SELL_THRESHOLDS,
    }
    for name, table in tables.items():
        missing = [m.name for m in MarketType if m not in table]
        if missing:
            raise RuntimeError(f"{name} has no entry for: {', '.join(missing)}")

    for name, table in (("BUY_WEIGHTS", BUY_WEIGHTS), ("SELL_WEIGHTS", SELL_WEIGHTS)):
        for market_type, profile in table.items():
            if set(profile) != set(SCORED_FLAGS):
                raise RuntimeError(
                    f"{name}[{market_type.name}] must weight exactly: {', '.join(SCORED_FLAGS)}"
                )


_check_tables()


@fixed_context
def calculate_score(inputs: SignalInputs, profile: dict[str, Weight]) -> Decimal:
    """Sum the weight of every scored flag in *inputs* under *profile*."""
    score = ZERO
    for flag in SCORED_FLAGS:
        weight = profile[flag]
        score += weight.if_true if getattr(inputs, flag) else weight.if_false
    return score


def evaluate_buy(inputs: SignalInputs, market_type: MarketType) -> SignalEvaluation:
    """Score the buy flags for *market_type*.  Buy when score >= threshold."""
    score = calculate_score(inputs, BUY_WEIGHTS[market_type])
    threshold = BUY_THRESHOLDS[market_type]
    return SignalEvaluation(score=score, threshold=threshold, decision=score >= threshold)


def evaluate_sell(inputs: SignalInputs, market_type: MarketType) -> SignalEvaluation:
    """Score the sell flags for *market_type*.

    Sell when score >= threshold, or unconditionally when ``stop_loss`` or
    ``take_profit`` is set.  The score is still reported in that case.
    """
    score = calculate_score(inputs, SELL_WEIGHTS[market_type])
    threshold = SELL_THRESHOLDS[market_type]
    decision = inputs.stop_loss or inputs.take_profit or score >= threshold
    return SignalEvaluation(score=score, threshold=threshold, decision=decision)
