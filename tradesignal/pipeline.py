"""TradeSignal — analysis pipeline.

Runs one analysis cycle: candles → indicators → regime → condition flags →
buy / sell scores.  Strictly linear and stateless; safe to call from
several threads for independent symbols.

``run_cycle()`` raises ``AnalysisError``.  ``run_analysis()`` wraps it and
returns an ``AnalysisOutcome`` holding either the result or the error, so
a polling loop can skip a cycle on ``InsufficientData`` without
exception-driven control flow.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from tradesignal.errors import AnalysisError, InsufficientData
from tradesignal.strategy.conditions import (
    SignalSettings,
    evaluate_buy_conditions,
    evaluate_sell_conditions,
)
from tradesignal.strategy.market_analyzer import analyze_market
from tradesignal.strategy.market_filter import is_market_favorable
from tradesignal.strategy.models import (
    Candle,
    IndicatorConfig,
    MarketConditions,
    MarketType,
    Position,
    SignalEvaluation,
    SignalInputs,
)
from tradesignal.strategy.regime import classify_market
from tradesignal.strategy.scoring import evaluate_buy, evaluate_sell

logger = logging.getLogger("tradesignal")


@dataclass(frozen=True)
class MarketReport:
    """Indicator snapshot plus the regime it was classified as."""

    conditions: MarketConditions
    market_type: MarketType


@dataclass(frozen=True)
class CycleResult:
    """Everything one analysis cycle produced."""

    symbol: str
    conditions: MarketConditions
    market_type: MarketType
    buy_inputs: SignalInputs
    sell_inputs: SignalInputs
    buy: SignalEvaluation
    sell: SignalEvaluation
    market_favorable: bool

    @property
    def action(self) -> str:
        """``"buy"``, ``"sell"`` or ``"hold"``.  Buy takes precedence."""
        if self.buy.decision:
            return "buy"
        if self.sell.decision:
            return "sell"
        return "hold"

    def as_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "action": self.action,
            "market_type": self.market_type.value,
            "market_favorable": self.market_favorable,
            "conditions": self.conditions.as_dict(),
            "buy": self.buy.as_dict(),
            "sell": self.sell.as_dict(),
            "buy_inputs": self.buy_inputs.as_dict(),
            "sell_inputs": self.sell_inputs.as_dict(),
        }


@dataclass(frozen=True)
class AnalysisOutcome:
    """Either a ``CycleResult`` or the ``AnalysisError`` that prevented it."""

    result: Optional[CycleResult] = None
    error: Optional[AnalysisError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error is not None else None


def analyze(
    candles: list[Candle],
    config: Optional[IndicatorConfig] = None,
) -> MarketReport:
    """Compute the indicator snapshot and classify the regime."""
    conditions = analyze_market(candles, config)
    return MarketReport(conditions=conditions, market_type=classify_market(conditions))


def run_cycle(
    candles: list[Candle],
    config: Optional[IndicatorConfig] = None,
    settings: Optional[SignalSettings] = None,
    position: Optional[Position] = None,
    symbol: str = "",
) -> CycleResult:
    """Run one full analysis cycle.

    Args:
        candles: Candle window, oldest-first.
        config: Indicator lookbacks.
        settings: Condition-flag thresholds.
        position: Open long position, if any; enables stop-loss and
            take-profit flags.
        symbol: Label used in log lines and the result.

    Raises:
        InsufficientData: the window is too short for some indicator.
        InvalidInput: empty window, bad periods or degenerate data.
    """
    report = analyze(candles, config)
    logger.debug("[%s] Snapshot: %s", symbol or "-", report.conditions.as_dict())
    buy_inputs = evaluate_buy_conditions(report.conditions, candles, settings)
    sell_inputs = evaluate_sell_conditions(report.conditions, candles, settings, position)
    buy = evaluate_buy(buy_inputs, report.market_type)
    sell = evaluate_sell(sell_inputs, report.market_type)

    result = CycleResult(
        symbol=symbol,
        conditions=report.conditions,
        market_type=report.market_type,
        buy_inputs=buy_inputs,
        sell_inputs=sell_inputs,
        buy=buy,
        sell=sell,
        market_favorable=is_market_favorable(candles),
    )
    logger.info(
        "[%s] %s | price %s | buy %s/%s | sell %s/%s → %s",
        symbol or "-",
        result.market_type.value,
        result.conditions.current_price,
        buy.score,
        buy.threshold,
        sell.score,
        sell.threshold,
        result.action,
    )
    return result


def run_analysis(
    candles: list[Candle],
    config: Optional[IndicatorConfig] = None,
    settings: Optional[SignalSettings] = None,
    position: Optional[Position] = None,
    symbol: str = "",
) -> AnalysisOutcome:
    """Like ``run_cycle()`` but returns errors as an ``AnalysisOutcome``.

    ``InsufficientData`` is logged as a warning (skip, retry next cycle);
    ``InvalidInput`` as an error (upstream data is corrupt).
    """
    try:
        result = run_cycle(candles, config, settings, position, symbol)
    except InsufficientData as exc:
        logger.warning("[%s] Skipping cycle: %s", symbol or "-", exc)
        return AnalysisOutcome(error=exc)
    except AnalysisError as exc:
        logger.error("[%s] Invalid market data: %s", symbol or "-", exc)
        return AnalysisOutcome(error=exc)
    return AnalysisOutcome(result=result)
