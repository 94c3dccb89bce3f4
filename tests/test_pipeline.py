"""Tests for the analysis pipeline — one cycle, end to end."""

import dataclasses
import decimal
import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

from tradesignal.errors import InsufficientData
from tradesignal.pipeline import AnalysisOutcome, analyze, run_analysis, run_cycle
from tradesignal.strategy.conditions import evaluate_buy_conditions, evaluate_sell_conditions
from tradesignal.strategy.market_analyzer import analyze_market
from tradesignal.strategy.models import Candle, MarketType, Position, SignalEvaluation
from tradesignal.strategy.regime import classify_market
from tradesignal.strategy.scoring import evaluate_buy, evaluate_sell


def _candles(n: int = 120, step: str = "0.5") -> list[Candle]:
    candles = []
    prev_close = Decimal(100)
    for i in range(n):
        close = Decimal(100) + Decimal(step) * i + Decimal((i * 3) % 4 - 1) * Decimal("0.4")
        open_ = prev_close
        candles.append(
            Candle(
                open_time=i * 60_000,
                open=open_,
                high=max(open_, close) + Decimal("0.25"),
                low=min(open_, close) - Decimal("0.25"),
                close=close,
                volume=Decimal(900 + (i % 7) * 40),
            )
        )
        prev_close = close
    return candles


class TestRunCycle:
    def test_stages_agree(self):
        candles = _candles()
        result = run_cycle(candles, symbol="BTCUSDT")

        conditions = analyze_market(candles)
        market_type = classify_market(conditions)
        assert result.conditions == conditions
        assert result.market_type == market_type
        assert result.buy_inputs == evaluate_buy_conditions(conditions, candles)
        assert result.sell_inputs == evaluate_sell_conditions(conditions, candles)
        assert result.buy == evaluate_buy(result.buy_inputs, market_type)
        assert result.sell == evaluate_sell(result.sell_inputs, market_type)

    def test_analyze_report(self):
        report = analyze(_candles())
        assert report.market_type == classify_market(report.conditions)

    def test_deterministic(self):
        candles = _candles()
        assert run_cycle(candles, symbol="X") == run_cycle(list(candles), symbol="X")

    def test_position_enables_stop_loss(self):
        candles = _candles()
        price = candles[-1].close
        result = run_cycle(candles, position=Position(average_price=price * 2))
        assert result.sell_inputs.stop_loss is True
        assert result.sell.decision is True
        assert result.buy_inputs.stop_loss is False

    def test_logs_one_line_per_cycle(self, caplog):
        caplog.set_level(logging.INFO, logger="tradesignal")
        run_cycle(_candles(), symbol="BTCUSDT")
        records = [r for r in caplog.records if r.name == "tradesignal"]
        assert len(records) == 1
        assert "BTCUSDT" in records[0].getMessage()

    def test_concurrent_cycles_match_sequential(self):
        windows = [_candles(step=step) for step in ("0.5", "-0.5", "0.1", "0")]
        expected = [run_cycle(w) for w in windows]
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(run_cycle, windows))
        assert results == expected

    def test_as_dict(self):
        data = run_cycle(_candles(), symbol="BTCUSDT").as_dict()
        assert data["symbol"] == "BTCUSDT"
        assert data["market_type"] in {m.value for m in MarketType}
        assert data["action"] in {"buy", "sell", "hold"}
        assert isinstance(data["buy"]["score"], str)


class TestAction:
    def _with(self, buy: bool, sell: bool):
        result = run_cycle(_candles())
        return dataclasses.replace(
            result,
            buy=SignalEvaluation(Decimal(0), Decimal(1), buy),
            sell=SignalEvaluation(Decimal(0), Decimal(1), sell),
        )

    def test_buy_takes_precedence(self):
        assert self._with(buy=True, sell=True).action == "buy"

    def test_sell(self):
        assert self._with(buy=False, sell=True).action == "sell"

    def test_hold(self):
        assert self._with(buy=False, sell=False).action == "hold"


class TestRunAnalysis:
    def test_ok(self):
        outcome = run_analysis(_candles(), symbol="BTCUSDT")
        assert outcome.ok
        assert outcome.error_kind is None
        assert outcome.result.symbol == "BTCUSDT"

    def test_short_window_is_skipped(self, caplog):
        caplog.set_level(logging.WARNING, logger="tradesignal")
        outcome = run_analysis(_candles(50), symbol="BTCUSDT")
        assert not outcome.ok
        assert outcome.result is None
        assert outcome.error_kind == "insufficient_data"
        assert isinstance(outcome.error, InsufficientData)
        assert any(
            r.levelno == logging.WARNING and "Skipping cycle" in r.getMessage()
            for r in caplog.records
        )

    def test_empty_window_is_invalid(self, caplog):
        caplog.set_level(logging.ERROR, logger="tradesignal")
        outcome = run_analysis([])
        assert outcome.error_kind == "invalid_input"
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    def test_outcome_defaults(self):
        assert AnalysisOutcome().ok

    def test_out_of_range_volume_is_invalid(self):
        candles = [dataclasses.replace(c, volume=Decimal("1e33")) for c in _candles()]
        outcome = run_analysis(candles)
        assert outcome.error_kind == "invalid_input"
        assert "out of range" in str(outcome.error)

    def test_result_ignores_caller_precision(self):
        candles = _candles()
        expected = run_cycle(candles)

        def run_at_low_precision():
            decimal.getcontext().prec = 6
            return run_cycle(candles)

        with ThreadPoolExecutor(max_workers=1) as pool:
            assert pool.submit(run_at_low_precision).result() == expected
