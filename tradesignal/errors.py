"""Analysis error taxonomy.

Both errors subclass ``ValueError`` so callers that only care about bad
input can keep catching that.  ``kind`` is a stable string used in API
responses and pipeline outcomes.
"""


class AnalysisError(ValueError):
    """Base class for errors raised by the analysis pipeline."""

    kind = "analysis_error"


class InsufficientData(AnalysisError):
    """The candle window is shorter than an indicator's lookback.

    Not fatal: the cycle for this asset is skipped and retried once more
    candles have accumulated.
    """

    kind = "insufficient_data"

    def __init__(self, indicator: str, required: int, available: int) -> None:
        self.indicator = indicator
        self.required = required
        self.available = available
        super().__init__(
            f"Need at least {required} data points for {indicator}, "
            f"got {available} ({self.missing} missing)"
        )

    @property
    def missing(self) -> int:
        return max(self.required - self.available, 0)


class InvalidInput(AnalysisError):
    """Non-positive periods, an empty window or a degenerate computation.

    Upstream data should be treated as corrupt; retrying blindly won't help.
    """

    kind = "invalid_input"
