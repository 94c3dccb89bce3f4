"""Fixed-point decimal arithmetic — one scale and rounding policy for every computation.

Every division, square root and EMA step is rounded to ``SCALE`` (8)
fractional digits using round-half-up.  Public computations run under the
module-level ``CONTEXT`` (see ``fixed_context``) rather than the calling
thread's context, so results do not depend on how that thread is configured.
"""

import functools
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation, localcontext

from tradesignal.errors import InvalidInput

SCALE = 8
QUANTUM = Decimal(1).scaleb(-SCALE)  # 0.00000001
CONTEXT = Context(prec=40, rounding=ROUND_HALF_UP)

ZERO = Decimal(0)
ONE = Decimal(1)
HUNDRED = Decimal(100)


def fixed_context(func):
    """Run *func* with ``CONTEXT`` as the active decimal context.

    ``+``, ``-``, ``*`` and ``sum()`` inside *func* then round the same way
    on every thread.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with localcontext(CONTEXT):
            return func(*args, **kwargs)

    return wrapper


def to_decimal(value) -> Decimal:
    """Convert *value* to ``Decimal`` without passing through binary floats.

    Floats are converted through their shortest ``repr`` so ``0.1`` becomes
    ``Decimal("0.1")``.  Raises ``InvalidInput`` for anything that is not a
    finite number.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise InvalidInput(f"Expected a number, got {value!r}")
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value.strip() if isinstance(value, str) else value)
        except InvalidOperation:
            raise InvalidInput(f"Not a decimal number: {value!r}") from None
    elif isinstance(value, float):
        result = Decimal(repr(value))
    else:
        raise InvalidInput(f"Expected a number, got {type(value).__name__}")

    if not result.is_finite():
        raise InvalidInput(f"Not a finite number: {value!r}")
    return result


def quantize(value: Decimal) -> Decimal:
    """Round *value* to ``SCALE`` places, half-up.

    Raises ``InvalidInput`` when *value* has more integer digits than
    ``CONTEXT`` can hold at that scale.
    """
    try:
        return value.quantize(QUANTUM, rounding=ROUND_HALF_UP, context=CONTEXT)
    except InvalidOperation:
        raise InvalidInput(
            f"{value} is out of range: at most {CONTEXT.prec - SCALE} integer digits"
        ) from None


def divide(numerator: Decimal, denominator: Decimal, what: str = "division") -> Decimal:
    """Divide and round to ``SCALE`` places, half-up.

    Raises ``InvalidInput`` naming *what* when the denominator is zero.
    """
    if denominator == 0:
        raise InvalidInput(f"Zero denominator in {what}")
    return quantize(CONTEXT.divide(numerator, denominator))


@fixed_context
def mean(values: list[Decimal], what: str = "mean") -> Decimal:
    """Arithmetic mean of *values*, rounded to ``SCALE`` places."""
    if not values:
        raise InvalidInput(f"Cannot take the {what} of an empty series")
    return divide(sum(values, ZERO), Decimal(len(values)), what)


def sqrt(value: Decimal) -> Decimal:
    """Square root rounded to ``SCALE`` places.  *value* must be >= 0."""
    if value < 0:
        raise InvalidInput(f"Square root of negative value {value}")
    return quantize(value.sqrt(context=CONTEXT))


@fixed_context
def std_dev(values: list[Decimal], what: str = "standard deviation") -> Decimal:
    """Population standard deviation of *values*, rounded to ``SCALE`` places."""
    avg = mean(values, what)
    squared = sum((CONTEXT.multiply(v - avg, v - avg) for v in values), ZERO)
    return sqrt(divide(squared, Decimal(len(values)), what))
