import logging
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

from trade_utils.clients.dto import InstrumentInfo
from trade_utils.clients.errors import PrecisionError

logger = logging.getLogger(__name__)

ROUNDING = ROUND_HALF_EVEN


def precision_of(reference: str) -> int:
    """Number of fractional digits in a tick/lot size string, e.g. "0.010" -> 3.

    A reference without a decimal point ("1", "10") has zero fractional digits.
    """
    if not isinstance(reference, str):
        raise PrecisionError(f"Precision reference must be a string, got {reference!r}")
    text = reference.strip()
    if not text or "e" in text.lower():
        raise PrecisionError(f"Unusable precision reference {reference!r}")
    try:
        step = Decimal(text)
    except InvalidOperation as e:
        raise PrecisionError(f"Precision reference {reference!r} is not a decimal number") from e
    if not step.is_finite() or step <= 0:
        raise PrecisionError(f"Precision reference {reference!r} must be a positive number")

    point = text.find(".")
    if point < 0:
        logger.debug(f"Precision reference {reference!r} has no decimal point, using 0 fractional digits")
        return 0
    return len(text) - 1 - point


def format_to_precision(value: float | Decimal, reference: str) -> str:
    """Render ``value`` with exactly as many fractional digits as ``reference`` carries.

    Floats are converted through their shortest repr, so 1.2345 rounds as the
    decimal 1.2345 does. Ties go to the even digit.
    """
    digits = precision_of(reference)
    amount = value if isinstance(value, Decimal) else Decimal(repr(float(value)))
    if not amount.is_finite():
        raise PrecisionError(f"Cannot format non-finite value {value!r}")
    try:
        quantized = amount.quantize(Decimal(1).scaleb(-digits), rounding=ROUNDING)
    except InvalidOperation as e:
        raise PrecisionError(f"Cannot format {value!r} with {digits} fractional digits") from e
    return format(quantized, "f")


def format_quantity(quantity: float | Decimal, instrument: InstrumentInfo) -> str:
    """Round to the lot size; a result of zero or below the minimum quantity is an error."""
    formatted = format_to_precision(quantity, instrument.lot_size)
    amount = Decimal(formatted)
    if amount <= 0 or amount < Decimal(repr(float(instrument.min_qty))):
        raise PrecisionError(
            f"Quantity {quantity!r} rounds to {formatted} at lot size {instrument.lot_size}, "
            f"below the minimum {instrument.min_qty} for {instrument.symbol}"
        )
    return formatted


def format_price(price: float | Decimal, instrument: InstrumentInfo) -> str:
    return format_to_precision(price, instrument.tick_size)
