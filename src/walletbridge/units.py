"""Human amount <-> base unit conversion.

Amounts travel as human-readable decimal strings and are converted to base
units exactly once, with ``decimal.Decimal`` so that the conversion is exact
for any amount within the token's precision.
"""

from decimal import ROUND_DOWN, ROUND_HALF_EVEN, Decimal, InvalidOperation, localcontext
from typing import Union

from walletbridge.errors import InvalidAmount

Amount = Union[str, int, Decimal]

# uint256 needs 78 significant digits; the default context keeps 28
_PRECISION = 100


def parse_amount(amount: Amount, decimals: int) -> Decimal:
    """Parse a human amount and check its precision.

    Args:
        amount: Human-readable amount ("1.5")
        decimals: Token decimals

    Returns:
        The amount as a Decimal

    Raises:
        InvalidAmount: Not a finite positive number, or more fractional
            digits than ``decimals``
    """
    if decimals < 0:
        raise ValueError(f"decimals must be >= 0, got {decimals}")

    if isinstance(amount, float):
        raise InvalidAmount("Amounts must be passed as strings, not floats")

    text = str(amount).strip()
    if not text:
        raise InvalidAmount("Amount is required", hint="Enter an amount.")

    try:
        value = Decimal(text)
    except InvalidOperation:
        raise InvalidAmount(f"Amount '{text}' is not a valid number") from None

    if not value.is_finite():
        raise InvalidAmount(f"Amount '{text}' is not a valid number")

    if value <= 0:
        raise InvalidAmount(
            f"Amount must be greater than zero, got {text}",
            hint="Enter an amount greater than zero.",
        )

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        exponent = value.normalize().as_tuple().exponent
    fractional_digits = -exponent if exponent < 0 else 0
    if fractional_digits > decimals:
        raise InvalidAmount(
            f"Too many decimal places in {text}: maximum {decimals} allowed",
            hint=f"Use at most {decimals} decimal places.",
        )

    return value


def to_base_units(amount: Amount, decimals: int) -> int:
    """Convert a human amount to base units: ``round(amount * 10**decimals)``."""
    value = parse_amount(amount, decimals)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = value.scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_HALF_EVEN))


def from_base_units(base_units: int, decimals: int) -> str:
    """Convert base units back to a human amount string.

    The result is canonical: no exponent and no trailing fractional zeros.
    ``from_base_units(to_base_units(a, d), d) == a`` holds as strings for
    canonical ``a``; other spellings ("1.50", "1e2") come back canonical and
    equal to ``a`` as Decimals.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be >= 0, got {decimals}")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        value = Decimal(int(base_units)).scaleb(-decimals)
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def format_amount(amount: Amount, places: int = 6) -> str:
    """Format an amount for display, truncated to ``places`` fractional digits."""
    value = Decimal(str(amount))
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        quantum = Decimal(1).scaleb(-places)
        return format(value.quantize(quantum, rounding=ROUND_DOWN), "f")
