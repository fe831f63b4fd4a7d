"""Pure scaling functions between native, oracle and accounting precision — no I/O.

Accounting precision carries 18 fractional digits. Every division floors,
which always works against the position owner: less credited value for
collateral, fewer asset units for a given value.
"""
from __future__ import annotations

from .constants import ACCOUNTING_DECIMALS, MAX_ASSET_DECIMALS
from .errors import InvalidInputError, InvalidPriceError, PrecisionUnsupportedError
from .fixed_point import mul_div
from .models import PriceQuote


def normalize_price(quote: PriceQuote) -> int:
    """Rescale an oracle quote to accounting precision.

    Examples:
        PriceQuote(value=2000_00000000, decimals=8) → 2000 * 10**18
        PriceQuote(value=1_000000, decimals=6) → 10**18
    """
    if quote.value <= 0:
        raise InvalidPriceError(f"Price must be positive, got {quote.value}")
    if quote.decimals > ACCOUNTING_DECIMALS:
        raise PrecisionUnsupportedError(
            f"Price precision {quote.decimals} exceeds {ACCOUNTING_DECIMALS} decimals"
        )
    return quote.value * 10 ** (ACCOUNTING_DECIMALS - quote.decimals)


def _check_operands(amount: int, decimals: int, price: int) -> None:
    if amount < 0:
        raise InvalidInputError(f"Amount must be non-negative, got {amount}")
    if not 0 <= decimals <= MAX_ASSET_DECIMALS:
        raise PrecisionUnsupportedError(f"Unsupported asset precision {decimals}")
    if price <= 0:
        raise InvalidPriceError(f"Price must be positive, got {price}")


def asset_value(amount: int, decimals: int, price: int) -> int:
    """Accounting value of ``amount`` native units at normalized ``price``.

    value = amount * price / 10^decimals
    """
    _check_operands(amount, decimals, price)
    return mul_div(amount, price, 10**decimals)


def value_to_asset_amount(value: int, decimals: int, price: int) -> int:
    """Native units worth ``value`` at normalized ``price``.

    amount = value * 10^decimals / price
    """
    _check_operands(value, decimals, price)
    return mul_div(value, 10**decimals, price)
