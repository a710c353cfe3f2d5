"""
Conversion between major currency units and provider minor units.

Providers take integer amounts in the smallest denomination of a currency
(paise for INR, cents for USD, fils for KWD). All conversions in the
gateways go through this module so unit bugs stay in one place.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from .base import InvalidAmount, UnsupportedCurrency


# ISO 4217 code -> number of decimal places in the minor unit
CURRENCY_EXPONENTS = {
    'AED': 2,
    'AUD': 2,
    'BDT': 2,
    'CAD': 2,
    'CHF': 2,
    'CNY': 2,
    'EUR': 2,
    'GBP': 2,
    'HKD': 2,
    'IDR': 2,
    'INR': 2,
    'LKR': 2,
    'MYR': 2,
    'NPR': 2,
    'NZD': 2,
    'PHP': 2,
    'QAR': 2,
    'SAR': 2,
    'SGD': 2,
    'THB': 2,
    'USD': 2,
    'ZAR': 2,
    'CLP': 0,
    'JPY': 0,
    'KRW': 0,
    'VND': 0,
    'BHD': 3,
    'JOD': 3,
    'KWD': 3,
    'OMR': 3,
}

Amount = Union[Decimal, int, float, str]


def get_exponent(currency: str) -> int:
    """
    Return the minor-unit exponent for a currency code.

    Raises:
        UnsupportedCurrency: If the code is not in CURRENCY_EXPONENTS
    """
    code = (currency or '').strip().upper()
    if code not in CURRENCY_EXPONENTS:
        raise UnsupportedCurrency(
            message=f"Unsupported currency: {currency!r}",
            error_code='unsupported_currency'
        )
    return CURRENCY_EXPONENTS[code]


def _to_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, bool):
        raise InvalidAmount(message=f"Invalid amount: {amount!r}", error_code='invalid_amount')
    try:
        # Floats go through str() so 150.1 stays 150.1 and not 150.0999...
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(message=f"Invalid amount: {amount!r}", error_code='invalid_amount')

    if not value.is_finite():
        raise InvalidAmount(message=f"Invalid amount: {amount!r}", error_code='invalid_amount')
    return value


def to_minor_units(amount: Amount, currency: str) -> int:
    """
    Convert a major-unit amount to the provider's integer minor units.

    Precision finer than the currency supports is rounded half-up.

    Example:
        >>> to_minor_units(Decimal('150.00'), 'INR')
        15000

    Raises:
        InvalidAmount: For negative or non-numeric amounts
        UnsupportedCurrency: For unknown currency codes
    """
    exponent = get_exponent(currency)
    value = _to_decimal(amount)
    if value < 0:
        raise InvalidAmount(
            message=f"Amount must not be negative: {amount}",
            error_code='invalid_amount'
        )

    minor = value.scaleb(exponent).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return int(minor)


def to_major_units(minor_amount: int, currency: str) -> Decimal:
    """
    Convert provider minor units back to a major-unit Decimal.

    Example:
        >>> to_major_units(15000, 'INR')
        Decimal('150.00')
    """
    exponent = get_exponent(currency)
    value = _to_decimal(minor_amount)
    return value.scaleb(-exponent).quantize(Decimal(1).scaleb(-exponent))
