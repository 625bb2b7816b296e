"""
Money helpers: currency codes, amount validation, conversion to the reference currency.

Rate table: mapping currency code -> multiplier into JPY, e.g. {"JPY": 1, "USD": 150}.
A currency missing from the table converts with multiplier 1.
"""
import re
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Union

REFERENCE_CURRENCY = "JPY"

RateTable = Mapping[str, Union[Decimal, float, int]]

_AMOUNT_RE = re.compile(r"^\d+(\.\d{1,2})?$")
# prices are stored as NUMERIC(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")


class MoneyValidationError(ValueError):
    pass


class Currency(str, Enum):
    JPY = "JPY"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"
    AUD = "AUD"
    CHF = "CHF"
    CNY = "CNY"
    KRW = "KRW"
    SGD = "SGD"


VALID_CURRENCIES = frozenset(c.value for c in Currency)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.11 from turning into 0.1100000000000000005...
    return Decimal(str(value))


def rate_for(currency: str, rates: RateTable) -> Decimal:
    """Multiplier of `currency` into the reference currency (1 when absent)."""
    rate = rates.get(currency)
    if rate is None:
        return Decimal(1)
    return to_decimal(rate)


def convert_to_reference(amount, currency: str, rates: RateTable) -> Decimal:
    return to_decimal(amount) * rate_for(currency, rates)


def validate_amount(value) -> Decimal:
    """
    Validate a price: positive, at most 2 decimal places, below 10^10.

    Accepts int / float / Decimal / str ("100,50" is normalized to "100.50").

    Raises:
        MoneyValidationError
    """
    if isinstance(value, bool):
        raise MoneyValidationError("Price must be a positive number")
    raw = str(value).strip().replace(",", ".")
    try:
        amount = Decimal(raw)
    except (InvalidOperation, ValueError):
        raise MoneyValidationError("Price must be a positive number")
    if not amount.is_finite() or amount <= 0:
        raise MoneyValidationError("Price must be a positive number")
    if amount > MAX_AMOUNT:
        raise MoneyValidationError(f"Price must not exceed {MAX_AMOUNT}")
    if not _AMOUNT_RE.match(format(amount.normalize(), "f")):
        raise MoneyValidationError("Price allows at most 2 decimal places")
    return amount


def validate_currency(value: str) -> str:
    code = (value or "").strip().upper()
    if code not in VALID_CURRENCIES:
        raise MoneyValidationError(f"Invalid currency: {value}")
    return code
