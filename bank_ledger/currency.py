"""
Currency Module

Handles ISO 4217 currency codes, minor-unit precision and the Money value
type. NEVER uses float for monetary values.
"""

from decimal import Decimal, InvalidOperation as DecimalException, ROUND_HALF_UP, getcontext
from dataclasses import dataclass
from enum import Enum
from typing import Union
import re

from .errors import ParseError

# Set global decimal context for financial precision
getcontext().prec = 28

Numeric = Union[Decimal, int, float, str]


class Currency(Enum):
    """ISO 4217 Currency Codes with precision info"""
    USD = ("USD", 2)  # US Dollar, 2 decimal places
    EUR = ("EUR", 2)  # Euro, 2 decimal places
    GBP = ("GBP", 2)  # British Pound, 2 decimal places
    JPY = ("JPY", 0)  # Japanese Yen, 0 decimal places

    def __init__(self, code: str, precision: int):
        self.code = code
        self.precision = precision

    @property
    def quantum(self) -> Decimal:
        """Smallest representable amount (one minor unit)"""
        return Decimal(1).scaleb(-self.precision)


def to_decimal(value: Numeric) -> Decimal:
    """
    Coerce a numeric value to Decimal.

    Floats go through str() so 0.1 becomes Decimal('0.1') rather than the
    binary approximation.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a monetary amount")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except DecimalException:
            raise ValueError(f"Cannot convert '{value}' to Decimal")
    raise TypeError(f"Unsupported amount type: {type(value).__name__}")


# Largest amount or balance the ledger accepts; keeps every Money well
# inside the 28-digit context
MAX_AMOUNT = Decimal('999999999999999.99')


def exceeds_limit(value: Decimal) -> bool:
    """True if a finite Decimal is larger in magnitude than MAX_AMOUNT"""
    return abs(value) > MAX_AMOUNT


def quantize(value: Decimal, currency: Currency) -> Decimal:
    """Round a Decimal to the currency's minor unit"""
    return value.quantize(currency.quantum, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Money:
    """
    Immutable money representation with currency and proper precision.
    All account balances use this class.
    """
    amount: Decimal
    currency: Currency

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', to_decimal(self.amount))

        # Round to currency precision
        object.__setattr__(self, 'amount', quantize(self.amount, self.currency))

    @classmethod
    def zero(cls, currency: Currency) -> 'Money':
        return cls(Decimal('0'), currency)

    @classmethod
    def from_minor_units(cls, units: int, currency: Currency) -> 'Money':
        """Build Money from an integer count of minor units (e.g. cents)"""
        return cls(Decimal(units).scaleb(-currency.precision), currency)

    def to_minor_units(self) -> int:
        """Integer count of minor units"""
        return int(self.amount.scaleb(self.currency.precision))

    def _check_currency(self, other: 'Money', verb: str) -> None:
        if self.currency != other.currency:
            raise ValueError(f"Cannot {verb} {self.currency.code} and {other.currency.code}")

    def __add__(self, other: 'Money') -> 'Money':
        self._check_currency(other, "add")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        self._check_currency(other, "subtract")
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, multiplier: Numeric) -> 'Money':
        return Money(self.amount * to_decimal(multiplier), self.currency)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Money):
            return False
        return self.amount == other.amount and self.currency == other.currency

    def __hash__(self) -> int:
        return hash((self.amount, self.currency))

    def __lt__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount <= other.amount

    def __gt__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount > other.amount

    def __ge__(self, other: 'Money') -> bool:
        self._check_currency(other, "compare")
        return self.amount >= other.amount

    def is_zero(self) -> bool:
        """Check if amount is exactly zero"""
        return self.amount == Decimal('0')

    def is_positive(self) -> bool:
        """Check if amount is positive"""
        return self.amount > Decimal('0')

    def is_negative(self) -> bool:
        """Check if amount is negative"""
        return self.amount < Decimal('0')

    def to_string(self) -> str:
        """Format for display, e.g. 'USD 1,500.00'"""
        return f"{self.currency.code} {self.amount:,.{self.currency.precision}f}"

    def plain(self) -> str:
        """Bare amount at currency precision, e.g. '1500.00'"""
        return f"{self.amount:.{self.currency.precision}f}"


def parse_amount(value: str) -> Decimal:
    """
    Parse console input into a Decimal.

    Accepts an optional leading currency symbol and thousands separators
    ("$1,500.00"). A single comma followed by at most two digits is read as
    a decimal separator ("12,50").

    Args:
        value: Raw text typed by the user

    Returns:
        Decimal value

    Raises:
        ParseError: If the text is empty or not a finite number
    """
    if value is None or not value.strip():
        raise ParseError("Value must be a non-empty string")

    clean_value = value.strip().lstrip('$€£¥').strip()
    if not re.fullmatch(r'[+-]?[\d.,]+', clean_value):
        raise ParseError(f"Cannot convert '{value}' to a number")

    if ',' in clean_value and '.' in clean_value:
        clean_value = clean_value.replace(',', '')
    elif clean_value.count(',') == 1 and len(clean_value.split(',')[1]) <= 2:
        clean_value = clean_value.replace(',', '.')
    else:
        clean_value = clean_value.replace(',', '')

    try:
        result = Decimal(clean_value)
    except DecimalException:
        raise ParseError(f"Cannot convert '{value}' to a number")

    if not result.is_finite():
        raise ParseError(f"Cannot convert '{value}' to a number")
    return result


def parse_int(value: str) -> int:
    """Parse an account id or menu option"""
    try:
        return int(value.strip())
    except (AttributeError, ValueError):
        raise ParseError(f"Cannot convert '{value}' to an integer")
