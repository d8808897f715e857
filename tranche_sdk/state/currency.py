"""
Token identities and exact currency amounts.

Amounts are held as exact rationals of *raw base units* (quantity * 10^decimals),
so proportional math never loses precision until a caller asks for the integer
`quotient`. Every binary operation between two amounts requires both operands to
carry the same token; a mismatch raises `InvalidCurrencyError`.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from fractions import Fraction
from typing import Iterable, Optional, Union

from ..errors import InvalidCurrencyError


# Type aliases
AssetId = str  # 0x-prefixed contract address, compared case-insensitively
Amount = int  # Raw base units (arbitrary precision)
Scalar = Union[int, Fraction]

MAX_UINT256 = (1 << 256) - 1


def address_equals(address1: AssetId, address2: AssetId) -> bool:
    return address1.lower() == address2.lower()


def contains_address(addresses: Iterable[AssetId], test: AssetId) -> bool:
    return any(address_equals(address, test) for address in addresses)


def normalize_address(address: str) -> AssetId:
    """Lower-case, 0x-prefixed form of a 20-byte hex address."""
    if not isinstance(address, str):
        raise InvalidCurrencyError(f"address must be a str, got {type(address).__name__}")
    body = address.strip()
    if body[:2].lower() == "0x":
        body = body[2:]
    if len(body) != 40 or any(c not in string.hexdigits for c in body):
        raise InvalidCurrencyError(f"not a 20-byte hex address: {address!r}")
    return "0x" + body.lower()


def _require_scalar(name: str, value: object) -> Fraction:
    if isinstance(value, bool) or not isinstance(value, (int, Fraction)):
        raise TypeError(f"{name} must be an int or Fraction, got {type(value).__name__}")
    return Fraction(value)


@dataclass(frozen=True, eq=False)
class Token:
    """
    An ERC-20 style token identity.

    Equality is by chain id plus case-insensitive address; symbol and name are
    display metadata only.
    """

    address: AssetId
    decimals: int
    symbol: Optional[str] = None
    name: Optional[str] = None
    chain_id: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.address, str) or not self.address:
            raise ValueError("token address must be a non-empty string")
        if not isinstance(self.decimals, int) or isinstance(self.decimals, bool):
            raise TypeError("token decimals must be an int")
        if not (0 <= self.decimals < 256):
            raise ValueError(f"token decimals must be in [0, 255]: {self.decimals}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return self.chain_id == other.chain_id and address_equals(self.address, other.address)

    def __hash__(self) -> int:
        return hash((self.chain_id, self.address.lower()))

    def sorts_before(self, other: Token) -> bool:
        """AMM token0/token1 ordering: lower address first."""
        if self.chain_id != other.chain_id:
            raise InvalidCurrencyError("cannot order tokens from different chains")
        if address_equals(self.address, other.address):
            raise InvalidCurrencyError(f"tokens share an address: {self.address}")
        return self.address.lower() < other.address.lower()

    def __repr__(self) -> str:
        label = self.symbol or self.address
        return f"Token({label}, decimals={self.decimals})"


@dataclass(frozen=True, eq=False)
class CurrencyAmount:
    """Exact amount of `currency`, stored as a rational number of raw base units."""

    currency: Token
    raw: Fraction

    def __post_init__(self) -> None:
        if not isinstance(self.currency, Token):
            raise TypeError("currency must be a Token")
        object.__setattr__(self, "raw", _require_scalar("raw", self.raw))

    @classmethod
    def from_raw_amount(cls, currency: Token, raw: Union[int, str]) -> CurrencyAmount:
        """Build from integer base units; base-10 strings are accepted (indexer output)."""
        if isinstance(raw, str):
            raw = int(raw, 10)
        return cls(currency, Fraction(raw))

    @classmethod
    def from_fractional_amount(cls, currency: Token, numerator: int, denominator: int) -> CurrencyAmount:
        return cls(currency, Fraction(numerator, denominator))

    @classmethod
    def zero(cls, currency: Token) -> CurrencyAmount:
        return cls(currency, Fraction(0))

    @property
    def quotient(self) -> Amount:
        """Raw base units, rounded toward negative infinity."""
        return self.raw.numerator // self.raw.denominator

    @property
    def is_zero(self) -> bool:
        return self.raw == 0

    def to_exact(self) -> Fraction:
        """Quantity in whole token units."""
        return self.raw / (10 ** self.currency.decimals)

    def _require_same_currency(self, other: CurrencyAmount, op: str) -> None:
        if self.currency != other.currency:
            raise InvalidCurrencyError(
                f"cannot {op} {other.currency!r} and {self.currency!r}: currencies differ"
            )

    def _raw_operand(self, other: object, op: str) -> Optional[Fraction]:
        if isinstance(other, CurrencyAmount):
            self._require_same_currency(other, op)
            return other.raw
        if isinstance(other, bool) or not isinstance(other, (int, Fraction)):
            return None
        return Fraction(other)

    # --- arithmetic ---------------------------------------------------------

    def add(self, other: CurrencyAmount) -> CurrencyAmount:
        self._require_same_currency(other, "add")
        return CurrencyAmount(self.currency, self.raw + other.raw)

    def subtract(self, other: CurrencyAmount) -> CurrencyAmount:
        self._require_same_currency(other, "subtract")
        return CurrencyAmount(self.currency, self.raw - other.raw)

    def multiply(self, factor: Scalar) -> CurrencyAmount:
        return CurrencyAmount(self.currency, self.raw * _require_scalar("factor", factor))

    def divide(self, divisor: Scalar) -> CurrencyAmount:
        d = _require_scalar("divisor", divisor)
        if d == 0:
            raise ZeroDivisionError("cannot divide a CurrencyAmount by zero")
        return CurrencyAmount(self.currency, self.raw / d)

    def __add__(self, other: object) -> CurrencyAmount:
        if not isinstance(other, CurrencyAmount):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: object) -> CurrencyAmount:
        if not isinstance(other, CurrencyAmount):
            return NotImplemented
        return self.subtract(other)

    def __mul__(self, other: object) -> CurrencyAmount:
        if isinstance(other, bool) or not isinstance(other, (int, Fraction)):
            return NotImplemented
        return self.multiply(other)

    __rmul__ = __mul__

    def __truediv__(self, other: object) -> CurrencyAmount:
        if isinstance(other, bool) or not isinstance(other, (int, Fraction)):
            return NotImplemented
        return self.divide(other)

    # --- comparison ---------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CurrencyAmount):
            return NotImplemented
        return self.currency == other.currency and self.raw == other.raw

    def __hash__(self) -> int:
        return hash((self.currency, self.raw))

    def __lt__(self, other: object) -> bool:
        rhs = self._raw_operand(other, "compare")
        if rhs is None:
            return NotImplemented
        return self.raw < rhs

    def __le__(self, other: object) -> bool:
        rhs = self._raw_operand(other, "compare")
        if rhs is None:
            return NotImplemented
        return self.raw <= rhs

    def __gt__(self, other: object) -> bool:
        rhs = self._raw_operand(other, "compare")
        if rhs is None:
            return NotImplemented
        return self.raw > rhs

    def __ge__(self, other: object) -> bool:
        rhs = self._raw_operand(other, "compare")
        if rhs is None:
            return NotImplemented
        return self.raw >= rhs

    def __repr__(self) -> str:
        label = self.currency.symbol or self.currency.address
        return f"CurrencyAmount({label}, raw={self.raw})"


@dataclass(frozen=True)
class Price:
    """
    Exchange rate between two tokens.

    `raw` is quote base units per base base unit; `to_fraction()` rescales it to
    whole-token units.
    """

    base_currency: Token
    quote_currency: Token
    raw: Fraction

    def __post_init__(self) -> None:
        object.__setattr__(self, "raw", _require_scalar("raw", self.raw))

    @classmethod
    def from_amounts(cls, base_amount: CurrencyAmount, quote_amount: CurrencyAmount) -> Price:
        if base_amount.is_zero:
            raise ZeroDivisionError("cannot price against a zero base amount")
        return cls(base_amount.currency, quote_amount.currency, quote_amount.raw / base_amount.raw)

    @property
    def scalar(self) -> Fraction:
        return Fraction(10 ** self.base_currency.decimals, 10 ** self.quote_currency.decimals)

    def invert(self) -> Price:
        return Price(self.quote_currency, self.base_currency, 1 / self.raw)

    def quote(self, amount: CurrencyAmount) -> CurrencyAmount:
        if amount.currency != self.base_currency:
            raise InvalidCurrencyError(
                f"price quotes {self.base_currency!r}, got an amount of {amount.currency!r}"
            )
        return CurrencyAmount(self.quote_currency, amount.raw * self.raw)

    def to_fraction(self) -> Fraction:
        return self.raw * self.scalar


def to_base_units(amount: CurrencyAmount) -> Amount:
    return amount.quotient
