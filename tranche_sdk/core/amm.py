"""
AMM venue capability.

A venue pairs two tokens and quotes trades in either direction. Venues are
persistent values: a quote returns the amount *and* a new venue reflecting the
post-trade state, and never mutates the receiver. Price impact is path-dependent,
so callers thread the returned venue into any later trade against the same pool.

Concrete pricing models live in `cpmm.py` (constant product) and `clmm.py`
(concentrated liquidity). Loan and leverage code is written against the
`AmmVenue` protocol only.
"""

from __future__ import annotations

from typing import Protocol, Tuple, runtime_checkable

from ..errors import (
    InsufficientInputAmountError,
    InsufficientReservesError,
    InvalidCurrencyError,
    TrancheSdkError,
)
from ..kernels.python.rejections import EMPTY_RESERVE, RESERVE_EXHAUSTED, ZERO_OUTPUT, KernelRejection
from ..state.currency import CurrencyAmount, Price, Token


@runtime_checkable
class AmmVenue(Protocol):
    """Quoting capability shared by every AMM model."""

    @property
    def token0(self) -> Token: ...

    @property
    def token1(self) -> Token: ...

    @property
    def token0_price(self) -> Price: ...

    @property
    def token1_price(self) -> Price: ...

    async def get_output_amount(self, amount_in: CurrencyAmount) -> Tuple[CurrencyAmount, "AmmVenue"]: ...

    async def get_input_amount(self, amount_out: CurrencyAmount) -> Tuple[CurrencyAmount, "AmmVenue"]: ...


def involves_token(venue: AmmVenue, token: Token) -> bool:
    return token == venue.token0 or token == venue.token1


def other_token(venue: AmmVenue, token: Token) -> Token:
    """The token a venue pays out when `token` is sold into it."""
    if token == venue.token0:
        return venue.token1
    if token == venue.token1:
        return venue.token0
    raise InvalidCurrencyError(f"{token!r} is not traded by venue {venue.token0!r}/{venue.token1!r}")


def price_of(venue: AmmVenue, token: Token) -> Price:
    """Spot price of `token` quoted in the venue's other token."""
    if token == venue.token0:
        return venue.token0_price
    if token == venue.token1:
        return venue.token1_price
    raise InvalidCurrencyError(f"{token!r} is not traded by venue {venue.token0!r}/{venue.token1!r}")


def translate_rejection(exc: KernelRejection) -> TrancheSdkError:
    """Map a kernel rejection code onto the SDK error taxonomy."""
    if exc.code == ZERO_OUTPUT:
        return InsufficientInputAmountError(str(exc))
    if exc.code in (EMPTY_RESERVE, RESERVE_EXHAUSTED):
        return InsufficientReservesError(str(exc))
    return InsufficientReservesError(f"{exc.code}: {exc}")


async def sell_exact(venue: AmmVenue, amount_in: CurrencyAmount) -> Tuple[CurrencyAmount, AmmVenue]:
    """
    Exact-in quote that treats a zero-sized sale as a no-op.

    Plans routinely carry zero sales for tranches that do not need to be sold;
    quoting those would trip the venue's minimum-output check.
    """
    if amount_in.is_zero:
        return CurrencyAmount.zero(other_token(venue, amount_in.currency)), venue
    return await venue.get_output_amount(amount_in)
