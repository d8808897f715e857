"""
Constant Product Market Maker (CPMM) venue.

Wraps the integer kernel in `kernels/python/cpmm_swap_v2.py` behind the
`AmmVenue` protocol with Uniswap-v2 pair semantics:

- tokens are stored in canonical order (token0 has the lower address),
- quotes return a fresh venue carrying the post-trade reserves,
- invariant: after each swap, reserve0 * reserve1 does not decrease.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

from ..errors import InsufficientInputAmountError, InsufficientReservesError, InvalidCurrencyError, ValidationError
from ..kernels.python.cpmm_swap_v2 import BPS_DENOM, DEFAULT_FEE_BPS
from ..kernels.python.cpmm_swap_v2 import swap_exact_in as _kernel_swap_exact_in
from ..kernels.python.cpmm_swap_v2 import swap_exact_out as _kernel_swap_exact_out
from ..kernels.python.rejections import KernelRejection
from ..state.currency import CurrencyAmount, Price, Token
from .amm import translate_rejection


@dataclass(frozen=True)
class ConstantProductVenue:
    """
    Two-token constant-product pool.

    Attributes:
        reserve0: Reserve of the lower-address token
        reserve1: Reserve of the higher-address token
        fee_bps: Swap fee in basis points (Uniswap v2 uses 30)
    """

    reserve0: CurrencyAmount
    reserve1: CurrencyAmount
    fee_bps: int = DEFAULT_FEE_BPS

    def __post_init__(self) -> None:
        # Accept reserves in either order; store canonically.
        if not self.reserve0.currency.sorts_before(self.reserve1.currency):
            r0, r1 = self.reserve1, self.reserve0
            object.__setattr__(self, "reserve0", r0)
            object.__setattr__(self, "reserve1", r1)
        for name, reserve in (("reserve0", self.reserve0), ("reserve1", self.reserve1)):
            if reserve.raw.denominator != 1 or reserve.raw < 0:
                raise ValueError(f"{name} must be a non-negative whole number of base units: {reserve.raw}")
        if not isinstance(self.fee_bps, int) or isinstance(self.fee_bps, bool):
            raise TypeError("fee_bps must be an int")
        if not (0 <= self.fee_bps < BPS_DENOM):
            raise ValueError(f"fee_bps must be in [0, {BPS_DENOM}): {self.fee_bps}")

    @property
    def token0(self) -> Token:
        return self.reserve0.currency

    @property
    def token1(self) -> Token:
        return self.reserve1.currency

    @property
    def token0_price(self) -> Price:
        """Price of token0 in token1."""
        return Price.from_amounts(self._nonzero(self.reserve0), self.reserve1)

    @property
    def token1_price(self) -> Price:
        """Price of token1 in token0."""
        return Price.from_amounts(self._nonzero(self.reserve1), self.reserve0)

    @staticmethod
    def _nonzero(reserve: CurrencyAmount) -> CurrencyAmount:
        if reserve.is_zero:
            raise InsufficientReservesError(f"venue has no {reserve.currency!r} reserve")
        return reserve

    def reserve_of(self, token: Token) -> CurrencyAmount:
        if token == self.token0:
            return self.reserve0
        if token == self.token1:
            return self.reserve1
        raise InvalidCurrencyError(f"{token!r} is not traded by this venue")

    def get_constant_product(self) -> int:
        return self.reserve0.quotient * self.reserve1.quotient

    def _with_reserves(self, reserve_in: CurrencyAmount, reserve_out: CurrencyAmount) -> ConstantProductVenue:
        if reserve_in.currency == self.token0:
            return replace(self, reserve0=reserve_in, reserve1=reserve_out)
        return replace(self, reserve0=reserve_out, reserve1=reserve_in)

    async def get_output_amount(self, amount_in: CurrencyAmount) -> Tuple[CurrencyAmount, ConstantProductVenue]:
        """Quote an exact-in sale of `amount_in`; returns (amount_out, post-trade venue)."""
        reserve_in = self.reserve_of(amount_in.currency)
        reserve_out = self.reserve1 if reserve_in is self.reserve0 else self.reserve0
        gross_in = amount_in.quotient
        if gross_in <= 0:
            raise InsufficientInputAmountError(f"amount_in must be positive: {amount_in.raw}")
        try:
            res = _kernel_swap_exact_in(
                reserve_in=reserve_in.quotient,
                reserve_out=reserve_out.quotient,
                amount_in=gross_in,
                fee_bps=self.fee_bps,
            )
        except KernelRejection as exc:
            raise translate_rejection(exc) from exc

        amount_out = CurrencyAmount.from_raw_amount(reserve_out.currency, res.amount_out)
        venue = self._with_reserves(
            CurrencyAmount.from_raw_amount(reserve_in.currency, res.new_reserve_in),
            CurrencyAmount.from_raw_amount(reserve_out.currency, res.new_reserve_out),
        )
        return amount_out, venue

    async def get_input_amount(self, amount_out: CurrencyAmount) -> Tuple[CurrencyAmount, ConstantProductVenue]:
        """Quote the input needed to receive exactly `amount_out`; returns (amount_in, post-trade venue)."""
        reserve_out = self.reserve_of(amount_out.currency)
        reserve_in = self.reserve1 if reserve_out is self.reserve0 else self.reserve0
        wanted = amount_out.quotient
        if wanted <= 0:
            raise ValidationError(f"amount_out must be positive: {amount_out.raw}")
        try:
            res = _kernel_swap_exact_out(
                reserve_in=reserve_in.quotient,
                reserve_out=reserve_out.quotient,
                amount_out=wanted,
                fee_bps=self.fee_bps,
            )
        except KernelRejection as exc:
            raise translate_rejection(exc) from exc

        amount_in = CurrencyAmount.from_raw_amount(reserve_in.currency, res.amount_in)
        venue = self._with_reserves(
            CurrencyAmount.from_raw_amount(reserve_in.currency, res.new_reserve_in),
            CurrencyAmount.from_raw_amount(reserve_out.currency, res.new_reserve_out),
        )
        return amount_in, venue

    def __repr__(self) -> str:
        return (
            f"ConstantProductVenue({self.token0!r}={self.reserve0.quotient}, "
            f"{self.token1!r}={self.reserve1.quotient}, fee_bps={self.fee_bps})"
        )
