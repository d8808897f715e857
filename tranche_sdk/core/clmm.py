"""
Concentrated-liquidity venue (one active range).

Prices come from a Q64.96 square-root price; the pool only holds liquidity
between `sqrt_lower_x96` and `sqrt_upper_x96`. A trade that would leave the range
is rejected with `InsufficientReservesError` instead of crossing ticks.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from fractions import Fraction
from typing import Tuple

from ..errors import InsufficientInputAmountError, InvalidCurrencyError, ValidationError
from ..kernels.python.clmm_swap_v1 import DEFAULT_FEE_PIPS, PIPS_DENOM, Q96, encode_sqrt_ratio_x96
from ..kernels.python.clmm_swap_v1 import swap_exact_in as _kernel_swap_exact_in
from ..kernels.python.clmm_swap_v1 import swap_exact_out as _kernel_swap_exact_out
from ..kernels.python.rejections import KernelRejection
from ..state.currency import CurrencyAmount, Price, Token
from .amm import translate_rejection

# Uniswap v3 TickMath bounds (ticks -887272 / 887272).
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342


@dataclass(frozen=True)
class ConcentratedLiquidityVenue:
    """
    Single-range concentrated-liquidity pool.

    Attributes:
        token0: Lower-address token
        token1: Higher-address token
        sqrt_price_x96: sqrt(token1 / token0) in Q64.96
        liquidity: Active liquidity L
        sqrt_lower_x96: Lower range bound
        sqrt_upper_x96: Upper range bound
        fee_pips: Swap fee in millionths
    """

    token0: Token
    token1: Token
    sqrt_price_x96: int
    liquidity: int
    sqrt_lower_x96: int = MIN_SQRT_RATIO
    sqrt_upper_x96: int = MAX_SQRT_RATIO
    fee_pips: int = DEFAULT_FEE_PIPS

    def __post_init__(self) -> None:
        if not self.token0.sorts_before(self.token1):
            raise InvalidCurrencyError(f"token0 {self.token0!r} must sort before token1 {self.token1!r}")
        for name in ("sqrt_price_x96", "liquidity", "sqrt_lower_x96", "sqrt_upper_x96", "fee_pips"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
        if self.liquidity < 0:
            raise ValueError(f"liquidity must be non-negative: {self.liquidity}")
        if not (0 < self.sqrt_lower_x96 <= self.sqrt_price_x96 <= self.sqrt_upper_x96):
            raise ValueError("sqrt price must lie inside [sqrt_lower_x96, sqrt_upper_x96]")
        if not (0 <= self.fee_pips < PIPS_DENOM):
            raise ValueError(f"fee_pips must be in [0, {PIPS_DENOM}): {self.fee_pips}")

    @classmethod
    def from_amounts(
        cls,
        amount_a: CurrencyAmount,
        amount_b: CurrencyAmount,
        liquidity: int,
        *,
        sqrt_lower_x96: int = MIN_SQRT_RATIO,
        sqrt_upper_x96: int = MAX_SQRT_RATIO,
        fee_pips: int = DEFAULT_FEE_PIPS,
    ) -> ConcentratedLiquidityVenue:
        """Build a venue whose spot price is the ratio of two amounts, in either token order."""
        if not amount_a.currency.sorts_before(amount_b.currency):
            amount_a, amount_b = amount_b, amount_a
        return cls(
            token0=amount_a.currency,
            token1=amount_b.currency,
            sqrt_price_x96=encode_sqrt_ratio_x96(amount_b.quotient, amount_a.quotient),
            liquidity=liquidity,
            sqrt_lower_x96=sqrt_lower_x96,
            sqrt_upper_x96=sqrt_upper_x96,
            fee_pips=fee_pips,
        )

    @property
    def token0_price(self) -> Price:
        """Price of token0 in token1: sqrtP^2 / 2^192."""
        return Price(self.token0, self.token1, Fraction(self.sqrt_price_x96 * self.sqrt_price_x96, Q96 * Q96))

    @property
    def token1_price(self) -> Price:
        return self.token0_price.invert()

    def _zero_for_one(self, token: Token) -> bool:
        if token == self.token0:
            return True
        if token == self.token1:
            return False
        raise InvalidCurrencyError(f"{token!r} is not traded by this venue")

    def _kernel_state(self) -> dict:
        return {
            "sqrt_price_x96": self.sqrt_price_x96,
            "liquidity": self.liquidity,
            "sqrt_lower_x96": self.sqrt_lower_x96,
            "sqrt_upper_x96": self.sqrt_upper_x96,
            "fee_pips": self.fee_pips,
        }

    async def get_output_amount(self, amount_in: CurrencyAmount) -> Tuple[CurrencyAmount, ConcentratedLiquidityVenue]:
        zero_for_one = self._zero_for_one(amount_in.currency)
        gross_in = amount_in.quotient
        if gross_in <= 0:
            raise InsufficientInputAmountError(f"amount_in must be positive: {amount_in.raw}")
        try:
            res = _kernel_swap_exact_in(amount_in=gross_in, zero_for_one=zero_for_one, **self._kernel_state())
        except KernelRejection as exc:
            raise translate_rejection(exc) from exc

        out_token = self.token1 if zero_for_one else self.token0
        return (
            CurrencyAmount.from_raw_amount(out_token, res.amount_out),
            replace(self, sqrt_price_x96=res.sqrt_price_after_x96),
        )

    async def get_input_amount(self, amount_out: CurrencyAmount) -> Tuple[CurrencyAmount, ConcentratedLiquidityVenue]:
        # Selling token0 buys token1, so the output token decides the direction.
        zero_for_one = not self._zero_for_one(amount_out.currency)
        wanted = amount_out.quotient
        if wanted <= 0:
            raise ValidationError(f"amount_out must be positive: {amount_out.raw}")
        try:
            res = _kernel_swap_exact_out(amount_out=wanted, zero_for_one=zero_for_one, **self._kernel_state())
        except KernelRejection as exc:
            raise translate_rejection(exc) from exc

        in_token = self.token0 if zero_for_one else self.token1
        return (
            CurrencyAmount.from_raw_amount(in_token, res.amount_in),
            replace(self, sqrt_price_x96=res.sqrt_price_after_x96),
        )
