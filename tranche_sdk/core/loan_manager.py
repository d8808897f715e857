"""
LoanManager: synthesize a collateralized loan out of a bond.

A borrower deposits collateral, receives every tranche, and sells the
non-residual tranches into AMM venues for a shared loan currency. Sales are
planned most senior first: senior liquidity carries the lowest discount, and
price impact grows with size on every venue.

Required-deposit sizing has no closed form once several venues compose, so
`get_minimum_required_deposit` runs a bounded binary search:

- bounds: [0, get_maximum_required_deposit(desired)]
- at most `LoanConfig.search_max_rounds` rounds (10 by default)
- stops once the bracket is within one whole collateral unit (10^decimals)

The result is the bracket's upper end: always sufficient, at most one unit
above the true minimum when the search converges inside the round cap.

Every loop here awaits quotes one at a time; each step depends on the previous
quote.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import List, Optional, Sequence, Tuple

from ..errors import (
    InsufficientDepositError,
    InsufficientInputAmountError,
    InsufficientLiquidityError,
    InvalidCollateralError,
    InvalidCurrencyError,
    InvalidSaleError,
    ValidationError,
    VenueMismatchError,
)
from ..state.currency import Amount, CurrencyAmount, Price, Token
from .amm import AmmVenue, involves_token, other_token, price_of, sell_exact
from .bond import Bond
from .config import LoanConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BorrowOutput:
    """
    Result of a simulated borrow.

    Attributes:
        tranche_tokens: Tranche tokens kept by the borrower, most senior first
        currency_output: Loan currency received from the sales
        venues: Venue snapshots after the sales, aligned with the manager's venues
    """

    tranche_tokens: Tuple[CurrencyAmount, ...]
    currency_output: CurrencyAmount
    venues: Tuple[AmmVenue, ...]

    @property
    def residual(self) -> CurrencyAmount:
        return self.tranche_tokens[-1]


class LoanManager:
    """Pairs a bond with one venue per non-residual tranche."""

    def __init__(self, bond: Bond, venues: Sequence[AmmVenue], config: Optional[LoanConfig] = None) -> None:
        venues = tuple(venues)
        if not venues:
            raise VenueMismatchError("no venues")
        if len(venues) != len(bond.tranches) - 1:
            raise VenueMismatchError(
                f"bond has {len(bond.tranches)} tranches, expected {len(bond.tranches) - 1} venues, got {len(venues)}"
            )

        for i, (venue, tranche) in enumerate(zip(venues, bond.tranches)):
            if not involves_token(venue, tranche.token):
                raise VenueMismatchError(f"venue {i} does not trade tranche {tranche.address}")
        currency = other_token(venues[0], bond.tranches[0].token)
        for i, (venue, tranche) in enumerate(zip(venues, bond.tranches)):
            paired = other_token(venue, tranche.token)
            if paired != currency:
                raise VenueMismatchError(f"venue {i} pairs against {paired!r}, expected {currency!r}")

        self._bond = bond
        self._venues: Tuple[AmmVenue, ...] = venues
        self._currency: Token = currency
        self._config = config if config is not None else LoanConfig()

    @property
    def bond(self) -> Bond:
        return self._bond

    @property
    def venues(self) -> Tuple[AmmVenue, ...]:
        return self._venues

    @property
    def currency(self) -> Token:
        """The loan currency shared by every venue."""
        return self._currency

    @property
    def config(self) -> LoanConfig:
        return self._config

    def with_venues(self, venues: Sequence[AmmVenue]) -> LoanManager:
        """A manager over the same bond quoting against updated venue snapshots."""
        return LoanManager(self._bond, venues, self._config)

    # --- helpers ------------------------------------------------------------

    def _require_loan_currency(self, amount: CurrencyAmount, what: str) -> None:
        if amount.currency != self._currency:
            raise InvalidCurrencyError(f"{what} must be in {self._currency!r}, got {amount.currency!r}")

    def _require_collateral(self, amount: CurrencyAmount) -> None:
        if amount.currency != self._bond.collateral:
            raise InvalidCollateralError(
                f"deposit must be in bond collateral {self._bond.collateral!r}, got {amount.currency!r}"
            )

    @staticmethod
    def _whole_units(amount: CurrencyAmount) -> Fraction:
        """Integer base units of `amount` expressed in whole tokens of its own currency."""
        return Fraction(amount.quotient, 10**amount.currency.decimals)

    # --- pricing ------------------------------------------------------------

    def get_tranche_price(self, tranche_index: int) -> Price:
        """Spot price of tranche `tranche_index` in the loan currency."""
        if not (0 <= tranche_index < len(self._venues)):
            raise ValidationError(f"no venue for tranche index {tranche_index}")
        return price_of(self._venues[tranche_index], self._bond.tranches[tranche_index].token)

    async def get_discount(self, sales: Sequence[CurrencyAmount]) -> Fraction:
        """
        Discount realized by selling `sales` (one amount per venue).

        Returns (total_in - total_out) / total_out, both sides counted in whole
        tokens so tranche and loan currency decimals may differ.
        Positive is a discount to face value; negative is a premium.
        """
        if len(sales) != len(self._venues):
            raise InvalidSaleError(f"expected {len(self._venues)} sales, got {len(sales)}")

        total_in = Fraction(0)
        total_out = Fraction(0)
        for i, (sale, venue) in enumerate(zip(sales, self._venues)):
            if sale.currency != self._bond.tranches[i].token:
                raise InvalidSaleError(f"sale {i} is in {sale.currency!r}, expected tranche {i}")
            amount_out, _ = await sell_exact(venue, sale)
            total_in += self._whole_units(sale)
            total_out += self._whole_units(amount_out)

        if total_out == 0:
            raise InsufficientLiquidityError("sales produce no output")
        return (total_in - total_out) / total_out

    async def get_lender_interest(self, deposit: CurrencyAmount, tranche_index: int) -> Fraction:
        """Return earned by a lender buying tranche `tranche_index` with `deposit`."""
        self._require_loan_currency(deposit, "lender deposit")
        if not (0 <= tranche_index < len(self._venues)):
            raise ValidationError(f"no venue for tranche index {tranche_index}")
        if deposit.quotient <= 0:
            raise InsufficientDepositError("lender deposit must be positive")

        bought, _ = await self._venues[tranche_index].get_output_amount(deposit)
        output = self._whole_units(bought)
        paid = self._whole_units(deposit)
        return (output - paid) / paid

    # --- sale planning ------------------------------------------------------

    async def get_sales(
        self,
        desired_output: CurrencyAmount,
        deposit: CurrencyAmount,
        contract_input: bool = False,
    ) -> Tuple[CurrencyAmount, ...]:
        """
        Plan tranche sales that raise `desired_output` from minting `deposit`.

        Tranches are filled most senior first: a tranche is sold in full while
        that still falls short, then only the amount needed to close the gap,
        then nothing. With `contract_input`, full sales are emitted as the
        "sell everything" sentinel and the plan is padded with zeros to one
        entry per tranche.
        """
        self._require_loan_currency(desired_output, "desired output")
        self._require_collateral(deposit)
        allocations = self._bond.deposit(deposit)

        sales: List[CurrencyAmount] = []
        running = CurrencyAmount.zero(self._currency)
        for i, venue in enumerate(self._venues):
            allocation = allocations[i]
            tranche_token = allocation.currency

            if running >= desired_output:
                sales.append(CurrencyAmount.zero(tranche_token))
                logger.debug("tranche %d: target met, no sale", i)
                continue

            max_output, _ = await sell_exact(venue, allocation)
            if running + max_output < desired_output:
                if contract_input:
                    sales.append(CurrencyAmount.from_raw_amount(tranche_token, self._config.contract_max_sale))
                else:
                    sales.append(allocation)
                running = running + max_output
                logger.debug("tranche %d: full sale %s -> %s", i, allocation.quotient, max_output.quotient)
                continue

            needed = desired_output - running
            sale, _ = await venue.get_input_amount(needed)
            # The inverse quote rounds up; never plan past the minted allocation.
            if sale > allocation:
                sale = allocation
            sales.append(sale)
            running = desired_output
            logger.debug("tranche %d: partial sale %s for %s", i, sale.quotient, needed.quotient)

        if contract_input:
            for tranche in self._bond.tranches[len(sales):]:
                sales.append(CurrencyAmount.zero(tranche.token))

        if running < desired_output:
            raise InsufficientDepositError(
                f"deposit of {deposit.quotient} raises {running.quotient}, short of {desired_output.quotient}"
            )
        return tuple(sales)

    # --- deposit sizing -----------------------------------------------------

    async def get_maximum_required_deposit(self, desired_output: CurrencyAmount) -> CurrencyAmount:
        """
        Deposit that raises `desired_output` from the senior tranche alone.

        Using more collateral than this cannot lower the discount further.
        """
        self._require_loan_currency(desired_output, "desired output")
        senior_in, _ = await self._venues[0].get_input_amount(desired_output)
        deposit = self._bond.get_required_deposit(senior_in)

        forward = await self.borrow_max(deposit)
        if forward.currency_output < desired_output:
            raise InsufficientLiquidityError(
                f"deposit of {deposit.quotient} only raises {forward.currency_output.quotient}, "
                f"short of {desired_output.quotient}"
            )
        return deposit

    async def _probe(self, deposit_units: Amount) -> CurrencyAmount:
        deposit = CurrencyAmount.from_raw_amount(self._bond.collateral, deposit_units)
        try:
            return (await self.borrow_max(deposit)).currency_output
        except InsufficientInputAmountError as exc:
            logger.debug("probe %d too small to quote: %s", deposit_units, exc)
            return CurrencyAmount.zero(self._currency)

    async def get_minimum_required_deposit(self, desired_output: CurrencyAmount) -> CurrencyAmount:
        """
        Smallest deposit, to within one collateral unit, that raises `desired_output`
        when every non-residual tranche is sold.
        """
        hi = (await self.get_maximum_required_deposit(desired_output)).quotient
        lo = 0
        resolution = 10**self._bond.collateral.decimals

        for round_no in range(self._config.search_max_rounds):
            if hi - lo <= resolution:
                break
            mid = lo + (hi - lo) // 2
            output = await self._probe(mid)
            if output < desired_output:
                lo = mid
            else:
                hi = mid
            logger.debug("search round %d: mid=%d output=%s bracket=[%d, %d]", round_no, mid, output.quotient, lo, hi)

        return CurrencyAmount.from_raw_amount(self._bond.collateral, hi)

    # --- borrowing ----------------------------------------------------------

    async def borrow_max(self, collateral_amount: CurrencyAmount) -> BorrowOutput:
        """Mint with `collateral_amount` and sell every tranche except the residual."""
        allocations = self._bond.deposit(collateral_amount)

        currency_output = CurrencyAmount.zero(self._currency)
        kept: List[CurrencyAmount] = []
        venues: List[AmmVenue] = []
        for i, venue in enumerate(self._venues):
            amount_out, new_venue = await sell_exact(venue, allocations[i])
            currency_output = currency_output + amount_out
            kept.append(CurrencyAmount.zero(allocations[i].currency))
            venues.append(new_venue)
            logger.debug("borrow_max tranche %d: sold %s for %s", i, allocations[i].quotient, amount_out.quotient)
        kept.append(allocations[-1])

        return BorrowOutput(tranche_tokens=tuple(kept), currency_output=currency_output, venues=tuple(venues))

    async def borrow(self, collateral_amount: CurrencyAmount, sales: Sequence[CurrencyAmount]) -> BorrowOutput:
        """
        Mint with `collateral_amount` and sell `sales[i]` of each non-residual tranche.

        `sales` may also be a contract-padded plan from `get_sales`: the
        sell-everything sentinel sells the full allocation and the residual
        entry must be zero.
        """
        if len(sales) not in (len(self._venues), len(self._bond.tranches)):
            raise InvalidSaleError(f"expected {len(self._venues)} sales, got {len(sales)}")
        padded = len(sales) == len(self._bond.tranches)
        if padded and not sales[-1].is_zero:
            raise InvalidSaleError("the residual tranche cannot be sold")
        allocations = self._bond.deposit(collateral_amount)

        currency_output = CurrencyAmount.zero(self._currency)
        kept: List[CurrencyAmount] = []
        venues: List[AmmVenue] = []
        for i, venue in enumerate(self._venues):
            allocation = allocations[i]
            sale = sales[i]
            if sale.currency != allocation.currency:
                raise InvalidSaleError(f"sale {i} is in {sale.currency!r}, expected {allocation.currency!r}")
            if padded and sale.quotient == self._config.contract_max_sale:
                sale = allocation
            if sale > allocation:
                raise InvalidSaleError(f"sale {i} of {sale.quotient} exceeds minted {allocation.quotient}")
            amount_out, new_venue = await sell_exact(venue, sale)
            currency_output = currency_output + amount_out
            kept.append(allocation - sale)
            venues.append(new_venue)
            logger.debug("borrow tranche %d: sold %s for %s", i, sale.quotient, amount_out.quotient)
        kept.append(allocations[-1])

        return BorrowOutput(tranche_tokens=tuple(kept), currency_output=currency_output, venues=tuple(venues))

    def __repr__(self) -> str:
        return f"LoanManager({self._bond!r}, currency={self._currency!r}, venues={len(self._venues)})"
