"""
LeverageManager: iterate borrow -> swap back -> redeposit.

Each round sells every non-residual tranche minted from the current collateral
balance, keeps the residual (Z) tranche, and swaps the borrowed loan currency
back into collateral along a fixed venue path. Venue snapshots are threaded
through the rounds so later rounds see the price impact of earlier ones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..errors import InvalidCollateralError, SwapPathError, ValidationError
from ..state.currency import CurrencyAmount
from .amm import AmmVenue, involves_token, other_token, sell_exact
from .loan_manager import LoanManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeverageOutput:
    """
    Attributes:
        residual_output: Residual tranche tokens accumulated over all rounds
        collateral_output: Collateral left after the last swap back
        swap_back_venues: Swap-back venue snapshots after the last round
    """

    residual_output: CurrencyAmount
    collateral_output: CurrencyAmount
    swap_back_venues: Tuple[AmmVenue, ...]


class LeverageManager:
    def __init__(self, loan_manager: LoanManager, swap_back_venues: Sequence[AmmVenue]) -> None:
        swap_back_venues = tuple(swap_back_venues)
        token = loan_manager.currency
        for i, venue in enumerate(swap_back_venues):
            if not involves_token(venue, token):
                raise SwapPathError(f"swap-back venue {i} does not trade {token!r}")
            token = other_token(venue, token)
        if token != loan_manager.bond.collateral:
            raise SwapPathError(
                f"swap-back path ends in {token!r}, expected collateral {loan_manager.bond.collateral!r}"
            )
        self._loan_manager = loan_manager
        self._swap_back_venues: Tuple[AmmVenue, ...] = swap_back_venues

    @property
    def loan_manager(self) -> LoanManager:
        return self._loan_manager

    @property
    def swap_back_venues(self) -> Tuple[AmmVenue, ...]:
        return self._swap_back_venues

    async def lever(self, collateral_amount: CurrencyAmount, iterations: int) -> LeverageOutput:
        """Run `iterations` borrow_max/swap-back rounds starting from `collateral_amount`."""
        bond = self._loan_manager.bond
        if collateral_amount.currency != bond.collateral:
            raise InvalidCollateralError(
                f"leverage input must be in bond collateral {bond.collateral!r}, got {collateral_amount.currency!r}"
            )
        if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 0:
            raise ValidationError(f"iterations must be a non-negative int: {iterations!r}")

        loan_manager = self._loan_manager
        swap_back = self._swap_back_venues
        residual = CurrencyAmount.zero(bond.residual_tranche.token)
        balance = collateral_amount
        for round_no in range(iterations):
            borrowed = await loan_manager.borrow_max(balance)
            residual = residual + borrowed.residual
            loan_manager = loan_manager.with_venues(borrowed.venues)

            balance, swap_back = await self._swap_back(borrowed.currency_output, swap_back)
            logger.debug(
                "lever round %d: residual +%s, borrowed %s, collateral %s",
                round_no,
                borrowed.residual.quotient,
                borrowed.currency_output.quotient,
                balance.quotient,
            )

        return LeverageOutput(residual_output=residual, collateral_output=balance, swap_back_venues=swap_back)

    @staticmethod
    async def _swap_back(
        amount: CurrencyAmount,
        venues: Tuple[AmmVenue, ...],
    ) -> Tuple[CurrencyAmount, Tuple[AmmVenue, ...]]:
        current = amount
        updated: List[AmmVenue] = []
        for venue in venues:
            current, new_venue = await sell_exact(venue, current)
            updated.append(new_venue)
        return current, tuple(updated)
