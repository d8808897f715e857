"""
Bond: ordered tranches over one collateral token.

Mint and redeem math is integer-exact with floor rounding, matching the on-chain
bond controller:

    deposit, bootstrap:     out_i = floor(input * ratio_i / G)
    deposit, steady state:  out_i = floor(input * ratio_i * total_debt / (G * total_collateral))
    redeem:                 collateral = floor(sum(inputs) * total_collateral / total_debt)

where G is `TRANCHE_RATIO_GRANULARITY`. A bond is read-only; every operation
returns new amounts.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from ..errors import (
    BondNotMatureError,
    BondStructureError,
    InsufficientCollateralError,
    InvalidCurrencyError,
    InvalidTargetError,
    InvalidTrancheInputsError,
)
from ..state.bond_data import BondData
from ..state.currency import Amount, AssetId, CurrencyAmount, Token, address_equals, to_base_units
from .tranche import Tranche

logger = logging.getLogger(__name__)

TRANCHE_RATIO_GRANULARITY = 1000


def _ceil_div(numerator: int, denominator: int) -> int:
    return -((-numerator) // denominator)


class Bond:
    """
    A tranched bond snapshot.

    Tranches are held most senior first; the last one is the residual (Z)
    tranche.
    """

    def __init__(self, data: BondData, chain_id: int = 1) -> None:
        if len(data.tranches) < 2:
            raise BondStructureError(f"bond {data.id} needs at least 2 tranches, got {len(data.tranches)}")
        self._data = data
        self._chain_id = chain_id
        self._collateral = data.collateral.to_token(chain_id)
        self._tranches: Tuple[Tranche, ...] = tuple(
            Tranche(t, self._collateral, chain_id) for t in sorted(data.tranches, key=lambda t: t.index)
        )
        if not self.ratios_valid:
            logger.warning(
                "bond %s tranche ratios sum to %d, expected %d",
                data.id,
                sum(t.ratio for t in self._tranches),
                TRANCHE_RATIO_GRANULARITY,
            )

    # --- snapshot fields ----------------------------------------------------

    @property
    def data(self) -> BondData:
        return self._data

    @property
    def address(self) -> AssetId:
        return self._data.id

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def collateral(self) -> Token:
        return self._collateral

    @property
    def tranches(self) -> Tuple[Tranche, ...]:
        return self._tranches

    @property
    def total_debt(self) -> Amount:
        return self._data.total_debt

    @property
    def total_collateral(self) -> Amount:
        return self._data.total_collateral

    @property
    def maturity_date(self) -> int:
        return self._data.maturity_date

    @property
    def mature(self) -> bool:
        return self._data.is_mature

    @property
    def dcr(self) -> int:
        """Debt-to-collateral ratio, x100, floored."""
        if self.total_collateral == 0:
            raise InsufficientCollateralError(f"bond {self.address} holds no collateral")
        return self.total_debt * 100 // self.total_collateral

    @property
    def ratios_valid(self) -> bool:
        return sum(t.ratio for t in self._tranches) == TRANCHE_RATIO_GRANULARITY

    @property
    def residual_tranche(self) -> Tranche:
        return self._tranches[-1]

    # --- lookups ------------------------------------------------------------

    def get_tranche(self, address: AssetId) -> Tranche:
        for tranche in self._tranches:
            if address_equals(tranche.address, address):
                return tranche
        raise InvalidCurrencyError(f"{address} is not a tranche of bond {self.address}")

    def tranche_index(self, token: Token) -> int:
        for i, tranche in enumerate(self._tranches):
            if tranche.token == token:
                return i
        raise InvalidCurrencyError(f"{token!r} is not a tranche of bond {self.address}")

    # --- mint / redeem ------------------------------------------------------

    def deposit(self, collateral_amount: CurrencyAmount) -> Tuple[CurrencyAmount, ...]:
        """Tranche tokens minted for `collateral_amount`, most senior first."""
        if collateral_amount.currency != self._collateral:
            raise InvalidCurrencyError(
                f"deposit must be in bond collateral {self._collateral!r}, got {collateral_amount.currency!r}"
            )
        input_units = to_base_units(collateral_amount)
        out: List[CurrencyAmount] = []
        for tranche in self._tranches:
            if self.total_collateral == 0:
                minted = input_units * tranche.ratio // TRANCHE_RATIO_GRANULARITY
            else:
                minted = (input_units * tranche.ratio * self.total_debt) // (
                    TRANCHE_RATIO_GRANULARITY * self.total_collateral
                )
            out.append(CurrencyAmount.from_raw_amount(tranche.token, minted))
        return tuple(out)

    def redeem_mature(self, tranche_amount: CurrencyAmount) -> CurrencyAmount:
        """Collateral returned for one tranche's tokens after maturity."""
        if not self.mature:
            raise BondNotMatureError(f"bond {self.address} is not mature")
        tranche = self._tranches[self.tranche_index(tranche_amount.currency)]
        # Compared raw, independent of decimals, as the controller does.
        if tranche_amount > tranche.total_collateral:
            raise InsufficientCollateralError(
                f"redeeming {tranche_amount.raw} exceeds tranche collateral {tranche.total_collateral}"
            )
        return tranche.redeem_value(tranche_amount)

    def redeem(self, tranche_amounts: Sequence[CurrencyAmount]) -> CurrencyAmount:
        """
        Collateral returned for redeeming a full strip of tranche tokens before maturity.

        `tranche_amounts` must hold one amount per tranche, most senior first.
        """
        if len(tranche_amounts) != len(self._tranches):
            raise InvalidTrancheInputsError(
                f"expected {len(self._tranches)} tranche amounts, got {len(tranche_amounts)}"
            )
        total_redeemed = 0
        for tranche, amount in zip(self._tranches, tranche_amounts):
            if amount.currency != tranche.token:
                raise InvalidTrancheInputsError(
                    f"expected an amount of {tranche.token!r}, got {amount.currency!r}"
                )
            total_redeemed += to_base_units(amount)

        if total_redeemed > self.total_collateral:
            raise InsufficientCollateralError(
                f"redeeming {total_redeemed} exceeds bond collateral {self.total_collateral}"
            )
        if self.total_debt == 0:
            raise InsufficientCollateralError(f"bond {self.address} has no outstanding debt")
        return CurrencyAmount.from_raw_amount(
            self._collateral,
            total_redeemed * self.total_collateral // self.total_debt,
        )

    def get_required_deposit(self, desired_tranche_output: CurrencyAmount) -> CurrencyAmount:
        """
        Collateral needed to mint `desired_tranche_output` of one tranche.

        Rounds up, so `deposit(get_required_deposit(out))[i] == out` whenever
        ratio * total_debt <= G * total_collateral.
        """
        try:
            tranche = self._tranches[self.tranche_index(desired_tranche_output.currency)]
        except InvalidCurrencyError as exc:
            raise InvalidTargetError(f"desired output {desired_tranche_output.currency!r} is not a tranche token") from exc
        if tranche.ratio == 0:
            raise InvalidTargetError(f"tranche {tranche.address} has a zero ratio and never mints")

        out_units = to_base_units(desired_tranche_output)
        if self.total_collateral == 0:
            required = _ceil_div(out_units * TRANCHE_RATIO_GRANULARITY, tranche.ratio)
        else:
            if self.total_debt == 0:
                raise InsufficientCollateralError(f"bond {self.address} mints nothing with zero debt")
            required = _ceil_div(
                out_units * TRANCHE_RATIO_GRANULARITY * self.total_collateral,
                tranche.ratio * self.total_debt,
            )
        return CurrencyAmount.from_raw_amount(self._collateral, required)

    def __repr__(self) -> str:
        return f"Bond({self.address}, tranches={len(self._tranches)}, mature={self.mature})"
