"""
Bond snapshot value types.

These mirror the indexer schema one-to-one with numeric fields normalized to
`int`. Parsing and validation of raw mappings lives in
`tranche_sdk.integration.bond_snapshot`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .currency import Amount, AssetId, Token


@dataclass(frozen=True)
class TokenData:
    id: AssetId
    symbol: str
    name: str
    decimals: int
    total_supply: Amount

    def to_token(self, chain_id: int = 1) -> Token:
        return Token(self.id, self.decimals, symbol=self.symbol, name=self.name, chain_id=chain_id)


@dataclass(frozen=True)
class TrancheData:
    """
    One ranked claim.

    Attributes:
        id: Tranche token address
        index: Seniority index (0 = most senior)
        ratio: Share of the bond, out of the ratio granularity
        total_collateral: Collateral allocated to this tranche (collateral base units)
        token: Tranche token metadata
    """

    id: AssetId
    index: int
    ratio: int
    total_collateral: Amount
    token: TokenData


@dataclass(frozen=True)
class BondData:
    id: AssetId
    maturity_date: int
    is_mature: bool
    total_debt: Amount
    total_collateral: Amount
    collateral: TokenData
    tranches: Tuple[TrancheData, ...]
