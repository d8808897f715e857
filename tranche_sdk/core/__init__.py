"""
Bond allocation, loan routing and leverage
"""

from .amm import AmmVenue, involves_token, other_token, price_of, sell_exact
from .bond import TRANCHE_RATIO_GRANULARITY, Bond
from .clmm import ConcentratedLiquidityVenue
from .config import LoanConfig, load_config
from .cpmm import ConstantProductVenue
from .leverage_manager import LeverageManager, LeverageOutput
from .loan_manager import BorrowOutput, LoanManager
from .tranche import Tranche

__all__ = [
    "AmmVenue",
    "involves_token",
    "other_token",
    "price_of",
    "sell_exact",
    "TRANCHE_RATIO_GRANULARITY",
    "Bond",
    "ConcentratedLiquidityVenue",
    "LoanConfig",
    "load_config",
    "ConstantProductVenue",
    "LeverageManager",
    "LeverageOutput",
    "BorrowOutput",
    "LoanManager",
    "Tranche",
]
