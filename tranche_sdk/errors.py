"""Exception types for the tranche SDK.

Every failure is raised at the point of violation and never retried. The tree
has three branches:

- ``ValidationError``: mismatched currencies, wrong arities, bad sales.
- ``InsufficiencyError``: collateral or liquidity too low to meet a target.
- ``StructuralError``: malformed bonds, unmatched venues, broken swap paths.

The base class derives from ``ValueError`` so callers that already guard
kernel ``ValueError``s keep working.
"""

from __future__ import annotations


class TrancheSdkError(ValueError):
    """Base class for all SDK errors."""


# --- validation -------------------------------------------------------------


class ValidationError(TrancheSdkError):
    """An input failed validation."""


class InvalidCurrencyError(ValidationError):
    """An amount is denominated in an unexpected currency."""


class InvalidCollateralError(ValidationError):
    """An amount is not denominated in the bond collateral."""


class InvalidTargetError(ValidationError):
    """A desired output does not match any tranche token."""


class InvalidTrancheInputsError(ValidationError):
    """Tranche inputs have the wrong arity, order or currencies."""


class InvalidSaleError(ValidationError):
    """A sale plan is malformed or sells more than was minted."""


class BondNotMatureError(ValidationError):
    """A mature-only operation was attempted on an immature bond."""


class SnapshotError(ValidationError):
    """An indexer snapshot is malformed."""


# --- insufficiency ----------------------------------------------------------


class InsufficiencyError(TrancheSdkError):
    """A target cannot be met with the available collateral or liquidity."""


class InsufficientDepositError(InsufficiencyError):
    """The deposit cannot produce the desired loan output."""


class InsufficientCollateralError(InsufficiencyError):
    """A redemption exceeds the collateral backing it."""


class InsufficientLiquidityError(InsufficiencyError):
    """Venue liquidity cannot support the requested trade."""


class InsufficientReservesError(InsufficientLiquidityError):
    """A venue has empty reserves or the trade would drain them."""


class InsufficientInputAmountError(InsufficientLiquidityError):
    """An exact-in trade is too small to produce any output."""


# --- structural -------------------------------------------------------------


class StructuralError(TrancheSdkError):
    """Objects were wired together in an impossible configuration."""


class BondStructureError(StructuralError):
    """A bond does not have the required tranche layout."""


class VenueMismatchError(StructuralError):
    """Venues do not pair with the bond's tranches and one loan currency."""


class SwapPathError(StructuralError):
    """A swap-back path does not chain loan currency into collateral."""
