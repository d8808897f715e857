"""
Indexer snapshot integration layer
"""

from .bond_snapshot import (
    bond_data_from_snapshot,
    bond_from_snapshot,
    load_bond_snapshot,
    snapshot_from_bond_data,
)

__all__ = [
    "bond_data_from_snapshot",
    "bond_from_snapshot",
    "load_bond_snapshot",
    "snapshot_from_bond_data",
]
