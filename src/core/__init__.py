"""
Core data structures and formatting helpers.
"""

from .opportunity import (
    AssetEntry,
    Direction,
    Leg,
    MarketPair,
    Opportunity,
    Side,
    StrategyType,
)
from .formatting import format_amount, format_irt, format_pct, format_price

__all__ = [
    "AssetEntry",
    "Direction",
    "Leg",
    "MarketPair",
    "Opportunity",
    "Side",
    "StrategyType",
    "format_amount",
    "format_irt",
    "format_pct",
    "format_price",
]
