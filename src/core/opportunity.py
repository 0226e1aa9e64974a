"""
Data classes for order book pairs and arbitrage opportunities.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


class StrategyType(str, Enum):
    TRIANGLE = "triangle"
    CROSS = "cross"


class Direction(str, Enum):
    CW = "cw"        # local -> asset -> bridge -> local
    CCW = "ccw"      # local -> bridge -> asset -> local
    CROSS = "cross"  # local -> X -> bridge -> Y -> local


@dataclass(frozen=True)
class MarketPair:
    """Top of book for one symbol, e.g. BTCIRT or BTCUSDT"""
    symbol: str
    asset: str
    quote: str
    best_bid: float
    best_bid_qty: float
    best_ask: float
    best_ask_qty: float

    @property
    def key(self) -> str:
        """Lookup key used by the bridge index"""
        return f"{self.asset}:{self.quote}"

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "asset": self.asset,
            "quote": self.quote,
            "best_bid": self.best_bid,
            "best_bid_qty": self.best_bid_qty,
            "best_ask": self.best_ask,
            "best_ask_qty": self.best_ask_qty,
        }


@dataclass(frozen=True)
class AssetEntry:
    """An asset tradable both against the local currency and the bridge currency"""
    asset: str
    local_pair: MarketPair   # X/local
    bridge_pair: MarketPair  # X/bridge


@dataclass(frozen=True)
class Leg:
    """One trade of a cycle, at the best price seen when the cycle was detected"""
    pair_symbol: str
    side: Side
    price: float
    available_qty: float
    qty_unit: str

    def to_dict(self) -> dict:
        return {
            "pair": self.pair_symbol,
            "side": self.side.value,
            "price": self.price,
            "available_qty": self.available_qty,
            "qty_unit": self.qty_unit,
        }


@dataclass(frozen=True)
class Opportunity:
    """A fee-adjusted trade cycle (3 legs for triangles, 4 for cross pairs)"""
    type: StrategyType
    assets: Tuple[str, ...]
    bridge_currency: str
    direction: Direction
    legs: Tuple[Leg, ...]
    rate: float
    gross_pct: float
    fee_pct: float
    net_pct: float
    max_volume_local: float       # executable notional in local currency
    expected_profit_local: float
    bottleneck_leg: int           # index into legs

    @property
    def label(self) -> str:
        return "+".join(self.assets)

    @property
    def path_description(self) -> str:
        return " → ".join(f"{leg.side.value.upper()} {leg.pair_symbol}" for leg in self.legs)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "assets": list(self.assets),
            "base": self.bridge_currency,
            "direction": self.direction.value,
            "legs": [leg.to_dict() for leg in self.legs],
            "path_description": self.path_description,
            "rate": self.rate,
            "gross_pct": self.gross_pct,
            "fee_pct": self.fee_pct,
            "net_pct": self.net_pct,
            "max_volume_local": self.max_volume_local,
            "expected_profit_local": self.expected_profit_local,
            "bottleneck_leg": self.bottleneck_leg,
        }

    def to_compact(self) -> dict:
        """Short form stored in the per-scan timeline"""
        return {
            "type": "tri" if self.type == StrategyType.TRIANGLE else "cross",
            "dir": self.direction.value,
            "assets": list(self.assets),
            "net": round(self.net_pct, 3),
            "gross": round(self.gross_pct, 3),
            "vol": round(self.max_volume_local),
            "profit": round(self.expected_profit_local),
        }

    def to_csv_row(self) -> List[str]:
        """Convert to CSV row for export"""
        return [
            self.type.value,
            self.direction.value,
            self.label,
            self.bridge_currency,
            "->".join(leg.pair_symbol for leg in self.legs),
            "->".join(leg.side.value for leg in self.legs),
            str(round(self.rate, 8)),
            str(round(self.gross_pct, 4)),
            str(round(self.fee_pct, 4)),
            str(round(self.net_pct, 4)),
            str(round(self.max_volume_local, 2)),
            str(round(self.expected_profit_local, 2)),
            str(self.bottleneck_leg),
        ]

    @staticmethod
    def csv_headers() -> List[str]:
        """CSV headers for export"""
        return [
            "type",
            "direction",
            "assets",
            "base",
            "path",
            "sides",
            "rate",
            "gross_pct",
            "fee_pct",
            "net_pct",
            "max_volume_local",
            "expected_profit_local",
            "bottleneck_leg",
        ]
