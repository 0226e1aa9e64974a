"""
Cross-Pair Arbitrage Engine

Detects 4-leg cycles that use two different assets and the bridge currency,
without ever trading the BASE/IRT pair directly.

Example cycle (X = seller, Y = buyer, BASE = USDT):
  1. Buy X with IRT          (X/IRT ask)
  2. Sell X for BASE         (X/BASE bid)
  3. Buy Y with BASE         (Y/BASE ask)
  4. Sell Y for IRT          (Y/IRT bid)

  rate = (X/BASE bid / X/IRT ask) × (Y/IRT bid / Y/BASE ask)
       =        sell_ratio(X)     ×       buy_ratio(Y)

The full search is quadratic in the number of bridgeable assets. To bound it,
only the top-K assets by sell_ratio and the top-K by buy_ratio are crossed.
This pruning is a heuristic, not an exhaustive search: a seller ranked
outside the top-K that would combine well with some buyer is never seen.
Pass candidate_cap=None to search every combination.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from src.core.opportunity import (
    AssetEntry, Direction, Leg, MarketPair, Opportunity, Side, StrategyType,
)
from engine_pairs import DEFAULT_LOCAL_CURRENCY, build_asset_entries, index_pairs
from engine_triangular import find_bottleneck, safe_ratio

logger = logging.getLogger(__name__)

CROSS_LEGS = 4

DEFAULT_CANDIDATE_CAP = 60
DEFAULT_MAX_RESULTS = 200
DEFAULT_DISCARD_BELOW_NET_PCT = -5.0


@dataclass(frozen=True)
class CrossCandidate:
    """An asset entry with its precomputed half-cycle ratios"""
    entry: AssetEntry
    sell_ratio: float  # BASE received per IRT when buying X and selling it for BASE
    buy_ratio: float   # IRT received per BASE when buying Y and selling it for IRT

    @property
    def asset(self) -> str:
        return self.entry.asset

    @classmethod
    def from_entry(cls, entry: AssetEntry) -> 'CrossCandidate':
        return cls(
            entry=entry,
            sell_ratio=safe_ratio(entry.bridge_pair.best_bid, entry.local_pair.best_ask),
            buy_ratio=safe_ratio(entry.local_pair.best_bid, entry.bridge_pair.best_ask),
        )


def select_candidates(
    candidates: List[CrossCandidate],
    candidate_cap: Optional[int],
) -> Tuple[List[CrossCandidate], List[CrossCandidate]]:
    """
    Top sellers and top buyers to cross.

    Returns (sellers, buyers), each sorted best first and truncated to
    candidate_cap (or kept whole when candidate_cap is None).
    """
    k = len(candidates) if candidate_cap is None else min(len(candidates), max(candidate_cap, 0))
    sellers = sorted(candidates, key=lambda c: c.sell_ratio, reverse=True)[:k]
    buyers = sorted(candidates, key=lambda c: c.buy_ratio, reverse=True)[:k]
    return sellers, buyers


def _evaluate_pair(
    seller: CrossCandidate,
    buyer: CrossCandidate,
    bridge_currency: str,
    total_fee: float,
    discard_below_net_pct: float,
) -> Optional[Opportunity]:
    rate = seller.sell_ratio * buyer.buy_ratio
    gross_pct = (rate - 1) * 100
    net_pct = gross_pct - total_fee

    if net_pct < discard_below_net_pct:
        return None

    x_local, x_bridge = seller.entry.local_pair, seller.entry.bridge_pair
    y_local, y_bridge = buyer.entry.local_pair, buyer.entry.bridge_pair

    # Every capacity in units of X; BASE amounts convert through X/BASE bid
    x_bid = x_bridge.best_bid
    capacities = (
        x_local.best_ask_qty,
        x_bridge.best_bid_qty,
        (y_bridge.best_ask_qty * y_bridge.best_ask) / x_bid if x_bid > 0 else 0.0,
        (y_local.best_bid_qty * y_bridge.best_ask) / x_bid if x_bid > 0 else 0.0,
    )
    bottleneck, max_units = find_bottleneck(capacities)
    volume = max_units * x_local.best_ask

    if not math.isfinite(rate) or not volume > 0:
        return None

    return Opportunity(
        type=StrategyType.CROSS,
        assets=(seller.asset, buyer.asset),
        bridge_currency=bridge_currency,
        direction=Direction.CROSS,
        legs=(
            Leg(x_local.symbol, Side.BUY, x_local.best_ask, x_local.best_ask_qty, seller.asset),
            Leg(x_bridge.symbol, Side.SELL, x_bridge.best_bid, x_bridge.best_bid_qty, seller.asset),
            Leg(y_bridge.symbol, Side.BUY, y_bridge.best_ask, y_bridge.best_ask_qty, buyer.asset),
            Leg(y_local.symbol, Side.SELL, y_local.best_bid, y_local.best_bid_qty, buyer.asset),
        ),
        rate=rate,
        gross_pct=gross_pct,
        fee_pct=total_fee,
        net_pct=net_pct,
        max_volume_local=volume,
        expected_profit_local=(net_pct / 100) * volume,
        bottleneck_leg=bottleneck,
    )


def find_cross_pairs(
    pairs: List[MarketPair],
    bridge_currency: str,
    fee_rate_pct: float,
    max_results: int = DEFAULT_MAX_RESULTS,
    candidate_cap: Optional[int] = DEFAULT_CANDIDATE_CAP,
    discard_below_net_pct: float = DEFAULT_DISCARD_BELOW_NET_PCT,
    local_currency: str = DEFAULT_LOCAL_CURRENCY,
) -> List[Opportunity]:
    """
    Enumerate seller/buyer combinations through the bridge currency.

    Args:
        pairs: Normalized pairs of one snapshot
        bridge_currency: Bridge ticker, e.g. "USDT"
        fee_rate_pct: Fee per trade in percent
        max_results: Results kept after sorting by net % (best first)
        candidate_cap: K for the top-K pruning on each axis; None disables pruning
        discard_below_net_pct: Candidates with a lower net % are dropped early
        local_currency: Local currency ticker

    Returns:
        Opportunities sorted by descending net %, never pairing an asset
        with itself. Empty when the bridge/local pair is missing.
    """
    if f"{bridge_currency}:{local_currency}" not in index_pairs(pairs):
        logger.debug(f"No {bridge_currency}/{local_currency} pair, skipping cross pairs")
        return []

    entries = build_asset_entries(pairs, bridge_currency, local_currency)
    candidates = [CrossCandidate.from_entry(e) for e in entries]
    sellers, buyers = select_candidates(candidates, candidate_cap)

    total_fee = CROSS_LEGS * fee_rate_pct
    results: List[Opportunity] = []

    for seller in sellers:
        for buyer in buyers:
            if seller.asset == buyer.asset:
                continue
            opportunity = _evaluate_pair(
                seller, buyer, bridge_currency, total_fee, discard_below_net_pct
            )
            if opportunity:
                results.append(opportunity)

    results.sort(key=lambda o: o.net_pct, reverse=True)
    logger.debug(
        f"[{bridge_currency}] {len(results)} cross-pair candidates from "
        f"{len(sellers)}x{len(buyers)} (of {len(candidates)} assets)"
    )
    return results[:max_results]
