"""
Triangular Arbitrage Engine

Detects 3-leg cycles on a single exchange that route through a bridge
currency (BASE, e.g. USDT) between the local currency (IRT) and an asset X.

Cycles per asset:
  CW:  IRT → buy X → sell X for BASE → sell BASE for IRT
  CCW: IRT → buy BASE → buy X with BASE → sell X for IRT

If the product of the best prices along the cycle yields more IRT than you
started with (after 3 trading fees), there is an opportunity. The executable
size is capped by the top-of-book depth of the thinnest leg.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

from src.core.opportunity import (
    AssetEntry, Direction, Leg, MarketPair, Opportunity, Side, StrategyType,
)
from engine_pairs import DEFAULT_LOCAL_CURRENCY, build_asset_entries, index_pairs

logger = logging.getLogger(__name__)

TRIANGLE_LEGS = 3


def find_bottleneck(capacities: Sequence[float]) -> Tuple[int, float]:
    """
    Index and value of the smallest leg capacity.

    Capacities must already be expressed in the cycle's common unit.
    Exact ties resolve to the lowest index.
    """
    index = min(range(len(capacities)), key=capacities.__getitem__)
    return index, capacities[index]


def safe_ratio(numerator: float, denominator: float) -> float:
    """Division that yields inf instead of raising on a zero denominator"""
    if denominator == 0:
        return math.inf if numerator else math.nan
    return numerator / denominator


def _build_opportunity(
    asset: str,
    bridge_currency: str,
    direction: Direction,
    legs: Tuple[Leg, ...],
    rate: float,
    total_fee: float,
    capacities: Sequence[float],
    volume_per_unit: float,
) -> Optional[Opportunity]:
    """Apply fees and liquidity to a priced cycle; None if it cannot be executed"""
    gross_pct = (rate - 1) * 100
    net_pct = gross_pct - total_fee
    bottleneck, max_units = find_bottleneck(capacities)
    volume = max_units * volume_per_unit

    if not math.isfinite(rate) or not volume > 0:
        return None

    return Opportunity(
        type=StrategyType.TRIANGLE,
        assets=(asset,),
        bridge_currency=bridge_currency,
        direction=direction,
        legs=legs,
        rate=rate,
        gross_pct=gross_pct,
        fee_pct=total_fee,
        net_pct=net_pct,
        max_volume_local=volume,
        expected_profit_local=(net_pct / 100) * volume,
        bottleneck_leg=bottleneck,
    )


def _clockwise(
    entry: AssetEntry, bridge: MarketPair, bridge_currency: str, total_fee: float
) -> Optional[Opportunity]:
    """IRT → X → BASE → IRT, capacities in units of X"""
    x_local, x_bridge = entry.local_pair, entry.bridge_pair

    rate = safe_ratio(x_bridge.best_bid * bridge.best_bid, x_local.best_ask)
    capacities = (
        x_local.best_ask_qty,
        x_bridge.best_bid_qty,
        bridge.best_bid_qty / x_bridge.best_bid if x_bridge.best_bid > 0 else 0.0,
    )
    legs = (
        Leg(x_local.symbol, Side.BUY, x_local.best_ask, x_local.best_ask_qty, entry.asset),
        Leg(x_bridge.symbol, Side.SELL, x_bridge.best_bid, x_bridge.best_bid_qty, entry.asset),
        Leg(bridge.symbol, Side.SELL, bridge.best_bid, bridge.best_bid_qty, bridge_currency),
    )
    return _build_opportunity(
        entry.asset, bridge_currency, Direction.CW, legs, rate, total_fee,
        capacities, x_local.best_ask,
    )


def _counter_clockwise(
    entry: AssetEntry, bridge: MarketPair, bridge_currency: str, total_fee: float
) -> Optional[Opportunity]:
    """IRT → BASE → X → IRT, capacities in units of X"""
    x_local, x_bridge = entry.local_pair, entry.bridge_pair

    rate = safe_ratio(x_local.best_bid, x_bridge.best_ask * bridge.best_ask)
    capacities = (
        bridge.best_ask_qty / x_bridge.best_ask if x_bridge.best_ask > 0 else 0.0,
        x_bridge.best_ask_qty,
        x_local.best_bid_qty,
    )
    legs = (
        Leg(bridge.symbol, Side.BUY, bridge.best_ask, bridge.best_ask_qty, bridge_currency),
        Leg(x_bridge.symbol, Side.BUY, x_bridge.best_ask, x_bridge.best_ask_qty, entry.asset),
        Leg(x_local.symbol, Side.SELL, x_local.best_bid, x_local.best_bid_qty, entry.asset),
    )
    return _build_opportunity(
        entry.asset, bridge_currency, Direction.CCW, legs, rate, total_fee,
        capacities, x_bridge.best_ask * bridge.best_ask,
    )


def find_triangles(
    pairs: List[MarketPair],
    bridge_currency: str,
    fee_rate_pct: float,
    local_currency: str = DEFAULT_LOCAL_CURRENCY,
) -> List[Opportunity]:
    """
    Evaluate both triangle directions for every bridgeable asset.

    Args:
        pairs: Normalized pairs of one snapshot
        bridge_currency: Bridge ticker, e.g. "USDT"
        fee_rate_pct: Fee per trade in percent (0.35 = 0.35%)
        local_currency: Local currency ticker

    Returns:
        At most two opportunities per asset, profitable or not. Empty when
        the bridge/local pair itself is missing.
    """
    bridge = index_pairs(pairs).get(f"{bridge_currency}:{local_currency}")
    if bridge is None:
        logger.debug(f"No {bridge_currency}/{local_currency} pair, skipping triangles")
        return []

    total_fee = TRIANGLE_LEGS * fee_rate_pct
    results: List[Opportunity] = []

    for entry in build_asset_entries(pairs, bridge_currency, local_currency):
        for evaluate in (_clockwise, _counter_clockwise):
            opportunity = evaluate(entry, bridge, bridge_currency, total_fee)
            if opportunity:
                results.append(opportunity)

    logger.debug(f"[{bridge_currency}] {len(results)} triangle candidates")
    return results
