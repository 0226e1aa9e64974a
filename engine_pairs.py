"""
Order Book Normalization & Bridge Index

Turns the exchange's raw "all order books" payload into MarketPair records
and indexes which assets can be routed through a bridge currency.

Symbols carry no separator, so the quote is recovered from the suffix:
  BTCUSDT -> (BTC, USDT)
  BTCIRT  -> (BTC, IRT)
  USDTIRT -> (USDT, IRT)   # the bridge pair itself
"""

import logging
import math
from collections.abc import Mapping
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from src.core.opportunity import AssetEntry, MarketPair

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_CURRENCY = "IRT"
DEFAULT_BRIDGE_CURRENCIES = ("USDT",)

# Metadata keys sent alongside the order books
METADATA_KEYS = {"status"}


def parse_symbol(
    symbol: str,
    local_currency: str = DEFAULT_LOCAL_CURRENCY,
    bridge_currencies: Sequence[str] = DEFAULT_BRIDGE_CURRENCIES,
) -> Optional[Tuple[str, str]]:
    """
    Split a symbol into (asset, quote).

    Bridge tickers are tried first (longest first), then the local currency.
    Returns None for symbols that match neither suffix or have an empty asset.
    """
    for quote in sorted(bridge_currencies, key=len, reverse=True):
        if len(symbol) > len(quote) and symbol.endswith(quote):
            return symbol[:-len(quote)], quote
    if len(symbol) > len(local_currency) and symbol.endswith(local_currency):
        return symbol[:-len(local_currency)], local_currency
    return None


def _to_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _best_level(levels) -> Optional[Tuple[float, float]]:
    """(price, qty) of the first level, or None if there is no usable level"""
    if not isinstance(levels, Sequence) or isinstance(levels, str) or not levels:
        return None
    level = levels[0]
    if not isinstance(level, Sequence) or isinstance(level, str) or not level:
        return None
    price = _to_float(level[0])
    qty = _to_float(level[1]) if len(level) > 1 else math.nan
    return price, qty


def _clamp_qty(qty: float) -> float:
    return qty if math.isfinite(qty) and qty > 0 else 0.0


def parse_all_pairs(
    data,
    local_currency: str = DEFAULT_LOCAL_CURRENCY,
    bridge_currencies: Sequence[str] = DEFAULT_BRIDGE_CURRENCIES,
) -> List[MarketPair]:
    """
    Normalize a raw snapshot into MarketPair records.

    Entries are skipped (never reported) when the symbol shape is unknown,
    the bid or ask side is missing, or the best price is not a positive
    finite number. Invalid quantities are clamped to zero so the pair is
    kept but contributes no executable volume.
    """
    if not isinstance(data, Mapping):
        logger.warning(f"Snapshot is not a mapping ({type(data).__name__}), ignoring it")
        return []

    pairs: List[MarketPair] = []
    skipped = 0

    for symbol, book in data.items():
        if symbol in METADATA_KEYS or not isinstance(symbol, str) or not isinstance(book, Mapping):
            continue

        parsed = parse_symbol(symbol, local_currency, bridge_currencies)
        if parsed is None:
            skipped += 1
            continue

        bid = _best_level(book.get("bids"))
        ask = _best_level(book.get("asks"))
        if bid is None or ask is None:
            skipped += 1
            continue

        best_bid, best_bid_qty = bid
        best_ask, best_ask_qty = ask
        if not (math.isfinite(best_bid) and best_bid > 0):
            skipped += 1
            continue
        if not (math.isfinite(best_ask) and best_ask > 0):
            skipped += 1
            continue

        asset, quote = parsed
        pairs.append(MarketPair(
            symbol=symbol,
            asset=asset,
            quote=quote,
            best_bid=best_bid,
            best_bid_qty=_clamp_qty(best_bid_qty),
            best_ask=best_ask,
            best_ask_qty=_clamp_qty(best_ask_qty),
        ))

    logger.debug(f"Parsed {len(pairs)} pairs ({skipped} skipped)")
    return pairs


def index_pairs(pairs: Iterable[MarketPair]) -> Dict[str, MarketPair]:
    """Map "asset:quote" -> pair"""
    return {p.key: p for p in pairs}


def build_asset_entries(
    pairs: List[MarketPair],
    bridge_currency: str,
    local_currency: str = DEFAULT_LOCAL_CURRENCY,
) -> List[AssetEntry]:
    """
    Assets that have both a local pair and a bridge pair.

    Assets without a bridge-quoted pair are left out of every downstream
    search; the bridge currency itself is never an entry.
    """
    idx = index_pairs(pairs)
    entries: List[AssetEntry] = []
    for p in pairs:
        if p.quote != local_currency or p.asset == bridge_currency:
            continue
        bridge_pair = idx.get(f"{p.asset}:{bridge_currency}")
        if bridge_pair is None:
            continue
        entries.append(AssetEntry(asset=p.asset, local_pair=p, bridge_pair=bridge_pair))
    return entries


def get_available_bases(
    pairs: List[MarketPair],
    local_currency: str = DEFAULT_LOCAL_CURRENCY,
) -> List[str]:
    """
    Currencies usable as a bridge, sorted.

    A quote currency Q qualifies when Q/local exists and at least one other
    asset trades against both the local currency and Q.
    """
    idx = index_pairs(pairs)
    quotes = {p.quote for p in pairs}
    quotes.discard(local_currency)

    bases = []
    for q in quotes:
        if f"{q}:{local_currency}" not in idx:
            continue
        if any(
            p.quote == local_currency and p.asset != q and f"{p.asset}:{q}" in idx
            for p in pairs
        ):
            bases.append(q)
    return sorted(bases)
