"""Opportunity ranking and the per-scan engine"""
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from config import (
    BRIDGE_CURRENCIES,
    BRIDGE_CURRENCY,
    CROSS_CANDIDATE_CAP,
    CROSS_DISCARD_BELOW_NET_PCT,
    CROSS_MAX_RESULTS,
    HISTORY_LIMIT,
    LOCAL_CURRENCY,
    TRADING_FEE_PCT,
)
from engine_cross_pair import (
    DEFAULT_CANDIDATE_CAP,
    DEFAULT_DISCARD_BELOW_NET_PCT,
    DEFAULT_MAX_RESULTS,
    find_cross_pairs,
)
from engine_pairs import DEFAULT_LOCAL_CURRENCY, get_available_bases, parse_all_pairs
from engine_triangular import find_triangles
from src.core.opportunity import MarketPair, Opportunity, StrategyType

logger = logging.getLogger(__name__)


def rank_opportunities(opportunities: Iterable[Opportunity]) -> List[Opportunity]:
    """Sort by descending net %, keeping insertion order for exact ties"""
    return sorted(opportunities, key=lambda o: o.net_pct, reverse=True)


def find_all_opportunities(
    pairs: List[MarketPair],
    bridge_currency: str,
    fee_rate_pct: float,
    max_cross_results: int = DEFAULT_MAX_RESULTS,
    candidate_cap: Optional[int] = DEFAULT_CANDIDATE_CAP,
    discard_below_net_pct: float = DEFAULT_DISCARD_BELOW_NET_PCT,
    local_currency: str = DEFAULT_LOCAL_CURRENCY,
) -> List[Opportunity]:
    """
    Triangles and cross pairs for one snapshot, best net % first.

    The list is not truncated; keeping only the top N is up to the caller.
    """
    triangles = find_triangles(pairs, bridge_currency, fee_rate_pct, local_currency)
    crosses = find_cross_pairs(
        pairs,
        bridge_currency,
        fee_rate_pct,
        max_results=max_cross_results,
        candidate_cap=candidate_cap,
        discard_below_net_pct=discard_below_net_pct,
        local_currency=local_currency,
    )
    return rank_opportunities(triangles + crosses)


@dataclass
class ScanResult:
    """Outcome of one detection pass over one snapshot"""
    timestamp: datetime
    bridge_currency: str
    fee_pct: float
    pair_count: int
    opportunities: List[Opportunity] = field(default_factory=list)

    @property
    def profitable(self) -> List[Opportunity]:
        return [o for o in self.opportunities if o.net_pct > 0]

    @property
    def unprofitable(self) -> List[Opportunity]:
        return [o for o in self.opportunities if o.net_pct <= 0]

    @property
    def triangles(self) -> List[Opportunity]:
        return [o for o in self.opportunities if o.type == StrategyType.TRIANGLE]

    @property
    def crosses(self) -> List[Opportunity]:
        return [o for o in self.opportunities if o.type == StrategyType.CROSS]

    @property
    def best(self) -> Optional[Opportunity]:
        return self.opportunities[0] if self.opportunities else None

    @property
    def avg_net_pct(self) -> float:
        if not self.opportunities:
            return 0.0
        return sum(o.net_pct for o in self.opportunities) / len(self.opportunities)

    @property
    def total_est_profit(self) -> float:
        """Sum of expected profit over profitable opportunities"""
        return sum(o.expected_profit_local for o in self.profitable)

    def summary(self) -> dict:
        best = self.best
        return {
            "timestamp": self.timestamp.isoformat(),
            "base": self.bridge_currency,
            "fee_pct": self.fee_pct,
            "pair_count": self.pair_count,
            "total_opps": len(self.opportunities),
            "triangle_count": len(self.triangles),
            "cross_count": len(self.crosses),
            "profitable_count": len(self.profitable),
            "best_net": round(best.net_pct, 3) if best else None,
            "best_asset": best.label if best else None,
            "best_type": best.type.value if best else None,
            "avg_net": round(self.avg_net_pct, 3),
            "total_est_profit": round(self.total_est_profit),
        }


class OpportunityEngine:
    """
    Runs detection passes over raw order book snapshots.

    Every scan is independent: nothing computed for one snapshot is reused
    for the next. The engine only keeps the latest result and a short
    history of scan summaries for the dashboard.
    """

    def __init__(
        self,
        bridge_currency: str = BRIDGE_CURRENCY,
        fee_pct: float = TRADING_FEE_PCT,
        candidate_cap: Optional[int] = CROSS_CANDIDATE_CAP,
        max_cross_results: int = CROSS_MAX_RESULTS,
        discard_below_net_pct: float = CROSS_DISCARD_BELOW_NET_PCT,
        local_currency: str = LOCAL_CURRENCY,
        bridge_currencies=BRIDGE_CURRENCIES,
    ):
        self.bridge_currency = bridge_currency
        self.fee_pct = fee_pct
        self.candidate_cap = candidate_cap
        self.max_cross_results = max_cross_results
        self.discard_below_net_pct = discard_below_net_pct
        self.local_currency = local_currency
        # Always recognize the chosen bridge when parsing symbols
        self.bridge_currencies = tuple(dict.fromkeys((*bridge_currencies, bridge_currency)))

        self.last_result: Optional[ScanResult] = None
        self.last_pairs: List[MarketPair] = []
        self.history: deque = deque(maxlen=HISTORY_LIMIT)
        self.scan_count = 0

        self._on_scan_callbacks: List[Callable[[ScanResult], None]] = []

    def on_scan(self, callback: Callable[[ScanResult], None]):
        """Register callback for completed scans"""
        self._on_scan_callbacks.append(callback)

    def parse(self, snapshot) -> List[MarketPair]:
        return parse_all_pairs(snapshot, self.local_currency, self.bridge_currencies)

    def detect(self, pairs: List[MarketPair]) -> List[Opportunity]:
        return find_all_opportunities(
            pairs,
            self.bridge_currency,
            self.fee_pct,
            max_cross_results=self.max_cross_results,
            candidate_cap=self.candidate_cap,
            discard_below_net_pct=self.discard_below_net_pct,
            local_currency=self.local_currency,
        )

    def scan(self, snapshot, timestamp: Optional[datetime] = None) -> ScanResult:
        """Normalize a raw snapshot, detect and rank opportunities"""
        pairs = self.parse(snapshot)
        result = ScanResult(
            timestamp=timestamp or datetime.now(timezone.utc),
            bridge_currency=self.bridge_currency,
            fee_pct=self.fee_pct,
            pair_count=len(pairs),
            opportunities=self.detect(pairs),
        )

        self.scan_count += 1
        self.last_pairs = pairs
        self.last_result = result
        self.history.append(result.summary())

        best = result.best
        if best and best.net_pct > 0:
            logger.info(
                f"🔺 ARB: {best.type.value} {best.label} via {self.bridge_currency} | "
                f"Net: {best.net_pct:.3f}% | Vol: {best.max_volume_local:,.0f} {self.local_currency}"
            )

        for callback in self._on_scan_callbacks:
            try:
                callback(result)
            except Exception as e:
                logger.error(f"Scan callback error: {e}")

        return result

    def available_bases(self) -> List[str]:
        """Bridge currencies usable with the latest snapshot"""
        return get_available_bases(self.last_pairs, self.local_currency)

    def get_state(self, limit: int = 50) -> dict:
        """Get current state for API/dashboard"""
        result = self.last_result
        return {
            "scan_count": self.scan_count,
            "last_scan": result.summary() if result else None,
            "opportunities": [o.to_dict() for o in result.opportunities[:limit]] if result else [],
            "history": list(self.history)[-20:],
            "config": {
                "base": self.bridge_currency,
                "local_currency": self.local_currency,
                "fee_pct": self.fee_pct,
                "candidate_cap": self.candidate_cap,
                "max_cross_results": self.max_cross_results,
                "discard_below_net_pct": self.discard_below_net_pct,
            },
        }
