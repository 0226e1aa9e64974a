"""Simulated order book snapshots for testing when the exchange is unreachable"""
import logging
import random
from typing import Dict, Optional

from .base import SnapshotSource
from config import BRIDGE_CURRENCY, LOCAL_CURRENCY

logger = logging.getLogger(__name__)


# Realistic base prices for simulation, quoted in the bridge currency
BASE_PRICES = {
    "BTC": 97500.0,
    "ETH": 3250.0,
    "SOL": 245.0,
    "XRP": 3.15,
    "DOGE": 0.38,
    "ADA": 1.05,
    "TRX": 0.25,
    "LTC": 105.0,
}

# Bridge currency price in local currency
BRIDGE_PRICE = 92000.0


def _level(price: float, qty: float) -> list:
    return [f"{price:.10g}", f"{qty:.8g}"]


def _book(mid: float, spread: float, qty: float) -> dict:
    half = mid * spread / 2
    return {
        "bids": [_level(mid - half, qty)],
        "asks": [_level(mid + half, qty)],
    }


def generate_snapshot(
    prices: Optional[Dict[str, float]] = None,
    bridge_price: float = BRIDGE_PRICE,
    seed: Optional[int] = None,
    mispricing: float = 0.01,
    local_currency: str = LOCAL_CURRENCY,
    bridge_currency: str = BRIDGE_CURRENCY,
) -> dict:
    """
    Build a raw snapshot in the exchange wire format.

    Each asset gets a local pair and a bridge pair. The local price is the
    bridge price times the bridge rate, randomly skewed by up to
    ``mispricing`` so some cycles come out profitable.
    """
    rng = random.Random(seed)
    prices = prices if prices is not None else BASE_PRICES

    snapshot: dict = {"status": "ok"}
    snapshot[f"{bridge_currency}{local_currency}"] = _book(
        bridge_price, rng.uniform(0.0005, 0.002), rng.uniform(5_000, 50_000)
    )

    for asset, price in prices.items():
        skew = 1 + rng.uniform(-mispricing, mispricing)
        notional = rng.uniform(500, 20_000)  # depth in bridge currency
        snapshot[f"{asset}{bridge_currency}"] = _book(
            price, rng.uniform(0.0005, 0.003), notional / price
        )
        snapshot[f"{asset}{local_currency}"] = _book(
            price * bridge_price * skew, rng.uniform(0.0005, 0.003), notional / price
        )

    return snapshot


class SimulatedSource(SnapshotSource):
    """
    Random-walk snapshot generator.
    Useful when network restrictions block the real exchange API.
    """

    def __init__(self, name: str = "Simulator", seed: Optional[int] = None, mispricing: float = 0.01):
        super().__init__(name)
        self.rng = random.Random(seed)
        self.mispricing = mispricing
        self.current_prices = dict(BASE_PRICES)
        self.bridge_price = BRIDGE_PRICE

    async def _fetch(self) -> dict:
        # Small random movement (-0.1% to +0.1%)
        for asset, price in self.current_prices.items():
            self.current_prices[asset] = price * (1 + self.rng.uniform(-0.001, 0.001))
        self.bridge_price *= 1 + self.rng.uniform(-0.0005, 0.0005)

        return generate_snapshot(
            prices=self.current_prices,
            bridge_price=self.bridge_price,
            seed=self.rng.randrange(2**32),
            mispricing=self.mispricing,
        )
