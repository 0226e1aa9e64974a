"""
Pytest configuration and fixtures for BridgeScout tests.
"""

import pytest
from datetime import datetime, timezone
from typing import Generator

from fastapi.testclient import TestClient

# Import application
import sys
sys.path.insert(0, '.')

from dashboard import app, manager
from engine import OpportunityEngine
from engine_pairs import parse_all_pairs
from src.core.opportunity import MarketPair


def book(bid, bid_qty, ask, ask_qty):
    """Raw order book entry in the exchange wire format"""
    return {
        "bids": [[str(bid), str(bid_qty)]],
        "asks": [[str(ask), str(ask_qty)]],
    }


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create synchronous test client"""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def engine() -> OpportunityEngine:
    """Fresh engine with explicit parameters"""
    return OpportunityEngine(bridge_currency="USDT", fee_pct=0.35)


@pytest.fixture
def attached_engine(engine):
    """Engine attached to the dashboard manager, detached afterwards"""
    previous = manager.engine
    manager.engine = engine
    yield engine
    manager.engine = previous


@pytest.fixture
def scan_time() -> datetime:
    # 14:25:30 in Tehran (UTC+03:30), a Friday
    return datetime(2025, 1, 31, 10, 55, 30, tzinfo=timezone.utc)


# Sample data fixtures

@pytest.fixture
def triangle_snapshot():
    """
    One asset, one bridge.

    CW:  buy BTC @1000 IRT, sell @1.05 USDT, sell USDT @990 -> rate 1.0395
    CCW: buy USDT @1000, buy BTC @1.06 USDT, sell BTC @990 IRT -> rate ~0.934
    """
    return {
        "status": "ok",
        "BTCIRT": book(990, 10, 1000, 10),
        "BTCUSDT": book(1.05, 10, 1.06, 10),
        "USDTIRT": book(990, 1000, 1000, 1000),
    }


@pytest.fixture
def triangle_pairs(triangle_snapshot):
    return parse_all_pairs(triangle_snapshot)


@pytest.fixture
def cross_snapshot():
    """
    A is cheap in IRT relative to USDT, B is expensive in IRT.
    Buying A with IRT, selling for USDT, buying B and selling for IRT
    gives rate 0.0011 * 1000 = 1.1.
    """
    return {
        "status": "ok",
        "AIRT": book(99, 5, 100, 5),
        "AUSDT": book(0.11, 5, 0.111, 5),
        "BIRT": book(1000, 2, 1010, 2),
        "BUSDT": book(0.99, 3, 1.0, 3),
        "USDTIRT": book(900, 1000, 910, 1000),
    }


@pytest.fixture
def cross_pairs(cross_snapshot):
    return parse_all_pairs(cross_snapshot)


@pytest.fixture
def zero_priced_pairs():
    """
    X is listed on both quotes but its USDT book has zero prices, as if
    built without going through the normalizer.
    """
    return [
        MarketPair("XIRT", "X", "IRT", best_bid=990.0, best_bid_qty=5.0, best_ask=1000.0, best_ask_qty=5.0),
        MarketPair("XUSDT", "X", "USDT", best_bid=0.0, best_bid_qty=5.0, best_ask=0.0, best_ask_qty=5.0),
    ]
