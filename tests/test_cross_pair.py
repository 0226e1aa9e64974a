"""
Tests for cross-pair arbitrage detection.
"""

import math

import pytest

from engine_cross_pair import (
    CROSS_LEGS,
    CrossCandidate,
    find_cross_pairs,
    select_candidates,
)
from engine_pairs import build_asset_entries, parse_all_pairs
from src.core.opportunity import Direction, Side, StrategyType
from tests.conftest import book


@pytest.fixture
def three_asset_snapshot(cross_snapshot):
    """Adds C, a weaker seller than A that still pairs profitably with B"""
    cross_snapshot["CIRT"] = book(99, 5, 100, 5)
    cross_snapshot["CUSDT"] = book(0.105, 5, 0.106, 5)
    return cross_snapshot


class TestCrossCandidates:
    """Tests for half-cycle ratios and top-K selection"""

    def test_ratios(self, cross_pairs):
        candidates = {
            e.asset: CrossCandidate.from_entry(e)
            for e in build_asset_entries(cross_pairs, "USDT")
        }

        assert candidates["A"].sell_ratio == pytest.approx(0.11 / 100)
        assert candidates["A"].buy_ratio == pytest.approx(99 / 0.111)
        assert candidates["B"].sell_ratio == pytest.approx(0.99 / 1010)
        assert candidates["B"].buy_ratio == pytest.approx(1000 / 1.0)

    def test_select_candidates(self, three_asset_snapshot):
        entries = build_asset_entries(parse_all_pairs(three_asset_snapshot), "USDT")
        candidates = [CrossCandidate.from_entry(e) for e in entries]

        sellers, buyers = select_candidates(candidates, 2)
        assert [c.asset for c in sellers] == ["A", "C"]
        assert [c.asset for c in buyers] == ["B", "C"]

        sellers, buyers = select_candidates(candidates, None)
        assert len(sellers) == len(buyers) == 3


class TestFindCrossPairs:
    """Tests for 4-leg cross-pair evaluation"""

    def test_example(self, cross_pairs):
        results = find_cross_pairs(cross_pairs, "USDT", 0.35)

        # B -> A is discarded early (net ~ -14%)
        assert len(results) == 1
        o = results[0]
        assert o.type == StrategyType.CROSS
        assert o.direction == Direction.CROSS
        assert o.assets == ("A", "B")
        assert o.rate == pytest.approx(1.1)
        assert o.fee_pct == pytest.approx(CROSS_LEGS * 0.35)
        assert o.net_pct == pytest.approx(8.6)
        assert o.bottleneck_leg == 0
        assert o.max_volume_local == pytest.approx(500)
        assert o.expected_profit_local == pytest.approx(43)

    def test_legs(self, cross_pairs):
        o = find_cross_pairs(cross_pairs, "USDT", 0.35)[0]

        assert [leg.pair_symbol for leg in o.legs] == ["AIRT", "AUSDT", "BUSDT", "BIRT"]
        assert [leg.side for leg in o.legs] == [Side.BUY, Side.SELL, Side.BUY, Side.SELL]

    def test_buyer_depth_bottleneck(self, cross_snapshot):
        cross_snapshot["BIRT"] = book(1000, 0.2, 1010, 2)
        o = find_cross_pairs(parse_all_pairs(cross_snapshot), "USDT", 0.35)[0]

        # 0.2 B * 1.0 USDT / 0.11 USDT per A
        assert o.bottleneck_leg == 3
        assert o.max_volume_local == pytest.approx(0.2 / 0.11 * 100)

    def test_discard_threshold(self, cross_pairs):
        results = find_cross_pairs(cross_pairs, "USDT", 0.35, discard_below_net_pct=-100)
        assert sorted(o.label for o in results) == ["A+B", "B+A"]

        results = find_cross_pairs(cross_pairs, "USDT", 0.35, discard_below_net_pct=10)
        assert results == []

    def test_never_pairs_asset_with_itself(self, three_asset_snapshot):
        results = find_cross_pairs(
            parse_all_pairs(three_asset_snapshot), "USDT", 0.35,
            candidate_cap=None, discard_below_net_pct=-100,
        )
        assert len(results) == 6
        assert all(o.assets[0] != o.assets[1] for o in results)

    def test_sorted_and_bounded(self, three_asset_snapshot):
        pairs = parse_all_pairs(three_asset_snapshot)
        results = find_cross_pairs(pairs, "USDT", 0.35, candidate_cap=None, discard_below_net_pct=-100)
        nets = [o.net_pct for o in results]
        assert nets == sorted(nets, reverse=True)

        assert len(find_cross_pairs(pairs, "USDT", 0.35, max_results=2, discard_below_net_pct=-100)) == 2

    def test_pruning_is_not_exhaustive(self, three_asset_snapshot):
        pairs = parse_all_pairs(three_asset_snapshot)

        full = find_cross_pairs(pairs, "USDT", 0.35, candidate_cap=None)
        pruned = find_cross_pairs(pairs, "USDT", 0.35, candidate_cap=1)

        assert [o.label for o in full] == ["A+B", "C+B", "A+C"]
        assert [o.label for o in pruned] == ["A+B"]

    def test_missing_bridge_pair(self, cross_snapshot):
        del cross_snapshot["USDTIRT"]
        assert find_cross_pairs(parse_all_pairs(cross_snapshot), "USDT", 0.35) == []

    def test_single_asset(self, triangle_pairs):
        assert find_cross_pairs(triangle_pairs, "USDT", 0.35) == []

    def test_zero_prices_discarded(self, cross_pairs, zero_priced_pairs):
        results = find_cross_pairs(
            cross_pairs + zero_priced_pairs, "USDT", 0.35,
            candidate_cap=None, discard_below_net_pct=-1000,
        )

        assert sorted(o.label for o in results) == ["A+B", "B+A"]
        for o in results:
            assert math.isfinite(o.rate)
            assert o.max_volume_local > 0

    def test_zero_ask_quantity_excludes_seller(self, cross_snapshot):
        cross_snapshot["AIRT"] = book(99, 5, 100, 0)
        results = find_cross_pairs(
            parse_all_pairs(cross_snapshot), "USDT", 0.35, discard_below_net_pct=-100,
        )

        assert [o.label for o in results] == ["B+A"]
        assert all(o.assets[0] != "A" for o in results)
