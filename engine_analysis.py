"""
Timeline Pattern Analysis

Reads the compact scan timeline and looks for recurring patterns:
- Which local hours produce the best opportunities
- Day-of-week and per-date trends
- Sleep hours (00:00-06:00) versus awake hours
- Assets that keep showing up at the top
- The best single opportunities ever recorded
"""

import json
import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from config import SLEEP_HOURS
from src.core.formatting import format_irt

logger = logging.getLogger(__name__)

DAY_ORDER = ["Sat", "Sun", "Mon", "Tue", "Wed", "Thu", "Fri"]


@dataclass
class CompactOpportunity:
    """Opportunity as stored in a timeline line"""
    type: str
    dir: str
    assets: List[str]
    net: float
    gross: float
    vol: float
    profit: float

    @classmethod
    def from_dict(cls, data: dict) -> 'CompactOpportunity':
        return cls(
            type=data.get("type", ""),
            dir=data.get("dir", ""),
            assets=list(data.get("assets", [])),
            net=float(data.get("net", 0.0)),
            gross=float(data.get("gross", 0.0)),
            vol=float(data.get("vol", 0.0)),
            profit=float(data.get("profit", 0.0)),
        )


@dataclass
class TimelineEntry:
    """One scan of the timeline"""
    ts: str
    tehran_time: str  # "YYYY-MM-DD HH:MM" in exchange local time
    base: str
    fee_pct: float
    pair_count: int
    total_opps: int
    triangle_count: int
    cross_count: int
    profitable_count: int
    best_net: Optional[float]
    best_asset: Optional[str]
    best_type: Optional[str]
    avg_net: float
    total_est_profit: float
    top: List[CompactOpportunity] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> 'TimelineEntry':
        return cls(
            ts=data["ts"],
            tehran_time=data["tehranTime"],
            base=data.get("base", ""),
            fee_pct=data.get("feePct", 0.0),
            pair_count=data.get("pairCount", 0),
            total_opps=data.get("totalOpps", 0),
            triangle_count=data.get("triangleCount", 0),
            cross_count=data.get("crossCount", 0),
            profitable_count=data.get("profitableCount", 0),
            best_net=data.get("bestNet"),
            best_asset=data.get("bestAsset"),
            best_type=data.get("bestType"),
            avg_net=data.get("avgNet", 0.0),
            total_est_profit=data.get("totalEstProfit", 0),
            top=[CompactOpportunity.from_dict(o) for o in data.get("top", [])],
        )

    @property
    def date(self) -> str:
        return self.tehran_time.split(" ")[0]

    @property
    def hour(self) -> int:
        return int(self.tehran_time.split(" ")[1].split(":")[0])

    @property
    def weekday(self) -> str:
        return datetime.strptime(self.date, "%Y-%m-%d").strftime("%a")

    @property
    def best_net_or_zero(self) -> float:
        return self.best_net if self.best_net is not None else 0.0


@dataclass
class BucketStats:
    """Aggregates for a group of scans"""
    scans: int
    avg_best_net: float
    max_best_net: float
    avg_profitable_count: float
    max_profitable_count: int
    avg_total_est_profit: float
    total_est_profit: float
    top_assets: List[Tuple[str, int]]

    def to_dict(self) -> dict:
        return {
            "scans": self.scans,
            "avgBestNet": round(self.avg_best_net, 4),
            "maxBestNet": self.max_best_net,
            "avgProfitableCount": round(self.avg_profitable_count, 2),
            "maxProfitableCount": self.max_profitable_count,
            "avgTotalEstProfit": round(self.avg_total_est_profit),
            "totalEstProfit": self.total_est_profit,
            "topAssets": [list(a) for a in self.top_assets],
        }


def load_timeline(path: Union[str, Path]) -> List[TimelineEntry]:
    """
    Parse a timeline.jsonl file.

    Raises:
        FileNotFoundError: if the file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    entries = []
    with path.open(encoding="utf-8") as f:
        for line in f:
            if line.strip():
                entries.append(TimelineEntry.from_dict(json.loads(line)))
    logger.debug(f"Loaded {len(entries)} timeline entries from {path}")
    return entries


def print_bar(value: float, max_value: float, width: int = 30) -> str:
    """ASCII bar of value relative to max_value"""
    if max_value <= 0:
        return ""
    filled = round((value / max_value) * width)
    return "█" * max(filled, 0) + "░" * max(width - filled, 0)


def _signed(value: float, width: int) -> str:
    return f"{'+' if value >= 0 else ''}{value:.3f}".rjust(width)


class TimelineAnalyzer:
    """
    Aggregates a scan timeline into hourly, daily and per-date statistics.

    Only opportunities with net % >= min_net count towards asset
    frequencies and the best-ever list.
    """

    def __init__(self, entries: List[TimelineEntry], min_net: float = 0.0, sleep_hours: Tuple[int, int] = SLEEP_HOURS):
        self.entries = entries
        self.min_net = min_net
        self.sleep_start, self.sleep_end = sleep_hours

    def is_sleep_hour(self, hour: int) -> bool:
        return self.sleep_start <= hour < self.sleep_end

    def bucketize(self, key_fn: Callable[[TimelineEntry], str]) -> Dict[str, BucketStats]:
        """Group entries by key_fn and compute stats per group"""
        buckets: Dict[str, List[TimelineEntry]] = defaultdict(list)
        for entry in self.entries:
            buckets[key_fn(entry)].append(entry)

        result = {}
        for key, items in buckets.items():
            best_nets = [e.best_net_or_zero for e in items]
            profitable_counts = [e.profitable_count for e in items]
            profit_sums = [e.total_est_profit for e in items]

            asset_count: Counter = Counter()
            for e in items:
                for o in e.top:
                    if o.net >= self.min_net:
                        asset_count.update(o.assets)

            result[key] = BucketStats(
                scans=len(items),
                avg_best_net=sum(best_nets) / len(items),
                max_best_net=max(best_nets),
                avg_profitable_count=sum(profitable_counts) / len(items),
                max_profitable_count=max(profitable_counts),
                avg_total_est_profit=sum(profit_sums) / len(items),
                total_est_profit=sum(profit_sums),
                top_assets=asset_count.most_common(5),
            )
        return result

    def by_hour(self) -> Dict[str, BucketStats]:
        return self.bucketize(lambda e: f"{e.hour:02d}")

    def by_day(self) -> Dict[str, BucketStats]:
        return self.bucketize(lambda e: e.weekday)

    def by_date(self) -> Dict[str, BucketStats]:
        return self.bucketize(lambda e: e.date)

    def sleep_vs_awake(self) -> dict:
        """Average best net % and total profitable count, sleep hours vs the rest"""
        sleep = [e for e in self.entries if self.is_sleep_hour(e.hour)]
        awake = [e for e in self.entries if not self.is_sleep_hour(e.hour)]

        def summarize(items: List[TimelineEntry]) -> dict:
            bests = [e.best_net_or_zero for e in items]
            return {
                "scans": len(items),
                "avgBestNet": sum(bests) / len(bests) if bests else 0.0,
                "totalProfitable": sum(e.profitable_count for e in items),
            }

        return {"sleep": summarize(sleep), "awake": summarize(awake)}

    def top_opportunities(self, limit: int = 20) -> List[Tuple[str, CompactOpportunity]]:
        """Best single opportunities across all scans as (time, opportunity)"""
        found = [
            (e.tehran_time, o)
            for e in self.entries
            for o in e.top
            if o.net >= self.min_net
        ]
        found.sort(key=lambda item: item[1].net, reverse=True)
        return found[:limit]

    def to_json(self) -> dict:
        return {
            "meta": {
                "scans": len(self.entries),
                "first": self.entries[0].ts if self.entries else None,
                "last": self.entries[-1].ts if self.entries else None,
            },
            "byHour": {k: v.to_dict() for k, v in sorted(self.by_hour().items())},
            "byDay": {k: v.to_dict() for k, v in self.by_day().items()},
            "byDate": {k: v.to_dict() for k, v in sorted(self.by_date().items())},
            "sleepVsAwake": self.sleep_vs_awake(),
        }

    def duration_hours(self) -> float:
        if len(self.entries) < 2:
            return 0.0
        first = datetime.fromisoformat(self.entries[0].ts.replace("Z", "+00:00"))
        last = datetime.fromisoformat(self.entries[-1].ts.replace("Z", "+00:00"))
        return (last - first).total_seconds() / 3600

    def render_report(self) -> str:
        """Formatted text report with ASCII charts"""
        lines: List[str] = []
        first = self.entries[0].tehran_time if self.entries else "?"
        last = self.entries[-1].tehran_time if self.entries else "?"

        lines.append("")
        lines.append("╔" + "═" * 60 + "╗")
        lines.append("║  " + "Arbitrage Pattern Analysis".ljust(58) + "║")
        lines.append("╠" + "═" * 60 + "╣")
        lines.append("║  " + f"Scans:      {len(self.entries)}".ljust(58) + "║")
        lines.append("║  " + f"Period:     {first} → {last}".ljust(58) + "║")
        lines.append("║  " + f"Duration:   {self.duration_hours():.1f} hours".ljust(58) + "║")
        lines.append("║  " + f"Min net%:   {self.min_net}%".ljust(58) + "║")
        lines.append("╚" + "═" * 60 + "╝")

        by_hour = self.by_hour()
        max_avg = max((s.avg_best_net for s in by_hour.values()), default=0.0)
        lines.append("")
        lines.append("── By Hour (Tehran Time) " + "─" * 40)
        lines.append(f"  When are the best opportunities? (sleep time: ~{self.sleep_start:02d}:00–{self.sleep_end:02d}:00)")
        lines.append("")
        lines.append("  Hour │ Scans │ Avg Best Net%  │ Avg #Profitable │ Chart")
        lines.append("  ─────┼───────┼────────────────┼─────────────────┼" + "─" * 32)
        for hour in sorted(by_hour):
            s = by_hour[hour]
            marker = " 💤" if self.is_sleep_hour(int(hour)) else ""
            lines.append(
                f"  {hour}:00│ {s.scans:>5} │ {_signed(s.avg_best_net, 14)}% │ "
                f"{s.avg_profitable_count:>15.1f} │ {print_bar(s.avg_best_net, max_avg)}{marker}"
            )

        by_day = self.by_day()
        lines.append("")
        lines.append("── By Day of Week " + "─" * 46)
        lines.append("")
        lines.append("  Day  │ Scans │ Avg Best Net%  │ Avg #Profitable │ Total Est Profit")
        lines.append("  ─────┼───────┼────────────────┼─────────────────┼" + "─" * 18)
        for day in DAY_ORDER:
            s = by_day.get(day)
            if not s:
                continue
            lines.append(
                f"  {day}  │ {s.scans:>5} │ {_signed(s.avg_best_net, 14)}% │ "
                f"{s.avg_profitable_count:>15.1f} │ {format_irt(s.total_est_profit)} IRT"
            )

        split = self.sleep_vs_awake()
        sleep, awake = split["sleep"], split["awake"]
        lines.append("")
        lines.append(f"── Sleep ({self.sleep_start:02d}–{self.sleep_end:02d}) vs Awake " + "─" * 30)
        lines.append("")
        lines.append("  Period   │ Scans │ Avg Best Net%  │ Total Profitable")
        lines.append("  ─────────┼───────┼────────────────┼─────────────────")
        lines.append(f"  Sleep 💤 │ {sleep['scans']:>5} │ {_signed(sleep['avgBestNet'], 14)}% │ {sleep['totalProfitable']:>16}")
        lines.append(f"  Awake ☀️  │ {awake['scans']:>5} │ {_signed(awake['avgBestNet'], 14)}% │ {awake['totalProfitable']:>16}")
        if sleep["scans"] and awake["scans"]:
            diff = sleep["avgBestNet"] - awake["avgBestNet"]
            verdict = "BETTER" if diff > 0 else "WORSE"
            lines.append("")
            lines.append(f"  → Sleep hours are {verdict} by {abs(diff):.3f}% on average")

        lines.append("")
        lines.append("── Top Single Opportunities Ever Seen " + "─" * 27)
        lines.append("")
        lines.append("  #  │ Time             │ Type  │ Assets          │ Net%     │ Est Profit")
        lines.append("  ───┼──────────────────┼───────┼─────────────────┼──────────┼───────────")
        for i, (when, o) in enumerate(self.top_opportunities(), start=1):
            lines.append(
                f"  {i:>2} │ {when:<16} │ {o.type:<5} │ {'+'.join(o.assets):<15} │ "
                f"{_signed(o.net, 8)}% │ {format_irt(o.profit)} IRT"
            )

        lines.append("")
        lines.append("═" * 62)
        return "\n".join(lines)
