"""
Scan Recorder

Persists every scan for later pattern analysis:
- timeline.jsonl: one compact line per scan (append-only)
- snapshots/<date>/<HHMMSS>.json: the full opportunity list of one scan

Dates and times in file names and the timeline are local exchange time
(Asia/Tehran); ``ts`` stays in UTC ISO format.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union
from zoneinfo import ZoneInfo

from config import REPORT_TIMEZONE, SNAPSHOT_UNPROFITABLE_LIMIT, TIMELINE_TOP_N
from engine import ScanResult

logger = logging.getLogger(__name__)

TIMELINE_FILENAME = "timeline.jsonl"


@dataclass
class LocalTime:
    """A timestamp split the way files and timeline entries use it"""
    date: str  # 2025-01-31
    time: str  # 142530
    hhmm: str  # 14:25

    @property
    def label(self) -> str:
        return f"{self.date} {self.hhmm}"


def local_time(timestamp: datetime, tz: str = REPORT_TIMEZONE) -> LocalTime:
    """Convert a timestamp to the reporting time zone"""
    local = timestamp.astimezone(ZoneInfo(tz))
    return LocalTime(
        date=local.strftime("%Y-%m-%d"),
        time=local.strftime("%H%M%S"),
        hhmm=local.strftime("%H:%M"),
    )


class ScanRecorder:
    """
    Writes scan results to disk.

    Each call to record() is independent; the only state carried between
    scans is the append-only timeline file.
    """

    def __init__(
        self,
        out_dir: Union[str, Path],
        top_n: int = TIMELINE_TOP_N,
        unprofitable_limit: int = SNAPSHOT_UNPROFITABLE_LIMIT,
        tz: str = REPORT_TIMEZONE,
    ):
        """
        Args:
            out_dir: Directory receiving timeline.jsonl and snapshots/
            top_n: Opportunities kept per timeline line
            unprofitable_limit: Unprofitable opportunities kept per snapshot file
            tz: Time zone used for dates and times
        """
        self.out_dir = Path(out_dir)
        self.top_n = top_n
        self.unprofitable_limit = unprofitable_limit
        self.tz = tz
        self.records_written = 0

    @property
    def timeline_path(self) -> Path:
        return self.out_dir / TIMELINE_FILENAME

    def timeline_entry(self, result: ScanResult) -> dict:
        """Compact per-scan line"""
        when = local_time(result.timestamp, self.tz)
        best = result.best
        return {
            "ts": result.timestamp.isoformat(),
            "tehranTime": when.label,
            "base": result.bridge_currency,
            "feePct": result.fee_pct,
            "pairCount": result.pair_count,
            "totalOpps": len(result.opportunities),
            "triangleCount": len(result.triangles),
            "crossCount": len(result.crosses),
            "profitableCount": len(result.profitable),
            "bestNet": round(best.net_pct, 3) if best else None,
            "bestAsset": best.label if best else None,
            "bestType": best.type.value if best else None,
            "avgNet": round(result.avg_net_pct, 3),
            "totalEstProfit": round(result.total_est_profit),
            "top": [o.to_compact() for o in result.opportunities[:self.top_n]],
        }

    def snapshot_document(self, result: ScanResult) -> dict:
        """Verbose per-scan document"""
        when = local_time(result.timestamp, self.tz)
        return {
            "timestamp": result.timestamp.isoformat(),
            "tehranTime": when.label,
            "config": {"base": result.bridge_currency, "feePct": result.fee_pct},
            "summary": {
                "pairCount": result.pair_count,
                "totalOpps": len(result.opportunities),
                "triangleCount": len(result.triangles),
                "crossCount": len(result.crosses),
                "profitableCount": len(result.profitable),
                "avgNetPct": round(result.avg_net_pct, 3),
                "totalEstProfitIRT": round(result.total_est_profit),
            },
            "opportunities": [
                o.to_dict()
                for o in result.profitable + result.unprofitable[:self.unprofitable_limit]
            ],
        }

    def record(self, result: ScanResult) -> Path:
        """Append the timeline line and write the snapshot file; returns the snapshot path"""
        when = local_time(result.timestamp, self.tz)

        self.out_dir.mkdir(parents=True, exist_ok=True)
        with self.timeline_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(self.timeline_entry(result), ensure_ascii=False) + "\n")

        snapshot_dir = self.out_dir / "snapshots" / when.date
        snapshot_dir.mkdir(parents=True, exist_ok=True)
        snapshot_path = snapshot_dir / f"{when.time}.json"
        with snapshot_path.open("w", encoding="utf-8") as f:
            json.dump(self.snapshot_document(result), f, indent=2, ensure_ascii=False)

        self.records_written += 1
        logger.debug(f"Recorded scan to {snapshot_path}")
        return snapshot_path


def load_snapshot(path: Union[str, Path]) -> Optional[dict]:
    """Read back a snapshot file written by ScanRecorder"""
    path = Path(path)
    if not path.exists():
        return None
    with path.open(encoding="utf-8") as f:
        return json.load(f)
