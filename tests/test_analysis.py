"""
Tests for timeline pattern analysis.
"""

import json

import pytest

import analyze
from engine_analysis import TimelineAnalyzer, TimelineEntry, load_timeline, print_bar
from engine_storage import ScanRecorder


def timeline_line(ts, tehran_time, best_net, profitable, top):
    return {
        "ts": ts,
        "tehranTime": tehran_time,
        "base": "USDT",
        "feePct": 0.35,
        "pairCount": 17,
        "totalOpps": len(top),
        "triangleCount": len(top),
        "crossCount": 0,
        "profitableCount": profitable,
        "bestNet": best_net,
        "bestAsset": top[0]["assets"][0] if top else None,
        "bestType": top[0]["type"] if top else None,
        "avgNet": best_net or 0.0,
        "totalEstProfit": profitable * 1000,
        "top": top,
    }


def compact(assets, net, type="tri"):
    return {"type": type, "dir": "cw", "assets": assets, "net": net, "gross": net + 1.05, "vol": 10000, "profit": net * 100}


@pytest.fixture
def timeline_lines():
    return [
        timeline_line("2025-01-30T22:30:00+00:00", "2025-01-31 02:00", 1.0, 2, [compact(["BTC"], 1.0)]),
        timeline_line("2025-01-31T10:30:00+00:00", "2025-01-31 14:00", -0.5, 0, [compact(["ETH"], -0.5)]),
        timeline_line("2025-02-01T11:00:00Z", "2025-02-01 14:30", 2.0, 3, [compact(["BTC", "ETH"], 2.0, "cross")]),
    ]


@pytest.fixture
def timeline_file(tmp_path, timeline_lines):
    path = tmp_path / "timeline.jsonl"
    body = "\n".join(json.dumps(line) for line in timeline_lines)
    path.write_text(body + "\n\n", encoding="utf-8")
    return path


@pytest.fixture
def analyzer(timeline_file):
    return TimelineAnalyzer(load_timeline(timeline_file))


class TestLoadTimeline:

    def test_skips_blank_lines(self, timeline_file):
        entries = load_timeline(timeline_file)
        assert len(entries) == 3
        assert entries[0].top[0].assets == ["BTC"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_timeline(tmp_path / "missing.jsonl")

    def test_reads_recorder_output(self, tmp_path, engine, triangle_snapshot, scan_time):
        recorder = ScanRecorder(tmp_path)
        recorder.record(engine.scan(triangle_snapshot, timestamp=scan_time))

        entry = load_timeline(recorder.timeline_path)[0]
        assert entry.hour == 14
        assert entry.weekday == "Fri"
        assert entry.best_net == 2.9


class TestTimelineEntry:

    def test_time_fields(self, timeline_lines):
        entry = TimelineEntry.from_dict(timeline_lines[2])
        assert entry.date == "2025-02-01"
        assert entry.hour == 14
        assert entry.weekday == "Sat"

    def test_missing_best_net(self):
        entry = TimelineEntry.from_dict(timeline_line("2025-01-31T10:30:00Z", "2025-01-31 14:00", None, 0, []))
        assert entry.best_net_or_zero == 0.0


class TestTimelineAnalyzer:
    """Tests for bucketing and reports"""

    def test_by_hour(self, analyzer):
        by_hour = analyzer.by_hour()

        assert sorted(by_hour) == ["02", "14"]
        assert by_hour["02"].scans == 1
        assert by_hour["14"].scans == 2
        assert by_hour["14"].avg_best_net == pytest.approx(0.75)
        assert by_hour["14"].max_best_net == 2.0
        assert by_hour["14"].total_est_profit == 3000
        # ETH at -0.5% is below min_net
        assert by_hour["14"].top_assets == [("BTC", 1), ("ETH", 1)]

    def test_by_day(self, analyzer):
        by_day = analyzer.by_day()
        assert by_day["Fri"].scans == 2
        assert by_day["Sat"].scans == 1

    def test_by_date(self, analyzer):
        assert sorted(analyzer.by_date()) == ["2025-01-31", "2025-02-01"]

    def test_sleep_vs_awake(self, analyzer):
        split = analyzer.sleep_vs_awake()

        assert split["sleep"] == {"scans": 1, "avgBestNet": 1.0, "totalProfitable": 2}
        assert split["awake"]["scans"] == 2
        assert split["awake"]["avgBestNet"] == pytest.approx(0.75)
        assert split["awake"]["totalProfitable"] == 3

    def test_top_opportunities(self, analyzer):
        top = analyzer.top_opportunities()

        assert [when for when, _ in top] == ["2025-02-01 14:30", "2025-01-31 02:00"]
        assert top[0][1].assets == ["BTC", "ETH"]

    def test_min_net_filter(self, timeline_file):
        analyzer = TimelineAnalyzer(load_timeline(timeline_file), min_net=1.5)
        assert len(analyzer.top_opportunities()) == 1

    def test_duration(self, analyzer):
        assert analyzer.duration_hours() == pytest.approx(36.5)

    def test_to_json(self, analyzer):
        report = analyzer.to_json()

        assert report["meta"]["scans"] == 3
        assert set(report) == {"meta", "byHour", "byDay", "byDate", "sleepVsAwake"}
        assert report["byHour"]["14"]["scans"] == 2

    def test_render_report(self, analyzer):
        text = analyzer.render_report()

        assert "Arbitrage Pattern Analysis" in text
        assert "By Hour" in text
        assert "BTC+ETH" in text


class TestPrintBar:

    def test_bar(self):
        assert print_bar(5, 10, width=10) == "█████░░░░░"

    def test_no_max(self):
        assert print_bar(1, 0) == ""


class TestAnalyzeCli:
    """Tests for the analyze.py entry point"""

    def test_missing_file(self, tmp_path, capsys):
        assert analyze.main(["--file", str(tmp_path / "missing.jsonl")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_empty_file(self, tmp_path, capsys):
        path = tmp_path / "timeline.jsonl"
        path.write_text("", encoding="utf-8")

        assert analyze.main(["--file", str(path)]) == 0
        assert "No data in timeline" in capsys.readouterr().out

    def test_json_output(self, timeline_file, capsys):
        assert analyze.main(["--file", str(timeline_file), "--json"]) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["meta"]["scans"] == 3
