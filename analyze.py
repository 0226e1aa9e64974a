"""
Timeline analysis CLI

Usage:
    python analyze.py
    python analyze.py --file docs/data/timeline.jsonl --min-net 0.5
    python analyze.py --json > report.json
"""
import argparse
import json
import sys
from pathlib import Path

from config import OUTPUT_DIR
from engine_analysis import TimelineAnalyzer, load_timeline
from engine_storage import TIMELINE_FILENAME


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Analyze arbitrage scan timeline")
    parser.add_argument("--file", default=str(Path(OUTPUT_DIR) / TIMELINE_FILENAME), help="Timeline file")
    parser.add_argument("--min-net", type=float, default=0.0, help="Minimum net %% for asset and top lists")
    parser.add_argument("--json", action="store_true", help="Output JSON instead of the text report")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        entries = load_timeline(args.file)
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        return 1

    if not entries:
        print("No data in timeline. Run the scanner first.")
        return 0

    analyzer = TimelineAnalyzer(entries, min_net=args.min_net)
    if args.json:
        print(json.dumps(analyzer.to_json(), indent=2, ensure_ascii=False))
    else:
        print(analyzer.render_report())
    return 0


if __name__ == "__main__":
    sys.exit(main())
