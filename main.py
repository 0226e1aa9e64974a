"""
Bridge Arbitrage Scanner - Main Entry Point

Periodically fetches a full order book snapshot, detects triangular and
cross-pair opportunities through the bridge currency, and records every
scan for later pattern analysis.

Usage:
    python main.py                       # scan every 60s
    python main.py --once                # single scan
    python main.py --base USDT --fee 0.35 --interval 30
    python main.py --simulate --serve    # mock data + HTTP API
"""
import argparse
import asyncio
import logging
import signal
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from config import (
    BRIDGE_CURRENCY,
    MODE,
    OUTPUT_DIR,
    SCAN_INTERVAL,
    TIMELINE_TOP_N,
    TRADING_FEE_PCT,
    WEB_HOST,
    WEB_PORT,
)
from engine import OpportunityEngine, ScanResult
from engine_storage import ScanRecorder, local_time
from exchanges import NobitexSource, SimulatedSource, SnapshotFetchError, SnapshotSource
from src.core.formatting import format_irt, format_pct

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)

# Reduce noise from libraries
logging.getLogger('aiohttp').setLevel(logging.WARNING)
logging.getLogger('uvicorn.access').setLevel(logging.WARNING)


class ArbitrageScanner:
    """Fetch, detect, record loop"""

    def __init__(
        self,
        source: SnapshotSource,
        engine: OpportunityEngine,
        recorder: Optional[ScanRecorder] = None,
        quiet: bool = False,
    ):
        self.source = source
        self.engine = engine
        self.recorder = recorder
        self.quiet = quiet
        self.running = False
        self.failed_scans = 0
        self.scan_count = 0

    @property
    def output_dir(self) -> str:
        return str(self.recorder.out_dir) if self.recorder else "(not recorded)"

    async def scan_once(self) -> Optional[ScanResult]:
        """Run one scan; returns None when the snapshot could not be fetched"""
        self.scan_count += 1
        try:
            snapshot = await self.source.fetch_snapshot()
        except SnapshotFetchError as e:
            self.failed_scans += 1
            logger.error(f"Scan skipped: {e}")
            return None

        result = self.engine.scan(snapshot)

        if self.recorder:
            try:
                self.recorder.record(result)
            except OSError as e:
                logger.error(f"Failed to record scan: {e}")

        if not self.quiet:
            print(render_summary(result))
        return result

    async def run(self, interval: float = SCAN_INTERVAL, once: bool = False):
        """Scan until stopped"""
        self.running = True
        logger.info(
            f"Scanner started: {self.source.name} | base={self.engine.bridge_currency} "
            f"fee={self.engine.fee_pct}% interval={interval}s output={self.output_dir} "
            f"mode={'single scan' if once else 'continuous'}"
        )
        try:
            while self.running:
                await self.scan_once()
                if once:
                    break
                await asyncio.sleep(interval)
        finally:
            self.running = False
            await self.source.close()
            logger.info(f"Stopping after {self.scan_count} scans. Data in: {self.output_dir}")

    def stop(self):
        self.running = False


def render_summary(result: ScanResult, limit: int = 10) -> str:
    """Console block for one scan"""
    when = local_time(result.timestamp)
    lines = [
        "",
        f"── Scan {when.label} (Tehran) " + "─" * 36,
        f"  Pairs: {result.pair_count} | Opportunities: {len(result.opportunities)} "
        f"({len(result.triangles)} tri, {len(result.crosses)} cross) | "
        f"Profitable: {len(result.profitable)}",
    ]
    if not result.opportunities:
        lines.append("  No opportunities found")
        return "\n".join(lines)

    lines.append("")
    lines.append("  Type   │ Dir   │ Assets          │ Net %      │ Volume        │ Profit")
    lines.append("  ───────┼───────┼─────────────────┼────────────┼───────────────┼──────────")
    for o in result.opportunities[:limit]:
        lines.append(
            f"  {o.type.value:<6} │ {o.direction.value:<5} │ {o.label:<15} │ {format_pct(o.net_pct):>10} │ "
            f"{format_irt(o.max_volume_local):>13} │ {format_irt(o.expected_profit_local)}"
        )
    if result.profitable:
        lines.append("")
        lines.append(f"  Est. total profit: {format_irt(result.total_est_profit)} IRT")
    return "\n".join(lines)


def create_source(simulate: bool) -> SnapshotSource:
    if simulate:
        logger.info("🎮 Running in SIMULATION MODE with mock data")
        return SimulatedSource()
    return NobitexSource()


def create_app(scanner: ArbitrageScanner, interval: float) -> FastAPI:
    """HTTP API with the scan loop running in the background"""
    from dashboard import app, manager

    manager.set_engine(scanner.engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = asyncio.create_task(scanner.run(interval))
        yield
        scanner.stop()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    app.router.lifespan_context = lifespan
    return app


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bridge currency arbitrage scanner")
    parser.add_argument("--interval", type=float, default=SCAN_INTERVAL, help="Seconds between scans")
    parser.add_argument("--base", default=BRIDGE_CURRENCY, help="Bridge currency")
    parser.add_argument("--fee", type=float, default=TRADING_FEE_PCT, help="Fee per leg in percent")
    parser.add_argument("--out", default=OUTPUT_DIR, help="Output directory for timeline and snapshots")
    parser.add_argument("--top", type=int, default=TIMELINE_TOP_N, help="Opportunities kept per timeline line")
    parser.add_argument("--once", action="store_true", help="Run a single scan and exit")
    parser.add_argument("--quiet", action="store_true", help="No console table")
    parser.add_argument("--simulate", action="store_true", default=MODE == "simulation", help="Use mock order books")
    parser.add_argument("--serve", action="store_true", help="Serve the HTTP API while scanning")
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)

    engine = OpportunityEngine(bridge_currency=args.base.upper(), fee_pct=args.fee)
    recorder = ScanRecorder(args.out, top_n=args.top)
    scanner = ArbitrageScanner(create_source(args.simulate), engine, recorder, quiet=args.quiet)

    if args.serve:
        app = create_app(scanner, args.interval)
        logger.info(f"API available at http://localhost:{WEB_PORT}/api/state")
        uvicorn.run(app, host=WEB_HOST, port=WEB_PORT, log_level="warning")
        return

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    task = loop.create_task(scanner.run(args.interval, once=args.once))

    def handle_signal():
        logger.info("Received stop signal, shutting down...")
        scanner.stop()
        task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handle_signal)
        except NotImplementedError:
            pass  # Windows

    try:
        loop.run_until_complete(task)
    except asyncio.CancelledError:
        pass
    finally:
        loop.close()

    if args.once and scanner.failed_scans:
        sys.exit(1)


if __name__ == "__main__":
    main()
