"""HTTP API for the arbitrage scanner"""
import asyncio
import logging
from typing import Optional

from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect

from engine import OpportunityEngine, ScanResult
from src.api.export import router as export_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Bridge Arbitrage Scanner", version="1.0.0")
app.include_router(export_router)


class DashboardManager:
    """Holds the engine and pushes scan summaries to WebSocket clients"""

    def __init__(self):
        self.active_connections: list[WebSocket] = []
        self.engine: Optional[OpportunityEngine] = None

    def set_engine(self, engine: OpportunityEngine):
        """Set the engine and register callbacks"""
        self.engine = engine
        engine.on_scan(self._on_scan)

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(f"Dashboard client connected. Total: {len(self.active_connections)}")

        if self.engine:
            await websocket.send_json({
                "type": "state",
                "data": self.engine.get_state()
            })

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
        logger.info(f"Dashboard client disconnected. Total: {len(self.active_connections)}")

    async def broadcast(self, message: dict):
        """Broadcast message to all connected clients"""
        for connection in list(self.active_connections):
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.error(f"Broadcast error: {e}")

    def _on_scan(self, result: ScanResult):
        """Handle a completed scan from the engine"""
        if not self.active_connections:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # scan ran outside the server loop
        loop.create_task(self.broadcast({
            "type": "scan",
            "data": {
                "summary": result.summary(),
                "top": [o.to_dict() for o in result.opportunities[:10]],
            }
        }))


manager = DashboardManager()


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await manager.connect(websocket)
    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        manager.disconnect(websocket)


@app.get("/api/state")
async def get_state():
    """Get current scanner state"""
    if not manager.engine:
        return {"error": "Engine not initialized"}
    return manager.engine.get_state()


@app.get("/api/opportunities")
async def get_opportunities(
    min_net: Optional[float] = Query(default=None, description="Minimum net profit percentage"),
    type: Optional[str] = Query(default=None, pattern="^(triangle|cross)$", description="Strategy type"),
    limit: int = Query(default=50, ge=1, le=1000),
):
    """Opportunities of the latest scan, best first"""
    if not manager.engine:
        return {"error": "Engine not initialized"}

    result = manager.engine.last_result
    opportunities = result.opportunities if result else []
    if min_net is not None:
        opportunities = [o for o in opportunities if o.net_pct >= min_net]
    if type:
        opportunities = [o for o in opportunities if o.type.value == type]

    return {
        "timestamp": result.timestamp.isoformat() if result else None,
        "count": len(opportunities),
        "opportunities": [o.to_dict() for o in opportunities[:limit]],
    }


@app.get("/api/bases")
async def get_bases():
    """Bridge currencies usable with the latest snapshot"""
    if not manager.engine:
        return {"error": "Engine not initialized"}
    return {
        "current": manager.engine.bridge_currency,
        "available": manager.engine.available_bases(),
    }


@app.get("/api/history")
async def get_history():
    """Summaries of recent scans"""
    if not manager.engine:
        return {"error": "Engine not initialized"}
    return {"history": list(manager.engine.history)}
