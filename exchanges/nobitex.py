"""Nobitex REST order book snapshot"""
import logging
from typing import Optional

import aiohttp

from .base import SnapshotFetchError, SnapshotSource
from config import EXCHANGE_NAME, ORDERBOOK_API_URL, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class NobitexSource(SnapshotSource):
    """
    Fetches every order book in one call.

    Response shape:
        {"status": "ok",
         "BTCIRT": {"lastUpdate": ..., "bids": [["price", "qty"], ...], "asks": [...]},
         "BTCUSDT": {...}, ...}
    """

    def __init__(self, url: str = ORDERBOOK_API_URL, timeout: float = REQUEST_TIMEOUT, **kwargs):
        super().__init__(EXCHANGE_NAME, **kwargs)
        self.url = url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def _fetch(self) -> dict:
        session = await self._get_session()
        try:
            async with session.get(self.url) as resp:
                if resp.status != 200:
                    raise SnapshotFetchError(f"HTTP {resp.status}")
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, ValueError) as e:
            raise SnapshotFetchError(str(e)) from e

        if not isinstance(data, dict):
            raise SnapshotFetchError(f"Unexpected payload type: {type(data).__name__}")
        if data.get("status") not in (None, "ok"):
            logger.warning(f"[{self.name}] Snapshot status: {data.get('status')}")
        return data

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        logger.info(f"[{self.name}] Session closed")
